from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

import redis.asyncio as redis
from redis.exceptions import WatchError

from sellfast.wizard.draft import STORAGE_KEY, ListingDraft

log = logging.getLogger(__name__)


class DraftConflictError(Exception):
    """The stored draft was changed by another session since it was last read."""

    def __init__(self, expected: int, found: int):
        super().__init__(f"draft revision conflict: expected {expected}, found {found}")
        self.expected = expected
        self.found = found


class ProgressPersistence(Protocol):
    async def load(self) -> ListingDraft | None: ...

    async def save(self, draft: ListingDraft, *, expected_revision: int) -> ListingDraft: ...

    async def clear(self) -> None: ...


def _stored_revision(draft: ListingDraft | None) -> int:
    return draft.revision if draft else 0


def _check_revision(current: ListingDraft | None, expected: int) -> None:
    found = _stored_revision(current)
    if found != expected:
        raise DraftConflictError(expected=expected, found=found)


def _next_revision(draft: ListingDraft, expected: int) -> ListingDraft:
    return draft.model_copy(update={"revision": expected + 1}, deep=True)


class MemoryPersistence:
    """Page-local state: lives as long as the object does."""

    def __init__(self) -> None:
        self._raw: str | None = None

    async def load(self) -> ListingDraft | None:
        return ListingDraft.from_json(self._raw)

    async def save(self, draft: ListingDraft, *, expected_revision: int) -> ListingDraft:
        _check_revision(ListingDraft.from_json(self._raw), expected_revision)
        saved = _next_revision(draft, expected_revision)
        self._raw = saved.to_json()
        return saved

    async def clear(self) -> None:
        self._raw = None


class FilePersistence:
    """One JSON blob per storage key inside a directory."""

    def __init__(self, directory: str | Path, *, key: str = STORAGE_KEY):
        self._path = Path(directory) / f"{key}.json"

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> ListingDraft | None:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return ListingDraft.from_json(raw)

    async def load(self) -> ListingDraft | None:
        return self._read()

    async def save(self, draft: ListingDraft, *, expected_revision: int) -> ListingDraft:
        _check_revision(self._read(), expected_revision)
        saved = _next_revision(draft, expected_revision)

        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(saved.to_json(), encoding="utf-8")
        tmp.replace(self._path)
        return saved

    async def clear(self) -> None:
        self._path.unlink(missing_ok=True)


class RedisPersistence:
    """
    Shared store: the draft is visible to every session of the same owner.
    Writes are WATCH/MULTI transactions on the draft key.
    """

    def __init__(self, redis_url: str, *, owner: str, key: str = STORAGE_KEY, ttl_seconds: int = 7 * 24 * 3600):
        self.r = redis.from_url(redis_url, decode_responses=True)
        self._key = f"sellfast:{key}:{owner}"
        self._ttl = ttl_seconds

    async def aclose(self) -> None:
        await self.r.aclose()

    async def load(self) -> ListingDraft | None:
        return ListingDraft.from_json(await self.r.get(self._key))

    async def save(self, draft: ListingDraft, *, expected_revision: int) -> ListingDraft:
        async with self.r.pipeline(transaction=True) as pipe:
            await pipe.watch(self._key)
            current = ListingDraft.from_json(await pipe.get(self._key))
            _check_revision(current, expected_revision)

            saved = _next_revision(draft, expected_revision)
            pipe.multi()
            pipe.set(self._key, saved.to_json(), ex=self._ttl)
            try:
                await pipe.execute()
            except WatchError:
                # written between our WATCH and EXEC
                latest = ListingDraft.from_json(await self.r.get(self._key))
                raise DraftConflictError(expected=expected_revision, found=_stored_revision(latest))
        return saved

    async def clear(self) -> None:
        await self.r.delete(self._key)
