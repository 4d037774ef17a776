from __future__ import annotations

import asyncio
import logging
from typing import Any

from sellfast.wizard.draft import ListingDraft
from sellfast.wizard.persistence import ProgressPersistence

log = logging.getLogger(__name__)

# Fields dropped by clear_step(n) for every n <= threshold.
_CLEARED_FROM: tuple[tuple[int, tuple[str, ...]], ...] = (
    (0, ("category_id", "category_name")),
    (1, ("brand_id", "brand_name")),
    (2, ("item_id", "item_name")),
    (3, ("specs",)),
    (4, ("location", "latitude", "longitude")),
    (5, ("images",)),
)

_DOWNSTREAM_OF_CATEGORY = ("brand_id", "brand_name", "item_id", "item_name", "specs", "location", "latitude", "longitude", "images")
_DOWNSTREAM_OF_BRAND = ("item_id", "item_name", "specs")
_DOWNSTREAM_OF_ITEM = ("specs",)


def _defaults(fields: tuple[str, ...]) -> dict[str, Any]:
    blank = ListingDraft()
    return {f: getattr(blank, f) for f in fields}


class ProgressStore:
    """
    Holds the draft and writes every mutation through to persistence.

    Raises DraftConflictError (from the persistence layer) when another
    session wrote the draft since this store last read or wrote it.
    """

    def __init__(self, persistence: ProgressPersistence):
        self._persistence = persistence
        self._draft = ListingDraft()
        self._lock = asyncio.Lock()

    @property
    def draft(self) -> ListingDraft:
        return self._draft

    async def load(self) -> ListingDraft | None:
        saved = await self._persistence.load()
        if saved is not None:
            self._draft = saved
            log.info("rehydrated draft at step %d (revision %d)", saved.current_step, saved.revision)
        return saved

    async def update(self, **patch: Any) -> ListingDraft:
        async with self._lock:
            merged = self._draft.model_copy(update=patch, deep=True)
            # model_copy skips validation; round-trip so bad patches fail loudly
            merged = ListingDraft.model_validate(merged.model_dump())
            self._draft = await self._persistence.save(merged, expected_revision=self._draft.revision)
            return self._draft

    async def set_step(self, step: int) -> ListingDraft:
        return await self.update(current_step=step)

    async def clear_step(self, step: int) -> ListingDraft:
        patch: dict[str, Any] = {}
        for threshold, fields in _CLEARED_FROM:
            if step <= threshold:
                patch.update(_defaults(fields))
        patch["current_step"] = step
        return await self.update(**patch)

    async def reset(self) -> ListingDraft:
        async with self._lock:
            await self._persistence.clear()
            self._draft = ListingDraft()
            return self._draft

    # Upstream selections always clear what depends on them.

    async def select_category(self, category_id: str | None, category_name: str) -> ListingDraft:
        patch = _defaults(_DOWNSTREAM_OF_CATEGORY)
        return await self.update(category_id=category_id, category_name=category_name, **patch)

    async def select_brand(self, brand_id: str, brand_name: str) -> ListingDraft:
        patch = _defaults(_DOWNSTREAM_OF_BRAND)
        return await self.update(brand_id=brand_id, brand_name=brand_name, **patch)

    async def select_item(self, item_id: str, item_name: str) -> ListingDraft:
        patch = _defaults(_DOWNSTREAM_OF_ITEM)
        return await self.update(item_id=item_id, item_name=item_name, **patch)

    async def set_spec(self, spec_id: str, value: str) -> ListingDraft:
        specs = dict(self._draft.specs)
        specs[spec_id] = value
        return await self.update(specs=specs)

    async def drop_spec(self, spec_id: str, *, step: int) -> ListingDraft:
        specs = {k: v for k, v in self._draft.specs.items() if k != spec_id}
        return await self.update(specs=specs, current_step=step)

    async def prune_specs(self, valid_ids: set[str]) -> ListingDraft:
        """Drop answers whose specification is no longer loaded for the item."""
        kept = {k: v for k, v in self._draft.specs.items() if k in valid_ids}
        if kept == self._draft.specs:
            return self._draft
        return await self.update(specs=kept)
