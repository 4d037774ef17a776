import hashlib
import json
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import Header, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.models.idempotency import IdempotencyKey

log = logging.getLogger(__name__)

MAX_KEY_LENGTH = 200


async def idempotency_key_header(idempotency_key: str | None = Header(default=None)) -> str | None:
    key = (idempotency_key or "").strip()
    if len(key) > MAX_KEY_LENGTH:
        raise HTTPException(status_code=400, detail="Idempotency-Key too long")
    return key or None


def body_fingerprint(body: dict[str, Any]) -> str:
    canonical = json.dumps(body, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return "sha256:" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


async def _find(db: AsyncSession, user_id: str, key: str) -> IdempotencyKey | None:
    stmt = select(IdempotencyKey).where(IdempotencyKey.user_id == user_id, IdempotencyKey.key == key)
    return (await db.execute(stmt)).scalar_one_or_none()


async def replay_or_reserve(db: AsyncSession, *, user_id: str, key: str, body: dict[str, Any]) -> dict | None:
    """
    Returns the stored response when this key already completed for the same body.

    Otherwise reserves the key inside the caller's transaction and returns None;
    the caller does the work and then calls remember_response before committing.
    A reservation left without a response (the first attempt rolled back) is
    taken over by this request.
    """
    fingerprint = body_fingerprint(body)
    row = await _find(db, user_id, key)

    if row is None:
        db.add(IdempotencyKey(user_id=user_id, key=key, body_fingerprint=fingerprint))
        await db.flush()
        return None

    if row.body_fingerprint != fingerprint:
        log.warning("idempotency key reused with a different body user=%s", user_id)
        raise HTTPException(status_code=409, detail="Idempotency-Key reuse with different request")

    if row.response is not None:
        log.info("idempotent replay user=%s key=%s", user_id, key)
        return row.response

    return None


async def remember_response(db: AsyncSession, *, user_id: str, key: str, response: dict[str, Any]) -> None:
    row = await _find(db, user_id, key)
    if row is None:
        raise RuntimeError(f"no reservation for idempotency key {key!r}")
    row.response = response
    row.completed_at = datetime.now(timezone.utc)
    await db.flush()
