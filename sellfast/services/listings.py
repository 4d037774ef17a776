from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.models.listing import Listing, ListingSpecification
from sellfast.schemas.listing import ListingCreate, ListingOut, ListingSpecValue
from sellfast.services.auth import CurrentUser

log = logging.getLogger(__name__)


def _to_float(value: Any) -> float | None:
    # Falsy coordinates and prices are treated as absent, as the web client sends them.
    if value in (None, "", 0):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Invalid numeric value: {value!r}")


def require_listing_fields(payload: ListingCreate) -> None:
    required = (payload.item_id, payload.company_id, payload.title, payload.description, payload.address)
    if not all(v and str(v).strip() for v in required):
        raise HTTPException(status_code=400, detail="Missing required fields")


async def create_listing_record(
    *,
    db: AsyncSession,
    user: CurrentUser,
    payload: ListingCreate,
) -> tuple[Listing, list[ListingSpecification]]:
    """
    Insert a PENDING listing and its specification answers.

    Note: Auth and idempotency are handled by the API layer.
    """
    require_listing_fields(payload)

    listing = Listing(
        user_id=user.user_id,
        item_id=payload.item_id,
        company_id=payload.company_id,
        title=payload.title,
        description=payload.description,
        price=_to_float(payload.price) or 0.0,
        address=payload.address,
        latitude=_to_float(payload.latitude),
        longitude=_to_float(payload.longitude),
        status="PENDING",
        temp_data={"images": payload.images} if payload.images else None,
    )
    db.add(listing)
    await db.flush()

    answers = [
        ListingSpecification(listing_id=listing.id, specification_id=s.specification_id, value=s.value)
        for s in payload.specifications
    ]
    db.add_all(answers)
    await db.flush()

    log.info("listing %s created by %s with %d specification(s)", listing.id, user.user_id, len(answers))
    return listing, answers


def listing_out(listing: Listing, answers: list[ListingSpecification]) -> ListingOut:
    images = (listing.temp_data or {}).get("images", [])
    return ListingOut(
        id=listing.id,
        user_id=listing.user_id,
        item_id=listing.item_id,
        company_id=listing.company_id,
        title=listing.title,
        description=listing.description,
        price=listing.price,
        address=listing.address,
        latitude=listing.latitude,
        longitude=listing.longitude,
        status=listing.status,
        images=list(images),
        specifications=[ListingSpecValue(specification_id=a.specification_id, value=a.value) for a in answers],
    )


async def list_user_listings(db: AsyncSession, user: CurrentUser) -> list[ListingOut]:
    stmt = (
        select(Listing)
        .where(Listing.user_id == user.user_id)
        .order_by(Listing.created_at.desc(), Listing.id.desc())
    )
    listings = (await db.execute(stmt)).scalars().all()
    if not listings:
        return []

    answers_stmt = select(ListingSpecification).where(
        ListingSpecification.listing_id.in_([l.id for l in listings])
    )
    by_listing: dict[str, list[ListingSpecification]] = {}
    for a in (await db.execute(answers_stmt)).scalars().all():
        by_listing.setdefault(a.listing_id, []).append(a)

    return [listing_out(l, by_listing.get(l.id, [])) for l in listings]
