import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.core.db import get_db
from sellfast.schemas.listing import ListingCreate, ListingCreatedOut, MyListingsOut
from sellfast.services.auth import CurrentUser, get_current_user
from sellfast.services.idempotency import idempotency_key_header, remember_response, replay_or_reserve
from sellfast.services.listings import create_listing_record, listing_out, list_user_listings

log = logging.getLogger(__name__)
router = APIRouter()


@router.post("/listings/create", response_model=ListingCreatedOut, status_code=201)
async def create_listing(
    payload: ListingCreate,
    user: CurrentUser = Depends(get_current_user),
    idempotency_key: str | None = Depends(idempotency_key_header),
    db: AsyncSession = Depends(get_db),
) -> ListingCreatedOut:
    try:
        if idempotency_key:
            stored = await replay_or_reserve(
                db, user_id=user.user_id, key=idempotency_key, body=payload.model_dump(mode="json")
            )
            if stored is not None:
                return ListingCreatedOut.model_validate(stored)

        listing, answers = await create_listing_record(db=db, user=user, payload=payload)
        resp = ListingCreatedOut(listing=listing_out(listing, answers))

        if idempotency_key:
            await remember_response(
                db, user_id=user.user_id, key=idempotency_key, response=resp.model_dump(mode="json", by_alias=True)
            )
        await db.commit()
    except IntegrityError:
        # includes two concurrent first attempts racing for the same key
        await db.rollback()
        log.exception("create listing failed: integrity error")
        raise HTTPException(status_code=409, detail="Constraint violation")

    return resp


@router.get("/listings/my-listings", response_model=MyListingsOut)
async def my_listings(
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MyListingsOut:
    return MyListingsOut(listings=await list_user_listings(db, user))
