import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.core.db import get_db
from sellfast.models.item import Item
from sellfast.schemas.catalog import ItemDetailOut, ItemOut, SpecificationOut
from sellfast.services.catalog import (
    find_category_by_name,
    find_company_by_name,
    get_item,
    list_items,
    specifications_by_item,
)

log = logging.getLogger(__name__)
router = APIRouter()


async def _items_out(db: AsyncSession, items) -> list[ItemOut]:
    specs = await specifications_by_item(db, [i.id for i in items])
    return [
        ItemOut(
            id=i.id,
            name=i.name,
            specifications=[SpecificationOut.model_validate(s) for s in specs.get(i.id, [])],
        )
        for i in items
    ]


async def _item_detail(db: AsyncSession, item_id: str) -> ItemDetailOut:
    item: Item | None = await get_item(db, item_id)
    if not item:
        raise HTTPException(status_code=404, detail=f'Item with id "{item_id}" not found')

    specs = (await specifications_by_item(db, [item.id])).get(item.id, [])
    log.info("items: item %s has %d specification(s)", item.id, len(specs))
    return ItemDetailOut(
        id=item.id,
        name=item.name,
        category_id=item.category_id,
        specifications=[SpecificationOut.model_validate(s) for s in specs],
    )


@router.get("/items", response_model=ItemDetailOut | list[ItemOut])
async def get_items(
    item_id: str | None = Query(default=None, alias="itemId"),
    company_id: str | None = Query(default=None, alias="companyId"),
    company: str | None = Query(default=None),
    category: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    if item_id:
        return await _item_detail(db, item_id)

    if not company_id and not company:
        raise HTTPException(status_code=400, detail="Company or companyId parameter is required")

    category_id = None
    if category:
        cat = await find_category_by_name(db, category)
        if cat:
            category_id = cat.id
        elif not company_id:
            # name-based lookup requires both records to exist
            return []

    if company_id:
        items = await list_items(db, company_id=company_id, category_id=category_id)
        log.info("items: found %d for companyId %s", len(items), company_id)
        return await _items_out(db, items)

    cmp = await find_company_by_name(db, company)
    if not cmp:
        log.info("items: company %r not found", company)
        return []
    items = await list_items(db, company_id=cmp.id, category_id=category_id)
    log.info("items: found %d for company %r", len(items), company)
    return await _items_out(db, items)
