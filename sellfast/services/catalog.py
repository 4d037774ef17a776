from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.models.category import ItemCategory
from sellfast.models.company import Company, ItemCompany
from sellfast.models.item import Item
from sellfast.models.specification import Specification


def sort_specifications(specs: Iterable[Specification]) -> list[Specification]:
    """
    Display order: specifications with an explicit order come first (ascending),
    the rest follow alphabetically by name.
    """
    return sorted(
        specs,
        key=lambda s: (s.order is None, s.order if s.order is not None else 0, s.name),
    )


async def list_categories(db: AsyncSession) -> Sequence[ItemCategory]:
    stmt = select(ItemCategory).order_by(ItemCategory.name.asc())
    return (await db.execute(stmt)).scalars().all()


async def find_category_by_name(db: AsyncSession, name: str) -> ItemCategory | None:
    stmt = select(ItemCategory).where(ItemCategory.name == name)
    return (await db.execute(stmt)).scalars().first()


async def find_company_by_name(db: AsyncSession, name: str) -> Company | None:
    stmt = select(Company).where(Company.name == name)
    return (await db.execute(stmt)).scalars().first()


async def list_companies(db: AsyncSession, *, category_name: str | None) -> Sequence[Company]:
    # Only companies that have at least one item (in the category, when given)
    has_items = select(ItemCompany.company_id).join(Item, Item.id == ItemCompany.item_id)

    if category_name and category_name != "all":
        category = await find_category_by_name(db, category_name)
        if not category:
            return []
        has_items = has_items.where(Item.category_id == category.id)

    stmt = select(Company).where(Company.id.in_(has_items)).order_by(Company.name.asc())
    return (await db.execute(stmt)).scalars().all()


async def list_items(
    db: AsyncSession,
    *,
    company_id: str,
    category_id: str | None = None,
) -> Sequence[Item]:
    stmt = (
        select(Item)
        .join(ItemCompany, ItemCompany.item_id == Item.id)
        .where(ItemCompany.company_id == company_id)
        .order_by(Item.name.asc())
    )
    if category_id:
        stmt = stmt.where(Item.category_id == category_id)
    return (await db.execute(stmt)).scalars().all()


async def specifications_by_item(db: AsyncSession, item_ids: Sequence[str]) -> dict[str, list[Specification]]:
    if not item_ids:
        return {}
    stmt = select(Specification).where(Specification.item_id.in_(item_ids))
    grouped: dict[str, list[Specification]] = defaultdict(list)
    for spec in (await db.execute(stmt)).scalars().all():
        grouped[spec.item_id].append(spec)
    return {item_id: sort_specifications(specs) for item_id, specs in grouped.items()}


async def get_item(db: AsyncSession, item_id: str) -> Item | None:
    return (await db.execute(select(Item).where(Item.id == item_id))).scalar_one_or_none()


async def list_specifications_for_item_name(db: AsyncSession, item_name: str) -> Sequence[Specification]:
    stmt = (
        select(Specification)
        .join(Item, Item.id == Specification.item_id)
        .where(Item.name == item_name)
    )
    return (await db.execute(stmt)).scalars().all()
