from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.core.security import generate_session_token
from sellfast.models.category import ItemCategory
from sellfast.models.company import Company, ItemCompany
from sellfast.models.item import Item
from sellfast.models.specification import Specification
from sellfast.models.user import User, UserSession

log = logging.getLogger(__name__)


@dataclass
class SeedCounts:
    categories: int = 0
    companies: int = 0
    items: int = 0
    specifications: int = 0


async def _get_or_create_category(db: AsyncSession, data: dict[str, Any], counts: SeedCounts) -> ItemCategory:
    row = (await db.execute(select(ItemCategory).where(ItemCategory.name == data["name"]))).scalar_one_or_none()
    if row:
        row.icon = data.get("icon", row.icon)
        row.description = data.get("description", row.description)
        return row
    row = ItemCategory(name=data["name"], icon=data.get("icon"), description=data.get("description"))
    db.add(row)
    await db.flush()
    counts.categories += 1
    return row


async def _get_or_create_company(db: AsyncSession, data: dict[str, Any], counts: SeedCounts) -> Company:
    row = (await db.execute(select(Company).where(Company.name == data["name"]))).scalar_one_or_none()
    if row:
        row.icon = data.get("icon", row.icon)
        return row
    row = Company(name=data["name"], icon=data.get("icon"))
    db.add(row)
    await db.flush()
    counts.companies += 1
    return row


async def _get_or_create_item(db: AsyncSession, name: str, category: ItemCategory, company: Company, counts: SeedCounts) -> Item:
    stmt = (
        select(Item)
        .join(ItemCompany, ItemCompany.item_id == Item.id)
        .where(Item.name == name, Item.category_id == category.id, ItemCompany.company_id == company.id)
    )
    row = (await db.execute(stmt)).scalar_one_or_none()
    if row:
        return row
    row = Item(name=name, category_id=category.id)
    db.add(row)
    await db.flush()
    db.add(ItemCompany(item_id=row.id, company_id=company.id))
    counts.items += 1
    return row


async def _replace_specifications(db: AsyncSession, item: Item, specs: list[dict[str, Any]], counts: SeedCounts) -> None:
    existing = {
        s.name: s
        for s in (await db.execute(select(Specification).where(Specification.item_id == item.id))).scalars().all()
    }
    for data in specs:
        options = data.get("options")
        encoded = json.dumps(options) if isinstance(options, list) else options
        values = {
            "value_type": data.get("valueType", "select" if options else "text"),
            "options": encoded,
            "is_required": bool(data.get("isRequired", False)),
            "order": data.get("order"),
        }
        row = existing.get(data["name"])
        if row:
            for k, v in values.items():
                setattr(row, k, v)
            continue
        db.add(Specification(item_id=item.id, name=data["name"], **values))
        counts.specifications += 1


async def seed_catalog(db: AsyncSession, data: dict[str, Any]) -> SeedCounts:
    """
    Upsert categories -> brands -> items -> specifications from a nested dict:

        {"categories": [{"name", "icon"?, "brands": [{"name", "items": [
            {"name", "specifications": [{"name", "valueType", "options", "isRequired", "order"}]}
        ]}]}]}
    """
    counts = SeedCounts()
    for cat_data in data.get("categories", []):
        category = await _get_or_create_category(db, cat_data, counts)
        for brand_data in cat_data.get("brands", []):
            company = await _get_or_create_company(db, brand_data, counts)
            for item_data in brand_data.get("items", []):
                item = await _get_or_create_item(db, item_data["name"], category, company, counts)
                await _replace_specifications(db, item, item_data.get("specifications", []), counts)
    await db.flush()
    log.info("seed: %s", counts)
    return counts


async def create_user_session(db: AsyncSession, *, email: str, name: str | None = None, role: str = "USER") -> tuple[User, str]:
    """Get or create a user and open a session; returns the plain token (shown once)."""
    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    if not user:
        user = User(email=email, name=name, role=role)
        db.add(user)
        await db.flush()

    token = generate_session_token()
    db.add(UserSession(user_id=user.id, token_hash=token.hashed))
    await db.flush()
    return user, token.plain
