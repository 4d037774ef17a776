import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.core.db import get_db
from sellfast.schemas.catalog import CompanyOut
from sellfast.services.catalog import list_companies

log = logging.getLogger(__name__)
router = APIRouter()


@router.get("/companies", response_model=list[CompanyOut])
async def get_companies(
    category: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[CompanyOut]:
    rows = await list_companies(db, category_name=category or None)
    log.info("companies: found %d for category %r", len(rows), category or "all")
    return [CompanyOut.model_validate(r) for r in rows]
