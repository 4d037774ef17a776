import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.core.db import get_db
from sellfast.schemas.catalog import CategoriesOut, CategoryOut
from sellfast.services.catalog import list_categories

log = logging.getLogger(__name__)
router = APIRouter()


@router.get("/categories", response_model=CategoriesOut)
async def get_categories(response: Response, db: AsyncSession = Depends(get_db)) -> CategoriesOut:
    rows = await list_categories(db)
    log.info("categories: found %d", len(rows))

    response.headers["Cache-Control"] = "no-store, must-revalidate"
    return CategoriesOut(
        categories=[CategoryOut.model_validate(r) for r in rows],
        count=len(rows),
    )
