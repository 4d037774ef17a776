from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sellfast.core.db import get_db
from sellfast.schemas.catalog import SpecificationRefOut
from sellfast.services.catalog import list_specifications_for_item_name

router = APIRouter()


@router.get("/specifications", response_model=list[SpecificationRefOut])
async def get_specifications(
    item: str | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> list[SpecificationRefOut]:
    if not item:
        raise HTTPException(status_code=400, detail="Item parameter is required")
    rows = await list_specifications_for_item_name(db, item)
    return [SpecificationRefOut.model_validate(r) for r in rows]
