from fastapi import APIRouter

from sellfast.api.endpoints.health import router as health_router
from sellfast.api.endpoints.categories import router as categories_router
from sellfast.api.endpoints.companies import router as companies_router
from sellfast.api.endpoints.items import router as items_router
from sellfast.api.endpoints.specifications import router as specifications_router
from sellfast.api.endpoints.listings import router as listings_router


router = APIRouter(prefix="/api")
router.include_router(health_router, tags=["health"])
router.include_router(categories_router, tags=["catalog"])
router.include_router(companies_router, tags=["catalog"])
router.include_router(items_router, tags=["catalog"])
router.include_router(specifications_router, tags=["catalog"])
router.include_router(listings_router, tags=["listings"])
