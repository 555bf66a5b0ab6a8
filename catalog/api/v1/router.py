from fastapi import APIRouter

from catalog.api.v1.endpoints import pricing, variants

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(pricing.router)
api_router.include_router(variants.router)
