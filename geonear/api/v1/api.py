from fastapi import APIRouter

from geonear.api.v1.endpoints import health, venues

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(venues.router, prefix="/venues", tags=["venues"])
