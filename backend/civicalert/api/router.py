from fastapi import APIRouter

from civicalert.api.auth import router as auth_router
from civicalert.api.health import router as health_router

api_router = APIRouter()

# Include sub-routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router)
