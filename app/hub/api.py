from fastapi import APIRouter

from app.hub.routers.admin_profiles import router as admin_profiles_router
from app.hub.routers.admin_stores import router as admin_stores_router
from app.hub.routers.health import router as health_router
from app.hub.routers.provisioning import router as provisioning_router
from app.hub.routers.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(provisioning_router, prefix="/functions/v1", tags=["provisioning"])
api_router.include_router(admin_stores_router, prefix="/admin", tags=["admin-stores"])
api_router.include_router(admin_profiles_router, prefix="/admin", tags=["admin-profiles"])
api_router.include_router(users_router, tags=["users"])
