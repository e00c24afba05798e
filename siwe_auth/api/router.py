from fastapi import APIRouter

from siwe_auth.api.v1.auth import router as auth_router
from siwe_auth.api.v1.health import router as health_router
from siwe_auth.api.v1.profile import router as profile_router
from siwe_auth.api.v1.users import router as users_router

api_router = APIRouter()
api_router.include_router(health_router, prefix="/v1", tags=["health"])
api_router.include_router(auth_router, prefix="/v1", tags=["auth"])
api_router.include_router(profile_router, prefix="/v1", tags=["profile"])
api_router.include_router(users_router, prefix="/v1", tags=["users"])
