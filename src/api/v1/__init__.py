"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.communities import communities_router, users_router

router = APIRouter()
router.include_router(users_router)
router.include_router(communities_router)
