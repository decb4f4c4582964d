"""
API v1 router initialization and setup.
"""
from fastapi import APIRouter
from .endpoints import admin, campaigns, player

api_router = APIRouter()

api_router.include_router(
    player.router,
    prefix="/player",
    tags=["player"]
)

api_router.include_router(
    campaigns.router,
    prefix="/campaigns",
    tags=["campaigns"]
)

api_router.include_router(
    admin.router,
    prefix="/admin",
    tags=["admin"]
)
