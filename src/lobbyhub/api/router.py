"""Main API router."""

from fastapi import APIRouter

from lobbyhub.api.internal import router as internal_router
from lobbyhub.api.lobbies import router as lobbies_router

api_router = APIRouter()
api_router.include_router(lobbies_router)
api_router.include_router(internal_router)
