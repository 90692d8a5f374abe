"""API router configuration."""

from fastapi import APIRouter

from finboard.modules.providers.interfaces.router import router as providers_router
from finboard.modules.widgets.interfaces.router import router as widgets_router

api_router = APIRouter()

# Providers / endpoint catalog
api_router.include_router(providers_router)

# Widgets
api_router.include_router(widgets_router)
