"""API routers package."""

from .env import router as env_router
from .plugins import router as plugins_router

__all__ = ["env_router", "plugins_router"]
