"""API routers."""

from vidbrief.api.routers.auth import router as auth_router
from vidbrief.api.routers.meta import router as meta_router
from vidbrief.api.routers.summaries import router as summaries_router

__all__ = ["auth_router", "meta_router", "summaries_router"]
