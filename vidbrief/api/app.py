from __future__ import annotations

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from vidbrief.api import __version__
from vidbrief.api.routers import auth_router, meta_router, summaries_router
from vidbrief.core.config import Settings, get_settings
from vidbrief.core.errors import AppError
from vidbrief.core.handlers import handle_app_error, handle_validation_error
from vidbrief.core.lifespan import lifespan
from vidbrief.core.middleware import RateLimiter, log_requests

API_PREFIX = "/api"


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Application factory for creating FastAPI instances.

    Args:
        settings: Optional settings override. If None, loads from environment.
                  Useful for testing with custom configuration.
    """
    if settings is None:
        settings = get_settings()

    middleware: list[Middleware] = []
    if settings.cors_allow_origins:
        middleware.append(
            Middleware(
                CORSMiddleware,
                allow_origins=settings.cors_allow_origins,
                allow_credentials=True,
                allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                allow_headers=["Content-Type", "Authorization"],
            )
        )

    app = FastAPI(
        title="vidbrief",
        description="Video summary service",
        version=__version__,
        middleware=middleware,
        lifespan=lifespan,
    )
    app.include_router(meta_router)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(summaries_router, prefix=API_PREFIX)
    app.state.settings = settings
    app.state.max_request_bytes = settings.max_request_bytes
    app.state.rate_limiter = (
        RateLimiter(settings.rate_limit, window_seconds=settings.rate_limit_window_seconds)
        if settings.rate_limit > 0
        else None
    )
    app.state.db_pool = None
    app.state.credentials = None
    app.state.generator = None

    app.add_middleware(BaseHTTPMiddleware, dispatch=log_requests)
    app.add_exception_handler(AppError, handle_app_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_validation_error)  # type: ignore[arg-type]

    return app
