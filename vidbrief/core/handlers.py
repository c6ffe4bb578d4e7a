from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from vidbrief.core.errors import AppError, InvalidRequestError
from vidbrief.core.logging import log_context

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, data: Any | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {"success": False, "error": {"code": code, "message": message}}
    if data is not None:
        body["data"] = data
    return body


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    # Log only server-side failures here. Client errors are logged at the source.
    if exc.status_code >= 500:
        with log_context(request_id=request_id, method=request.method, path=request.url.path):
            logger.error(
                "%s",
                exc.detail,
                exc_info=exc.__cause__,
                extra={
                    "error_code": exc.code,
                    "status_code": exc.status_code,
                    "error_type": type(exc).__name__,
                },
            )
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.detail, exc.data))


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    with log_context(request_id=request_id, method=request.method, path=request.url.path):
        logger.warning(
            "Invalid request",
            extra={
                "error_code": InvalidRequestError.code,
                "status_code": InvalidRequestError.status_code,
                "error_count": len(exc.errors()),
            },
        )
    return JSONResponse(
        status_code=InvalidRequestError.status_code,
        content=_error_body(InvalidRequestError.code, "Invalid request"),
    )
