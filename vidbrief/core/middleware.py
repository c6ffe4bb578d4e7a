from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict, deque

from fastapi import Request
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from vidbrief.core.errors import AppError, RateLimitError, RequestTooLargeError
from vidbrief.core.handlers import handle_app_error
from vidbrief.core.logging import log_context

logger = logging.getLogger(__name__)

RATE_LIMIT_MAX_CLIENTS = 10_000


class RateLimiter:
    """Sliding-window request counter per client key.

    Clients are kept in least-recently-seen order; once more than
    `max_clients` are tracked, the oldest are forgotten.
    """

    def __init__(self, limit: int, *, window_seconds: float = 60, max_clients: int = RATE_LIMIT_MAX_CLIENTS) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._hits: OrderedDict[str, deque[float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._hits)

    def hit(self, client: str, now: float | None = None) -> None:
        now = time.monotonic() if now is None else now

        hits = self._hits.pop(client, None) or deque()
        while hits and now - hits[0] > self.window_seconds:
            hits.popleft()
        # Re-inserted even when rejected, so a client hammering the API stays tracked.
        self._hits[client] = hits

        while len(self._hits) > self.max_clients:
            self._hits.popitem(last=False)

        if len(hits) >= self.limit:
            raise RateLimitError("Too many requests.")
        hits.append(now)


def client_key(request: Request) -> str:
    forwarded_for = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip()
    client_host = request.client.host if request.client else ""
    return forwarded_for or client_host or "unknown"


async def _enforce_request_size(request: Request, max_bytes: int) -> None:
    content_length = request.headers.get("content-length")
    if content_length:
        try:
            declared = int(content_length)
        except ValueError:
            declared = 0
        if declared > max_bytes:
            raise RequestTooLargeError("Request body too large.")

    # Content-Length can be absent (chunked) or wrong, so count what actually arrives.
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_bytes:
            raise RequestTooLargeError("Request body too large.")

    request._body = bytes(body)


async def log_requests(request: Request, call_next: RequestResponseEndpoint) -> Response:
    start = time.perf_counter()
    request_id = request.headers.get("X-Request-Id") or uuid.uuid4().hex
    request.state.request_id = request_id
    state = request.app.state

    with log_context(request_id=request_id, method=request.method, path=request.url.path):
        response: Response
        try:
            max_bytes = getattr(state, "max_request_bytes", 0)
            if max_bytes > 0:
                await _enforce_request_size(request, max_bytes)
            limiter: RateLimiter | None = getattr(state, "rate_limiter", None)
            if limiter is not None:
                limiter.hit(client_key(request))
        except AppError as exc:
            # Raised before routing, so the app-level exception handlers never see it.
            logger.info("request rejected", extra={"error_code": exc.code})
            response = await handle_app_error(request, exc)
        else:
            response = await call_next(request)

        response.headers["X-Request-Id"] = request_id
        logger.info(
            "%s %s %s %.2fms",
            request.method,
            request.url.path,
            response.status_code,
            (time.perf_counter() - start) * 1000,
        )
        return response
