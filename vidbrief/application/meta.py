from __future__ import annotations

import logging
import time

import asyncpg

from vidbrief import __version__
from vidbrief.core.errors import NotReadyError
from vidbrief.crud.helpers import DB_ERRORS
from vidbrief.schemas.meta import HealthResponse, ReadyResponse, StatusResponse
from vidbrief.services.summarizer import SummaryGenerator

_START_TIME = time.monotonic()

logger = logging.getLogger(__name__)


async def health_status() -> HealthResponse:
    return HealthResponse(status="ok")


async def readiness_status(pool: asyncpg.Pool | None) -> ReadyResponse:
    # Minimal readiness check: the pool exists and Postgres answers.
    if pool is None:
        logger.warning("readiness check failed: database pool not initialized")
        raise NotReadyError("Database is not configured.")

    try:
        await pool.fetchval("SELECT 1")
    except DB_ERRORS as exc:
        logger.warning(
            "readiness check failed: database not reachable",
            extra={"error_type": type(exc).__name__},
        )
        raise NotReadyError("Database is not reachable.") from exc

    logger.info("readiness check ok")
    return ReadyResponse(status="ok")

async def status_snapshot(pool: asyncpg.Pool | None, generator: SummaryGenerator | None) -> StatusResponse:
    uptime_seconds = time.monotonic() - _START_TIME
    database = "connected" if pool is not None else "unavailable"
    summary_provider = generator.model if generator is not None and generator.client is not None else "fallback"
    logger.info(
        "status snapshot",
        extra={"uptime_seconds": round(uptime_seconds, 2), "database": database, "summary_provider": summary_provider},
    )
    return StatusResponse(
        status="ok",
        version=__version__,
        uptime_seconds=uptime_seconds,
        database=database,
        summary_provider=summary_provider,
    )
