from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vidbrief.services.credentials import CredentialService
from vidbrief.services.database import create_db_pool, ensure_schema
from vidbrief.services.summarizer import SummaryGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Build the process-wide collaborators and hang them on `app.state`.

    Anything already present on `app.state` (e.g. set by tests) is left alone.
    """
    settings = app.state.settings
    owned_pool = None

    if getattr(app.state, "credentials", None) is None:
        app.state.credentials = CredentialService.from_settings(settings)
    if getattr(app.state, "generator", None) is None:
        app.state.generator = SummaryGenerator.from_settings(settings)
    if getattr(app.state, "db_pool", None) is None:
        owned_pool = await create_db_pool(settings)
        await ensure_schema(owned_pool)
        app.state.db_pool = owned_pool

    try:
        yield
    finally:
        generator = app.state.generator
        if generator.client is not None:
            await generator.client.close()
        if owned_pool is not None:
            await owned_pool.close()
            app.state.db_pool = None
            logger.info("postgres pool closed")
