"""Postgres connection pool and schema."""

from __future__ import annotations

import logging
from urllib.parse import quote

import asyncpg

from vidbrief.core.config import Settings
from vidbrief.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    email TEXT NOT NULL UNIQUE,
    name TEXT,
    password_hash TEXT,
    image_url TEXT,
    credits INTEGER NOT NULL DEFAULT 0,
    refresh_token TEXT UNIQUE,
    refresh_token_expires_at TIMESTAMPTZ,
    verification_token TEXT,
    last_login_at TIMESTAMPTZ,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE TABLE IF NOT EXISTS summaries (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    user_id UUID NOT NULL REFERENCES accounts (id) ON DELETE CASCADE,
    video_id TEXT,
    video_url TEXT NOT NULL,
    title TEXT,
    summary TEXT NOT NULL,
    body_format TEXT,
    transcript TEXT NOT NULL DEFAULT '',
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    CONSTRAINT summaries_user_video_key UNIQUE (user_id, video_url)
);

CREATE INDEX IF NOT EXISTS summaries_user_created_idx ON summaries (user_id, created_at DESC);
"""


def build_postgres_url(settings: Settings) -> str | None:
    if settings.database_url:
        return settings.database_url
    if not settings.db_password:
        return None

    password = quote(settings.db_password, safe="")
    return f"postgresql://{settings.db_user}:{password}@{settings.db_host}:{settings.db_port}/{settings.db_name}"


async def create_db_pool(settings: Settings) -> asyncpg.Pool:
    postgres_url = build_postgres_url(settings)
    if not postgres_url:
        raise ConfigurationError("Database connection details are not configured.")

    try:
        pool = await asyncpg.create_pool(
            postgres_url,
            min_size=settings.db_pool_min_size,
            max_size=max(settings.db_pool_max_size, settings.db_pool_min_size),
            timeout=10,
        )
    except (OSError, asyncpg.PostgresError) as exc:
        logger.error("failed to create postgres pool", exc_info=exc)
        raise ConfigurationError(f"Failed to connect to Postgres: {exc}") from exc

    logger.info("postgres pool established")
    return pool


async def ensure_schema(pool: asyncpg.Pool) -> None:
    async with pool.acquire() as conn:
        await conn.execute(SCHEMA_SQL)
    logger.info("database schema ensured")
