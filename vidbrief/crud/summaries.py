"""Summaries CRUD."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import asyncpg

from vidbrief.core.errors import InsufficientCreditsError, PersistenceError
from vidbrief.crud.helpers import DB_ERRORS, raise_for_db_error, row_or_none

SUMMARY_FIELDS = "id, user_id, video_id, video_url, title, summary, body_format, transcript, created_at"

_INSERT_SUMMARY_SQL = f"""
INSERT INTO summaries (user_id, video_id, video_url, title, summary, body_format, transcript)
VALUES ($1::uuid, $2, $3, $4, $5, $6, $7)
ON CONFLICT ON CONSTRAINT summaries_user_video_key DO NOTHING
RETURNING {SUMMARY_FIELDS}
"""

_DEBIT_CREDIT_SQL = """
UPDATE accounts SET credits = credits - 1
WHERE id = $1::uuid AND credits > 0
RETURNING credits
"""


@dataclass(frozen=True)
class StoredSummary:
    row: dict[str, Any]
    created: bool
    credits_remaining: int | None = None


async def fetch_summary(pool: asyncpg.Pool, *, summary_id: str, user_id: str) -> dict[str, Any] | None:
    """Fetch a summary by ID, only if owned by `user_id`."""
    try:
        row = await pool.fetchrow(
            f"SELECT {SUMMARY_FIELDS} FROM summaries WHERE id = $1::uuid AND user_id = $2::uuid",
            summary_id,
            user_id,
        )
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to fetch summary.")
    return row_or_none(row)


async def fetch_summary_by_video(
    conn: asyncpg.Pool | asyncpg.Connection,
    *,
    user_id: str,
    video_url: str,
) -> dict[str, Any] | None:
    try:
        row = await conn.fetchrow(
            f"SELECT {SUMMARY_FIELDS} FROM summaries WHERE user_id = $1::uuid AND video_url = $2 LIMIT 1",
            user_id,
            video_url,
        )
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to fetch summary.")
    return row_or_none(row)


async def list_summaries(
    pool: asyncpg.Pool,
    *,
    user_id: str,
    limit: int,
    offset: int,
) -> tuple[list[dict[str, Any]], int]:
    """Return one page of the user's summaries (newest first) and the total count."""
    try:
        async with pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {SUMMARY_FIELDS} FROM summaries
                WHERE user_id = $1::uuid
                ORDER BY created_at DESC
                LIMIT $2 OFFSET $3
                """,
                user_id,
                limit,
                offset,
            )
            total = await conn.fetchval("SELECT count(*) FROM summaries WHERE user_id = $1::uuid", user_id)
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to list summaries.")
    return [dict(row) for row in rows], int(total or 0)


async def delete_summary(pool: asyncpg.Pool, *, summary_id: str, user_id: str) -> bool:
    try:
        status = await pool.execute(
            "DELETE FROM summaries WHERE id = $1::uuid AND user_id = $2::uuid",
            summary_id,
            user_id,
        )
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to delete summary.")
    return status == "DELETE 1"


async def _insert_summary(conn: asyncpg.Pool | asyncpg.Connection, payload: dict[str, Any]) -> dict[str, Any] | None:
    row = await conn.fetchrow(
        _INSERT_SUMMARY_SQL,
        payload["user_id"],
        payload["video_id"],
        payload["video_url"],
        payload["title"],
        payload["summary"],
        payload["body_format"],
        payload["transcript"],
    )
    return row_or_none(row)


async def create_summary(
    pool: asyncpg.Pool,
    *,
    user_id: str,
    video_id: str | None,
    video_url: str,
    title: str,
    summary: str,
    body_format: str,
    transcript: str,
) -> StoredSummary:
    """Insert a summary, or return the row already stored for (user, video_url)."""
    payload = {
        "user_id": user_id,
        "video_id": video_id,
        "video_url": video_url,
        "title": title,
        "summary": summary,
        "body_format": body_format,
        "transcript": transcript,
    }
    try:
        async with pool.acquire() as conn:
            row = await _insert_summary(conn, payload)
            if row is not None:
                return StoredSummary(row=row, created=True)
            existing = await fetch_summary_by_video(conn, user_id=user_id, video_url=video_url)
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to create summary.")

    if existing is None:
        # Conflicting row was deleted between the insert and the read.
        raise PersistenceError("Failed to create summary.")
    return StoredSummary(row=existing, created=False)


async def create_summary_with_debit(
    pool: asyncpg.Pool,
    *,
    user_id: str,
    video_id: str | None,
    video_url: str,
    title: str,
    summary: str,
    body_format: str,
    transcript: str,
) -> StoredSummary:
    """Store a generated summary and charge one credit in a single transaction.

    If a summary for (user, video_url) already exists nothing is charged and the
    existing row is returned. If the account has no credits left the insert is
    rolled back and InsufficientCreditsError is raised.
    """
    payload = {
        "user_id": user_id,
        "video_id": video_id,
        "video_url": video_url,
        "title": title,
        "summary": summary,
        "body_format": body_format,
        "transcript": transcript,
    }
    try:
        async with pool.acquire() as conn:
            async with conn.transaction():
                row = await _insert_summary(conn, payload)
                if row is not None:
                    credits = await conn.fetchval(_DEBIT_CREDIT_SQL, user_id)
                    if credits is None:
                        raise InsufficientCreditsError("Not enough credits to generate summary.")
                    return StoredSummary(row=row, created=True, credits_remaining=max(0, int(credits)))

            existing = await fetch_summary_by_video(conn, user_id=user_id, video_url=video_url)
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to store summary.")

    if existing is None:
        raise PersistenceError("Failed to store summary.")
    return StoredSummary(row=existing, created=False)
