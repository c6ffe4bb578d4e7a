"""Accounts CRUD."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import asyncpg

from vidbrief.core.errors import ConflictError, PersistenceError
from vidbrief.crud.helpers import DB_ERRORS, raise_for_db_error, row_or_none

ACCOUNT_FIELDS = "id, email, name, password_hash, image_url, credits, refresh_token_expires_at, last_login_at, created_at"


async def fetch_account(pool: asyncpg.Pool, account_id: str) -> dict[str, Any] | None:
    try:
        row = await pool.fetchrow(f"SELECT {ACCOUNT_FIELDS} FROM accounts WHERE id = $1::uuid", account_id)
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to fetch account.")
    return row_or_none(row)


async def fetch_account_by_email(pool: asyncpg.Pool, email: str) -> dict[str, Any] | None:
    try:
        row = await pool.fetchrow(f"SELECT {ACCOUNT_FIELDS} FROM accounts WHERE email = $1", email)
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to fetch account.")
    return row_or_none(row)


async def create_account(
    pool: asyncpg.Pool,
    *,
    email: str,
    name: str,
    password_hash: str,
    credits: int,
    verification_token: str,
    refresh_token: str,
    refresh_token_expires_at: datetime,
) -> dict[str, Any]:
    try:
        row = await pool.fetchrow(
            f"""
            INSERT INTO accounts (
                email, name, password_hash, credits, verification_token,
                refresh_token, refresh_token_expires_at, last_login_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, now())
            RETURNING {ACCOUNT_FIELDS}
            """,
            email,
            name,
            password_hash,
            credits,
            verification_token,
            refresh_token,
            refresh_token_expires_at,
        )
    except asyncpg.UniqueViolationError as exc:
        raise ConflictError("An account with this email already exists.") from exc
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to create account.")

    if row is None:
        raise PersistenceError("Failed to create account.")
    return dict(row)


async def record_login(
    pool: asyncpg.Pool,
    *,
    account_id: str,
    refresh_token: str,
    refresh_token_expires_at: datetime,
) -> None:
    """Install a new refresh token (replacing any previous one) and stamp the login time."""
    try:
        await pool.execute(
            """
            UPDATE accounts
            SET refresh_token = $2, refresh_token_expires_at = $3, last_login_at = now()
            WHERE id = $1::uuid
            """,
            account_id,
            refresh_token,
            refresh_token_expires_at,
        )
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to record login.")


async def rotate_refresh_token(
    pool: asyncpg.Pool,
    *,
    refresh_token: str,
    new_refresh_token: str,
    new_expires_at: datetime,
) -> dict[str, Any] | None:
    """Swap a live refresh token for a new one. Returns None if the token is unknown, used or expired."""
    try:
        row = await pool.fetchrow(
            f"""
            UPDATE accounts
            SET refresh_token = $2, refresh_token_expires_at = $3
            WHERE refresh_token = $1
              AND (refresh_token_expires_at IS NULL OR refresh_token_expires_at > now())
            RETURNING {ACCOUNT_FIELDS}
            """,
            refresh_token,
            new_refresh_token,
            new_expires_at,
        )
    except DB_ERRORS as exc:
        raise_for_db_error(exc, "Failed to rotate refresh token.")
    return row_or_none(row)
