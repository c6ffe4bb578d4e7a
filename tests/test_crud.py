"""Tests for the Postgres CRUD layer against a scripted asyncpg stand-in."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

import asyncpg
import pytest

from vidbrief.core.errors import ConflictError, InsufficientCreditsError, PersistenceError
from vidbrief.crud.accounts import create_account
from vidbrief.crud.summaries import create_summary, create_summary_with_debit, delete_summary

ROW = {"id": "row-1", "video_url": "https://www.youtube.com/watch?v=abc123", "summary": "body"}
FIELDS = {
    "user_id": "user-1",
    "video_id": "abc123",
    "video_url": ROW["video_url"],
    "title": "Title",
    "summary": "body",
    "body_format": "kp-text/1",
    "transcript": "",
}


class FakeTransaction:
    def __init__(self, conn: FakeConnection) -> None:
        self.conn = conn

    async def __aenter__(self) -> FakeTransaction:
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        self.conn.outcome = "rollback" if exc_type else "commit"
        return False


class FakeConnection:
    def __init__(self, *, inserted: dict | None, existing: dict | None = None, credits: int | None = 4) -> None:
        self.inserted = inserted
        self.existing = existing
        self.credits = credits
        self.outcome: str | None = None
        self.debited = False

    async def fetchrow(self, sql: str, *args: Any) -> dict | None:
        if "INSERT INTO summaries" in sql:
            return self.inserted
        return self.existing

    async def fetchval(self, sql: str, *args: Any) -> int | None:
        self.debited = True
        return self.credits

    def transaction(self) -> FakeTransaction:
        return FakeTransaction(self)


class FakePool:
    def __init__(self, conn: Any) -> None:
        self.conn = conn

    @asynccontextmanager
    async def acquire(self):
        yield self.conn

    async def fetchrow(self, sql: str, *args: Any) -> Any:
        return await self.conn.fetchrow(sql, *args)

    async def execute(self, sql: str, *args: Any) -> str:
        return await self.conn.execute(sql, *args)


@pytest.mark.asyncio
async def test_debit_on_new_summary_commits() -> None:
    conn = FakeConnection(inserted=ROW, credits=4)
    stored = await create_summary_with_debit(FakePool(conn), **FIELDS)
    assert stored.created
    assert stored.credits_remaining == 4
    assert conn.debited
    assert conn.outcome == "commit"


@pytest.mark.asyncio
async def test_existing_summary_is_not_charged() -> None:
    conn = FakeConnection(inserted=None, existing=ROW)
    stored = await create_summary_with_debit(FakePool(conn), **FIELDS)
    assert not stored.created
    assert stored.row == ROW
    assert not conn.debited


@pytest.mark.asyncio
async def test_no_credits_rolls_back_insert() -> None:
    conn = FakeConnection(inserted=ROW, credits=None)
    with pytest.raises(InsufficientCreditsError):
        await create_summary_with_debit(FakePool(conn), **FIELDS)
    assert conn.outcome == "rollback"


@pytest.mark.asyncio
async def test_driver_error_becomes_persistence_error() -> None:
    class BrokenConnection(FakeConnection):
        async def fetchrow(self, sql: str, *args: Any) -> dict | None:
            raise ConnectionResetError("connection lost")

    with pytest.raises(PersistenceError) as exc_info:
        await create_summary_with_debit(FakePool(BrokenConnection(inserted=None)), **FIELDS)
    assert isinstance(exc_info.value.__cause__, ConnectionResetError)


@pytest.mark.asyncio
async def test_create_summary_returns_existing_on_conflict() -> None:
    stored = await create_summary(FakePool(FakeConnection(inserted=None, existing=ROW)), **FIELDS)
    assert not stored.created
    assert stored.row == ROW


@pytest.mark.asyncio
async def test_create_summary_conflicting_row_vanished() -> None:
    with pytest.raises(PersistenceError):
        await create_summary(FakePool(FakeConnection(inserted=None, existing=None)), **FIELDS)


@pytest.mark.asyncio
@pytest.mark.parametrize(("status", "expected"), [("DELETE 1", True), ("DELETE 0", False)])
async def test_delete_summary_reports_row_count(status: str, expected: bool) -> None:
    class DeleteConnection:
        async def execute(self, sql: str, *args: Any) -> str:
            return status

    assert await delete_summary(FakePool(DeleteConnection()), summary_id="s", user_id="u") is expected


@pytest.mark.asyncio
async def test_create_account_duplicate_email_conflicts() -> None:
    class DuplicateConnection:
        async def fetchrow(self, sql: str, *args: Any) -> Any:
            raise asyncpg.UniqueViolationError("duplicate key value violates unique constraint")

    with pytest.raises(ConflictError):
        await create_account(
            FakePool(DuplicateConnection()),
            email="viewer@example.com",
            name="Viewer",
            password_hash="scrypt$...",
            credits=10,
            verification_token="v",
            refresh_token="r",
            refresh_token_expires_at=datetime.now(UTC),
        )
