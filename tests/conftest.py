"""Shared fixtures: an in-memory stand-in for the CRUD layer and a wired test app."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from fastapi.testclient import TestClient

from vidbrief.api.app import create_app
from vidbrief.core.config import Settings
from vidbrief.core.errors import ConflictError, InsufficientCreditsError, PersistenceError
from vidbrief.crud.summaries import StoredSummary
from vidbrief.services.credentials import CredentialService
from vidbrief.services.summarizer import SummaryGenerator

LONG_TRANSCRIPT = (
    "Welcome back to the channel where we talk about building reliable software. "
    "Today we look at how connection pools keep a web service responsive under load. "
    "First we measure latency with a single connection and watch requests queue up. "
    "Then we add a pool of ten connections and the queue disappears almost entirely. "
    "Finally we discuss how to size the pool for the database you actually run."
)


class FakeStore:
    """Dict-backed replacement for `vidbrief.crud` with the same call signatures."""

    def __init__(self) -> None:
        self.accounts: dict[str, dict[str, Any]] = {}
        self.summaries: dict[str, dict[str, Any]] = {}
        self.fail_list = False
        self._clock = datetime(2024, 1, 1, tzinfo=UTC)

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    # accounts

    def add_account(self, *, email: str = "viewer@example.com", credits: int = 10, **extra: Any) -> dict[str, Any]:
        account = {
            "id": uuid.uuid4(),
            "email": email,
            "name": extra.pop("name", "Viewer"),
            "password_hash": extra.pop("password_hash", None),
            "image_url": None,
            "credits": credits,
            "refresh_token": extra.pop("refresh_token", None),
            "refresh_token_expires_at": extra.pop("refresh_token_expires_at", None),
            "last_login_at": None,
            "created_at": self._tick(),
        }
        self.accounts[str(account["id"])] = account
        return account

    async def fetch_account(self, pool: Any, account_id: str) -> dict[str, Any] | None:
        account = self.accounts.get(str(account_id))
        return dict(account) if account else None

    async def fetch_account_by_email(self, pool: Any, email: str) -> dict[str, Any] | None:
        for account in self.accounts.values():
            if account["email"] == email:
                return dict(account)
        return None

    async def create_account(
        self,
        pool: Any,
        *,
        email: str,
        name: str,
        password_hash: str,
        credits: int,
        verification_token: str,
        refresh_token: str,
        refresh_token_expires_at: datetime,
    ) -> dict[str, Any]:
        if await self.fetch_account_by_email(pool, email) is not None:
            raise ConflictError("An account with this email already exists.")
        account = self.add_account(
            email=email,
            credits=credits,
            name=name,
            password_hash=password_hash,
            refresh_token=refresh_token,
            refresh_token_expires_at=refresh_token_expires_at,
        )
        return dict(account)

    async def record_login(
        self,
        pool: Any,
        *,
        account_id: str,
        refresh_token: str,
        refresh_token_expires_at: datetime,
    ) -> None:
        account = self.accounts[str(account_id)]
        account["refresh_token"] = refresh_token
        account["refresh_token_expires_at"] = refresh_token_expires_at

    async def rotate_refresh_token(
        self,
        pool: Any,
        *,
        refresh_token: str,
        new_refresh_token: str,
        new_expires_at: datetime,
    ) -> dict[str, Any] | None:
        now = datetime.now(UTC)
        for account in self.accounts.values():
            expires_at = account["refresh_token_expires_at"]
            if account["refresh_token"] == refresh_token and (expires_at is None or expires_at > now):
                account["refresh_token"] = new_refresh_token
                account["refresh_token_expires_at"] = new_expires_at
                return dict(account)
        return None

    # summaries

    def _owned(self, user_id: str) -> list[dict[str, Any]]:
        rows = [row for row in self.summaries.values() if str(row["user_id"]) == str(user_id)]
        return sorted(rows, key=lambda row: row["created_at"], reverse=True)

    def add_summary(self, *, user_id: Any, video_url: str, summary: str, **extra: Any) -> dict[str, Any]:
        row = {
            "id": uuid.uuid4(),
            "user_id": str(user_id),
            "video_id": extra.get("video_id"),
            "video_url": video_url,
            "title": extra.get("title", ""),
            "summary": summary,
            "body_format": extra.get("body_format"),
            "transcript": extra.get("transcript", ""),
            "created_at": self._tick(),
        }
        self.summaries[str(row["id"])] = row
        return row

    async def fetch_summary(self, pool: Any, *, summary_id: str, user_id: str) -> dict[str, Any] | None:
        row = self.summaries.get(str(summary_id))
        if row is None or row["user_id"] != str(user_id):
            return None
        return dict(row)

    async def fetch_summary_by_video(self, conn: Any, *, user_id: str, video_url: str) -> dict[str, Any] | None:
        for row in self._owned(user_id):
            if row["video_url"] == video_url:
                return dict(row)
        return None

    async def list_summaries(
        self, pool: Any, *, user_id: str, limit: int, offset: int
    ) -> tuple[list[dict[str, Any]], int]:
        if self.fail_list:
            raise PersistenceError("Failed to list summaries.")
        rows = self._owned(user_id)
        return [dict(row) for row in rows[offset : offset + limit]], len(rows)

    async def delete_summary(self, pool: Any, *, summary_id: str, user_id: str) -> bool:
        row = self.summaries.get(str(summary_id))
        if row is None or row["user_id"] != str(user_id):
            return False
        del self.summaries[str(summary_id)]
        return True

    async def create_summary(self, pool: Any, *, user_id: str, video_url: str, **fields: Any) -> StoredSummary:
        existing = await self.fetch_summary_by_video(pool, user_id=user_id, video_url=video_url)
        if existing is not None:
            return StoredSummary(row=existing, created=False)
        row = self.add_summary(user_id=user_id, video_url=video_url, **fields)
        return StoredSummary(row=dict(row), created=True)

    async def create_summary_with_debit(
        self, pool: Any, *, user_id: str, video_url: str, **fields: Any
    ) -> StoredSummary:
        existing = await self.fetch_summary_by_video(pool, user_id=user_id, video_url=video_url)
        if existing is not None:
            return StoredSummary(row=existing, created=False)
        account = self.accounts[str(user_id)]
        if account["credits"] <= 0:
            raise InsufficientCreditsError("Not enough credits to generate summary.")
        account["credits"] -= 1
        row = self.add_summary(user_id=user_id, video_url=video_url, **fields)
        return StoredSummary(row=dict(row), created=True, credits_remaining=account["credits"])


_PATCHED = {
    "vidbrief.api.deps.auth": ["fetch_account"],
    "vidbrief.application.auth": [
        "create_account",
        "fetch_account",
        "fetch_account_by_email",
        "record_login",
        "rotate_refresh_token",
    ],
    "vidbrief.application.summaries": [
        "fetch_account",
        "create_summary",
        "create_summary_with_debit",
        "fetch_summary",
        "fetch_summary_by_video",
    ],
}


@pytest.fixture
def store(monkeypatch: pytest.MonkeyPatch) -> FakeStore:
    fake = FakeStore()
    for module, names in _PATCHED.items():
        for name in names:
            monkeypatch.setattr(f"{module}.{name}", getattr(fake, name))
    monkeypatch.setattr("vidbrief.application.summaries.delete_summary_row", fake.delete_summary)
    monkeypatch.setattr("vidbrief.application.summaries.list_summary_rows", fake.list_summaries)
    return fake


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret="test-secret", starting_credits=3)  # type: ignore[call-arg]


@pytest.fixture
def credentials(settings: Settings) -> CredentialService:
    return CredentialService.from_settings(settings)


@pytest.fixture
def client(store: FakeStore, settings: Settings, credentials: CredentialService) -> TestClient:
    app = create_app(settings)
    app.state.db_pool = object()
    app.state.credentials = credentials
    app.state.generator = SummaryGenerator(None, model="test-model", timeout_seconds=1)
    # Not entered as a context manager, so the lifespan (real pool, provider client) never runs.
    return TestClient(app)


@pytest.fixture
def account(store: FakeStore) -> dict[str, Any]:
    return store.add_account(credits=2)


@pytest.fixture
def auth_headers(account: dict[str, Any], credentials: CredentialService) -> dict[str, str]:
    token, _ = credentials.issue_access_token(str(account["id"]), account["email"])
    return {"Authorization": f"Bearer {token}"}
