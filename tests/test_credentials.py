"""Tests for password hashing and token issuance."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from vidbrief.core.errors import AuthenticationError
from vidbrief.services.credentials import CredentialService, hash_password, verify_password


def test_hash_and_verify() -> None:
    stored = hash_password("correct horse")
    assert stored.startswith("scrypt$")
    assert verify_password("correct horse", stored)
    assert not verify_password("wrong horse", stored)


def test_hashes_are_salted() -> None:
    assert hash_password("same") != hash_password("same")


@pytest.mark.parametrize("stored", ["", "not-a-hash", "bcrypt$1$2$3$abc$def", "scrypt$x$8$1$abc$def"])
def test_verify_rejects_malformed_hash(stored: str) -> None:
    assert not verify_password("anything", stored)


@pytest.mark.asyncio
async def test_service_verify_password_without_hash(credentials: CredentialService) -> None:
    assert not await credentials.verify_password("anything", None)


def test_access_token_round_trip(credentials: CredentialService) -> None:
    token, expires_at = credentials.issue_access_token("acc-1", "viewer@example.com")
    claims = credentials.verify(token)
    assert claims.account_id == "acc-1"
    assert claims.email == "viewer@example.com"
    assert claims.expires_at == expires_at
    assert expires_at > datetime.now(UTC) + timedelta(hours=23)


def test_expired_token_rejected() -> None:
    service = CredentialService("secret", access_token_ttl=timedelta(seconds=-10))
    token, _ = service.issue_access_token("acc-1", "viewer@example.com")
    with pytest.raises(AuthenticationError, match="expired"):
        service.verify(token)


def test_token_signed_with_other_secret_rejected(credentials: CredentialService) -> None:
    token, _ = CredentialService("other-secret").issue_access_token("acc-1", "viewer@example.com")
    with pytest.raises(AuthenticationError, match="Invalid auth token"):
        credentials.verify(token)


def test_token_without_subject_rejected(credentials: CredentialService) -> None:
    token = jwt.encode({"exp": datetime.now(UTC) + timedelta(minutes=5)}, "test-secret", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        credentials.verify(token)


def test_issue_reuses_given_refresh_token(credentials: CredentialService) -> None:
    refresh = credentials.new_refresh_token()
    tokens = credentials.issue("acc-1", "viewer@example.com", refresh)
    assert tokens.refresh_token == refresh[0]
    assert tokens.refresh_expires_at == refresh[1]
    assert len(tokens.refresh_token) == 80


def test_issue_generates_fresh_refresh_tokens(credentials: CredentialService) -> None:
    first = credentials.issue("acc-1", "viewer@example.com")
    second = credentials.issue("acc-1", "viewer@example.com")
    assert first.refresh_token != second.refresh_token
