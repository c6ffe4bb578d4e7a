from __future__ import annotations

import logging
from typing import Any

import asyncpg

from vidbrief.api.deps.auth import AuthContext
from vidbrief.core.config import Settings
from vidbrief.core.errors import AuthenticationError, ConflictError, NotFoundError
from vidbrief.core.logging import log_context
from vidbrief.crud.accounts import (
    create_account,
    fetch_account,
    fetch_account_by_email,
    record_login,
    rotate_refresh_token,
)
from vidbrief.schemas.auth import AuthResponse, RefreshRequest, SigninRequest, SignupRequest, UserProfile
from vidbrief.services.credentials import CredentialService, IssuedTokens

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def to_profile(account: dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=account["id"],
        email=account["email"],
        name=account.get("name"),
        image_url=account.get("image_url"),
        credits=int(account.get("credits") or 0),
        created_at=account.get("created_at"),
    )


def _auth_response(tokens: IssuedTokens, account: dict[str, Any]) -> AuthResponse:
    return AuthResponse(
        token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_at=tokens.expires_at,
        user=to_profile(account),
    )


async def signup(
    request: SignupRequest,
    pool: asyncpg.Pool,
    credentials: CredentialService,
    settings: Settings,
) -> AuthResponse:
    email = _normalize_email(request.email)
    with log_context(email=email):
        if await fetch_account_by_email(pool, email) is not None:
            logger.info("signup rejected: email already registered", extra={"error_code": "conflict"})
            raise ConflictError("An account with this email already exists.")

        password_hash = await credentials.hash_password(request.password)
        refresh = credentials.new_refresh_token()
        # A concurrent signup for the same email still surfaces as ConflictError from the unique index.
        account = await create_account(
            pool,
            email=email,
            name=request.name.strip(),
            password_hash=password_hash,
            credits=settings.starting_credits,
            verification_token=credentials.new_verification_token(),
            refresh_token=refresh[0],
            refresh_token_expires_at=refresh[1],
        )
        tokens = credentials.issue(str(account["id"]), email, refresh)
        logger.info("account created", extra={"user_id": str(account["id"]), "credits": account.get("credits")})

    return _auth_response(tokens, account)


async def signin(request: SigninRequest, pool: asyncpg.Pool, credentials: CredentialService) -> AuthResponse:
    email = _normalize_email(request.email)
    with log_context(email=email):
        account = await fetch_account_by_email(pool, email)
        password_hash = account.get("password_hash") if account else None
        password_ok = await credentials.verify_password(request.password, password_hash)
        if account is None or not password_hash or not password_ok:
            logger.info("signin rejected", extra={"error_code": "unauthorized"})
            raise AuthenticationError("Invalid email or password.")

        account_id = str(account["id"])
        tokens = credentials.issue(account_id, account["email"])
        await record_login(
            pool,
            account_id=account_id,
            refresh_token=tokens.refresh_token,
            refresh_token_expires_at=tokens.refresh_expires_at,
        )
        logger.info("signin ok", extra={"user_id": account_id})

    return _auth_response(tokens, account)


async def refresh_tokens(request: RefreshRequest, pool: asyncpg.Pool, credentials: CredentialService) -> AuthResponse:
    new_refresh = credentials.new_refresh_token()
    account = await rotate_refresh_token(
        pool,
        refresh_token=request.refresh_token,
        new_refresh_token=new_refresh[0],
        new_expires_at=new_refresh[1],
    )
    if account is None:
        logger.info("refresh rejected: unknown or expired token", extra={"error_code": "unauthorized"})
        raise AuthenticationError("Invalid refresh token.")

    account_id = str(account["id"])
    tokens = credentials.issue(account_id, account["email"], new_refresh)
    logger.info("refresh token rotated", extra={"user_id": account_id})
    return _auth_response(tokens, account)


async def get_profile(auth: AuthContext, pool: asyncpg.Pool) -> UserProfile:
    account = await fetch_account(pool, auth.user_id)
    if account is None:
        raise NotFoundError("User not found.")
    return to_profile(account)
