from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

import asyncpg
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from vidbrief.api.deps.services import get_credential_service, get_db_pool
from vidbrief.core.errors import AuthenticationError
from vidbrief.core.logging import log_context
from vidbrief.crud.accounts import fetch_account
from vidbrief.services.credentials import CredentialService

security = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    access_token: str
    user_id: str
    email: str


async def get_auth_context(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    credential_service: Annotated[CredentialService, Depends(get_credential_service)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
) -> AuthContext:
    request_id = getattr(request.state, "request_id", None)
    base_log_context = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
    }
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        with log_context(**base_log_context):
            logger.warning("Missing or invalid Authorization header.", extra={"error_code": "unauthorized"})
        raise AuthenticationError("Missing or invalid Authorization header.")

    access_token = credentials.credentials
    try:
        claims = credential_service.verify(access_token)
    except AuthenticationError as exc:
        with log_context(**base_log_context):
            logger.warning("Access token rejected: %s", exc.detail, extra={"error_code": "unauthorized"})
        raise

    account = await fetch_account(pool, claims.account_id)
    if account is None:
        with log_context(**base_log_context):
            logger.warning("Token refers to a missing account.", extra={"error_code": "unauthorized"})
        raise AuthenticationError("User not found.")

    return AuthContext(access_token=access_token, user_id=str(account["id"]), email=account["email"])
