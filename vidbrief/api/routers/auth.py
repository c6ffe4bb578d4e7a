from typing import Annotated

import asyncpg
from fastapi import APIRouter, Depends

from vidbrief.api.deps.auth import AuthContext, get_auth_context
from vidbrief.api.deps.services import get_app_settings, get_credential_service, get_db_pool
from vidbrief.application.auth import get_profile, refresh_tokens, signin, signup
from vidbrief.core.config import Settings
from vidbrief.schemas.auth import AuthResponse, RefreshRequest, SigninRequest, SignupRequest, UserProfile
from vidbrief.schemas.errors import ErrorResponse
from vidbrief.services.credentials import CredentialService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid fields."},
        409: {"model": ErrorResponse, "description": "Email already registered."},
        500: {"model": ErrorResponse, "description": "Unexpected server error."},
    },
)
async def signup_route(
    request: SignupRequest,
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthResponse:
    return await signup(request, pool, credentials, settings)


@router.post(
    "/signin",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing or invalid fields."},
        401: {"model": ErrorResponse, "description": "Invalid email or password."},
        500: {"model": ErrorResponse, "description": "Unexpected server error."},
    },
)
async def signin_route(
    request: SigninRequest,
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
) -> AuthResponse:
    return await signin(request, pool, credentials)


@router.post(
    "/refresh",
    response_model=AuthResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Refresh token is required."},
        401: {"model": ErrorResponse, "description": "Invalid or expired refresh token."},
        500: {"model": ErrorResponse, "description": "Unexpected server error."},
    },
)
async def refresh_route(
    request: RefreshRequest,
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
    credentials: Annotated[CredentialService, Depends(get_credential_service)],
) -> AuthResponse:
    return await refresh_tokens(request, pool, credentials)


@router.get(
    "/me",
    response_model=UserProfile,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid auth token."},
        404: {"model": ErrorResponse, "description": "User not found."},
    },
)
async def me(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
) -> UserProfile:
    return await get_profile(auth, pool)
