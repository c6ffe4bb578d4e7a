from typing import Annotated
from uuid import UUID

import asyncpg
from fastapi import APIRouter, Depends, Query

from vidbrief.api.deps.auth import AuthContext, get_auth_context
from vidbrief.api.deps.services import get_db_pool, get_summary_generator
from vidbrief.application.summaries import (
    delete_summary,
    generate_summary,
    get_summary,
    get_transcript,
    list_summaries,
    save_summary,
)
from vidbrief.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from vidbrief.schemas.errors import ErrorResponse
from vidbrief.schemas.summaries import (
    DeleteSummaryResponse,
    GenerateSummaryRequest,
    GenerateSummaryResponse,
    SaveSummaryRequest,
    SaveSummaryResponse,
    SummaryItem,
    SummaryListResponse,
    TranscriptResponse,
)
from vidbrief.services.summarizer import SummaryGenerator

router = APIRouter(prefix="/summary", tags=["summaries"])

_AUTH_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing or invalid auth token."},
    500: {"model": ErrorResponse, "description": "Unexpected server error."},
}
_OWNED_RESPONSES = {
    **_AUTH_RESPONSES,
    400: {"model": ErrorResponse, "description": "Invalid summary id."},
    404: {"model": ErrorResponse, "description": "Summary not found."},
}


@router.post(
    "/generate",
    response_model=GenerateSummaryResponse,
    responses={
        **_AUTH_RESPONSES,
        400: {"model": ErrorResponse, "description": "Transcript or video metadata missing."},
        403: {"model": ErrorResponse, "description": "Not enough credits."},
    },
)
async def generate(
    request: GenerateSummaryRequest,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
    generator: Annotated[SummaryGenerator, Depends(get_summary_generator)],
) -> GenerateSummaryResponse:
    return await generate_summary(request, auth, pool, generator)


@router.post(
    "/save",
    response_model=SaveSummaryResponse,
    responses={
        **_AUTH_RESPONSES,
        400: {"model": ErrorResponse, "description": "Missing required fields."},
    },
)
async def save(
    request: SaveSummaryRequest,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
) -> SaveSummaryResponse:
    return await save_summary(request, auth, pool)


@router.get("", response_model=SummaryListResponse, responses=_AUTH_RESPONSES)
async def list_all(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
    page: Annotated[int, Query(ge=1)] = DEFAULT_PAGE,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = DEFAULT_PAGE_SIZE,
) -> SummaryListResponse:
    return await list_summaries(auth, pool, page=page, limit=limit)


@router.get("/{summary_id}", response_model=SummaryItem, responses=_OWNED_RESPONSES)
async def get_one(
    summary_id: UUID,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
) -> SummaryItem:
    return await get_summary(summary_id, auth, pool)


@router.delete("/{summary_id}", response_model=DeleteSummaryResponse, responses=_OWNED_RESPONSES)
async def delete_one(
    summary_id: UUID,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
) -> DeleteSummaryResponse:
    return await delete_summary(summary_id, auth, pool)


@router.get("/{summary_id}/transcript", response_model=TranscriptResponse, responses=_OWNED_RESPONSES)
async def transcript(
    summary_id: UUID,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    pool: Annotated[asyncpg.Pool, Depends(get_db_pool)],
) -> TranscriptResponse:
    return await get_transcript(summary_id, auth, pool)
