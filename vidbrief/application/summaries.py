from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

import asyncpg

from vidbrief.api.deps.auth import AuthContext
from vidbrief.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, DEFAULT_VIDEO_TITLE
from vidbrief.core.errors import InsufficientCreditsError, NotFoundError, PersistenceError
from vidbrief.core.logging import log_context
from vidbrief.crud.accounts import fetch_account
from vidbrief.crud.summaries import (
    create_summary,
    create_summary_with_debit,
    delete_summary as delete_summary_row,
    fetch_summary,
    fetch_summary_by_video,
    list_summaries as list_summary_rows,
)
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
from vidbrief.services import codec
from vidbrief.services.summarizer import SummaryGenerator, VideoMetadata
from vidbrief.services.youtube import canonical_video_url, video_id_from_url

logger = logging.getLogger(__name__)


def to_summary_item(row: dict[str, Any]) -> SummaryItem:
    content = codec.decode(row.get("summary"), row.get("body_format"))
    video_url = row.get("video_url") or ""
    return SummaryItem(
        id=row["id"],
        title=content.title,
        key_points=content.key_points,
        full_summary=content.prose,
        source_url=video_url,
        created_at=row["created_at"],
        transcript=row.get("transcript") or "",
        video_id=row.get("video_id") or video_id_from_url(video_url),
    )


async def _current_credits(pool: asyncpg.Pool, user_id: str) -> int | None:
    account = await fetch_account(pool, user_id)
    if account is None:
        return None
    return max(0, int(account.get("credits") or 0))


def _stored_response(
    row: dict[str, Any],
    *,
    fallback_title: str,
    credits_remaining: int | None,
) -> GenerateSummaryResponse:
    content = codec.decode(row.get("summary"), row.get("body_format"))
    return GenerateSummaryResponse(
        id=row["id"],
        title=content.title or fallback_title,
        key_points=content.key_points,
        full_summary=content.prose,
        source_url=row["video_url"],
        created_at=row["created_at"],
        already_saved=True,
        credits_remaining=credits_remaining,
    )


async def generate_summary(
    request: GenerateSummaryRequest,
    auth: AuthContext,
    pool: asyncpg.Pool,
    generator: SummaryGenerator,
) -> GenerateSummaryResponse:
    metadata = request.metadata
    video_url = canonical_video_url(metadata.video_id, metadata.url)
    fallback_title = metadata.title or DEFAULT_VIDEO_TITLE

    with log_context(user_id=auth.user_id, video_id=metadata.video_id):
        existing = await fetch_summary_by_video(pool, user_id=auth.user_id, video_url=video_url)
        if existing is not None:
            logger.info("summary already stored, no credit charged", extra={"summary_id": str(existing["id"])})
            return _stored_response(
                existing,
                fallback_title=fallback_title,
                credits_remaining=await _current_credits(pool, auth.user_id),
            )

        credits = await _current_credits(pool, auth.user_id)
        if not credits:
            logger.info("generation refused: no credits", extra={"error_code": "insufficient_credits"})
            raise InsufficientCreditsError("Not enough credits to generate summary.")

        logger.info("generating summary", extra={"content_length": len(request.content)})
        generated = await generator.generate(
            request.content,
            VideoMetadata(video_id=metadata.video_id, title=metadata.title, url=video_url),
        )

        stored = await create_summary_with_debit(
            pool,
            user_id=auth.user_id,
            video_id=metadata.video_id,
            video_url=video_url,
            title=generated.title,
            summary=codec.encode(generated.title, generated.key_points, generated.full_summary),
            body_format=codec.BODY_FORMAT_V1,
            transcript=request.content,
        )
        if not stored.created:
            # A concurrent request stored this video first; its row wins and nothing was charged.
            logger.info("summary stored concurrently, no credit charged", extra={"summary_id": str(stored.row["id"])})
            return _stored_response(
                stored.row,
                fallback_title=fallback_title,
                credits_remaining=await _current_credits(pool, auth.user_id),
            )

        logger.info(
            "summary stored",
            extra={
                "summary_id": str(stored.row["id"]),
                "used_fallback": generated.used_fallback,
                "credits_remaining": stored.credits_remaining,
            },
        )
        content = codec.decode(stored.row["summary"], stored.row.get("body_format"))
        return GenerateSummaryResponse(
            id=stored.row["id"],
            title=content.title or generated.title,
            key_points=content.key_points,
            full_summary=content.prose,
            source_url=video_url,
            created_at=stored.row["created_at"],
            already_saved=False,
            credits_remaining=stored.credits_remaining,
        )


async def save_summary(request: SaveSummaryRequest, auth: AuthContext, pool: asyncpg.Pool) -> SaveSummaryResponse:
    video_url = canonical_video_url(request.video_id, request.source_url)
    with log_context(user_id=auth.user_id, video_id=request.video_id):
        stored = await create_summary(
            pool,
            user_id=auth.user_id,
            video_id=request.video_id,
            video_url=video_url,
            title=request.title.strip(),
            summary=codec.encode(request.title, request.key_points, request.full_summary),
            body_format=codec.BODY_FORMAT_V1,
            transcript=request.transcript or "",
        )
        logger.info("summary save", extra={"summary_id": str(stored.row["id"]), "created": stored.created})

    return SaveSummaryResponse(
        id=stored.row["id"],
        created_at=stored.row["created_at"],
        already_saved=True,
        message="Summary saved successfully" if stored.created else "Summary already saved",
    )


async def list_summaries(
    auth: AuthContext,
    pool: asyncpg.Pool,
    *,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_PAGE_SIZE,
) -> SummaryListResponse:
    with log_context(user_id=auth.user_id):
        try:
            rows, total = await list_summary_rows(pool, user_id=auth.user_id, limit=limit, offset=(page - 1) * limit)
        except PersistenceError as exc:
            empty = SummaryListResponse(summaries=[], total=0, page=DEFAULT_PAGE, limit=DEFAULT_PAGE_SIZE)
            raise PersistenceError("Failed to fetch summaries.", data=empty.model_dump(by_alias=True)) from exc

        logger.info("summaries listed", extra={"count": len(rows), "total": total})
        return SummaryListResponse(
            summaries=[to_summary_item(row) for row in rows],
            total=total,
            page=page,
            limit=limit,
        )


async def _owned_summary(pool: asyncpg.Pool, summary_id: UUID, user_id: str) -> dict[str, Any]:
    row = await fetch_summary(pool, summary_id=str(summary_id), user_id=user_id)
    if row is None:
        logger.info("summary not found", extra={"error_code": "not_found"})
        raise NotFoundError("Summary not found.")
    return row


async def get_summary(summary_id: UUID, auth: AuthContext, pool: asyncpg.Pool) -> SummaryItem:
    with log_context(user_id=auth.user_id, summary_id=str(summary_id)):
        return to_summary_item(await _owned_summary(pool, summary_id, auth.user_id))


async def delete_summary(summary_id: UUID, auth: AuthContext, pool: asyncpg.Pool) -> DeleteSummaryResponse:
    with log_context(user_id=auth.user_id, summary_id=str(summary_id)):
        await _owned_summary(pool, summary_id, auth.user_id)
        if not await delete_summary_row(pool, summary_id=str(summary_id), user_id=auth.user_id):
            raise NotFoundError("Summary not found.")
        logger.info("summary deleted")
    return DeleteSummaryResponse(id=summary_id)


async def get_transcript(summary_id: UUID, auth: AuthContext, pool: asyncpg.Pool) -> TranscriptResponse:
    with log_context(user_id=auth.user_id, summary_id=str(summary_id)):
        row = await _owned_summary(pool, summary_id, auth.user_id)
        content = codec.decode(row.get("summary"), row.get("body_format"))
        transcript = row.get("transcript") or ""
        if transcript.strip():
            return TranscriptResponse(title=content.title, transcript=transcript, synthesized=False)

        logger.info("no stored transcript, synthesizing placeholder")
        return TranscriptResponse(
            title=content.title,
            transcript=codec.synthesize_transcript(content.prose),
            synthesized=True,
        )
