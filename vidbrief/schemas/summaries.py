from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field

from vidbrief.schemas.base import CamelModel


class VideoMetadataIn(CamelModel):
    video_id: str = Field(min_length=1)
    url: str | None = None
    title: str | None = None


class GenerateSummaryRequest(CamelModel):
    content: str = Field(min_length=1)
    metadata: VideoMetadataIn


class GenerateSummaryResponse(CamelModel):
    id: UUID | None = None
    title: str
    key_points: list[str]
    full_summary: str
    source_url: str
    created_at: datetime | None = None
    already_saved: bool
    credits_remaining: int | None = None


class SaveSummaryRequest(CamelModel):
    video_id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    key_points: list[str] = Field(default_factory=list)
    full_summary: str = Field(min_length=1)
    source_url: str | None = None
    transcript: str | None = None


class SaveSummaryResponse(CamelModel):
    id: UUID
    created_at: datetime
    already_saved: bool = True
    message: str


class SummaryItem(CamelModel):
    id: UUID
    title: str
    key_points: list[str]
    full_summary: str
    source_url: str
    created_at: datetime
    transcript: str
    video_id: str | None = None


class SummaryListResponse(CamelModel):
    summaries: list[SummaryItem]
    total: int
    page: int
    limit: int


class DeleteSummaryResponse(CamelModel):
    id: UUID


class TranscriptResponse(CamelModel):
    title: str
    transcript: str
    synthesized: bool
