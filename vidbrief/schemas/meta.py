from __future__ import annotations

from vidbrief.schemas.base import CamelModel


class HealthResponse(CamelModel):
    status: str


class ReadyResponse(CamelModel):
    status: str


class StatusResponse(CamelModel):
    status: str
    version: str | None = None
    uptime_seconds: float | None = None
    database: str
    summary_provider: str
