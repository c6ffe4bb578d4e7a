from fastapi import APIRouter, Request

from vidbrief.application.meta import health_status, readiness_status, status_snapshot
from vidbrief.schemas.errors import ErrorResponse
from vidbrief.schemas.meta import HealthResponse, ReadyResponse, StatusResponse

router = APIRouter(prefix="/meta", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return await health_status()


@router.get(
    "/ready",
    response_model=ReadyResponse,
    responses={503: {"model": ErrorResponse, "description": "Database unavailable."}},
)
async def ready(request: Request) -> ReadyResponse:
    return await readiness_status(getattr(request.app.state, "db_pool", None))


@router.get("/status", response_model=StatusResponse)
async def status(request: Request) -> StatusResponse:
    state = request.app.state
    return await status_snapshot(getattr(state, "db_pool", None), getattr(state, "generator", None))
