"""
Health check endpoints.

Provides liveness and readiness probes with a local store check.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from statdeck.api.deps import get_coordinator
from statdeck.models.failure import KnownError
from statdeck.services.coordinator import CanonicalStateCoordinator

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness probe.

    Returns healthy if the service is running.
    Does not check dependencies.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    coordinator: Annotated[CanonicalStateCoordinator, Depends(get_coordinator)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the local store cannot be opened.
    """
    try:
        await coordinator.storage.ping()
        return HealthResponse(status="ready", database="connected")
    except KnownError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")
