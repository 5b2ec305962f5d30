"""Health check endpoint."""

import logging

from fastapi import APIRouter

from chocan.api.dependencies import StoreDep
from chocan.api.schemas import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check(store: StoreDep) -> HealthResponse:
    """Report liveness and, for stores that track it, record counts."""
    summary = getattr(store, "summary", None)
    return HealthResponse(
        status="healthy",
        store=type(store).__name__,
        counts=summary() if callable(summary) else None,
    )
