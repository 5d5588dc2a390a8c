"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from learning.web.schemas import HealthResponse
from learning.web.sessions import get_session_manager

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version="0.1.0",
        timestamp=datetime.now(timezone.utc).isoformat(),
        sessions=get_session_manager().get_session_count(),
    )
