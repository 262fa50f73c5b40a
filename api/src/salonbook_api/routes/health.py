"""Health check endpoint."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from salonbook import __version__
from salonbook.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health check")
async def health() -> dict[str, Any]:
    """Liveness probe. Does not touch DynamoDB."""
    return {
        "status": "healthy",
        "environment": get_settings().environment,
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }
