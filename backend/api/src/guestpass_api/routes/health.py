"""Health check endpoint."""

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from guestpass import __version__

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service health")
async def health() -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": "guestpass-api",
        "version": __version__,
        "environment": os.getenv("ENVIRONMENT", "dev"),
        "timestamp": datetime.now(UTC).isoformat(),
    }
