"""Health check endpoint."""

from fastapi import APIRouter, Request

from profman import __version__
from profman.core.records import now_iso

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    """Check API health status."""
    return {
        "status": "OK",
        "timestamp": now_iso(),
        "environment": request.app.state.config.env,
        "version": __version__,
    }
