"""Health check endpoint."""

from fastapi import APIRouter

from ... import __version__
from .rooms import get_registry

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Service health status
    """
    registry = get_registry()
    return {
        "status": "healthy",
        "version": __version__,
        "rooms": len(registry),
    }
