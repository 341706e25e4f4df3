"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/catalog", status_code=status.HTTP_200_OK)
def health_catalog() -> dict:
    """Report the loaded coverage catalog."""
    from ...data.areas_repository import get_catalog

    try:
        snapshot = get_catalog().snapshot()
    except (FileNotFoundError, ValueError) as exc:
        return {"loaded": False, "error": str(exc)}
    return {
        "loaded": True,
        "version": snapshot.version,
        "areas": len(snapshot.areas),
        "active_areas": len(snapshot.list_active_areas()),
        "zones": len(snapshot.zones),
    }
