"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_geocoder_health_check():
    """Lazy import to avoid startup failures."""
    from ...services.geocoding import check_health as geocoder_health_check
    return geocoder_health_check


@router.get("/health/geocoder", status_code=status.HTTP_200_OK)
def health_geocoder() -> dict:
    """Check reverse geocoding provider health."""
    try:
        geocoder_health_check = _get_geocoder_health_check()
        return {"service": "geocoder", "healthy": geocoder_health_check()}
    except Exception as e:
        return {"service": "geocoder", "healthy": False, "error": str(e)}


@router.get("/health/database", status_code=status.HTTP_200_OK)
def check_database() -> dict:
    """Report which record store is in use and how many records it serves."""
    from ...db.supabase import get_supabase_client
    from ...data.service_area_repository import get_active_service_areas
    from ...data.technician_repository import get_available_technicians

    supabase = get_supabase_client()
    try:
        service_areas = get_active_service_areas()
        technicians = get_available_technicians()
    except Exception as exc:
        return {
            "configured": supabase is not None,
            "connected": False,
            "error": str(exc),
            "message": f"Record store error: {exc}",
        }

    return {
        "configured": supabase is not None,
        "connected": True,
        "source": "database" if supabase is not None else "file",
        "service_areas_count": len(service_areas),
        "technicians_count": len(technicians),
        "message": (
            "Database connected."
            if supabase is not None
            else "Supabase not configured. Set REPAIRGEO_SUPABASE_URL and REPAIRGEO_SUPABASE_KEY environment variables."
        ),
    }
