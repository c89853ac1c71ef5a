"""Geolocation endpoints."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, HTTPException, Query, status

from ...data.service_area_repository import get_active_service_areas
from ...errors import ValidationError
from ...schemas.geolocation import (
    Envelope,
    NearbyTechniciansData,
    NearbyTechniciansRequest,
    ReverseGeocodeData,
    ReverseGeocodeRequest,
    ServiceAreaCheckData,
    ServiceAreaModel,
    ServiceAreaRequest,
    TravelTimeData,
    TravelTimeRequest,
)
from ...services.geocoding import reverse_geocode
from ...services.service_areas import check_service_area
from ...services.technicians import find_nearby_technicians
from ...services.travel import estimate_travel_time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geolocation", tags=["geolocation"])


@router.post("/reverse-geocode", response_model=Envelope[ReverseGeocodeData], status_code=status.HTTP_200_OK)
def reverse_geocode_coordinates(payload: ReverseGeocodeRequest) -> Envelope[ReverseGeocodeData]:
    """Resolve coordinates to an address. Provider outages degrade to a fallback record."""
    try:
        result = reverse_geocode(payload.latitude, payload.longitude)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error reverse geocoding coordinates: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reverse geocode coordinates",
        ) from exc
    return Envelope(data=ReverseGeocodeData.from_domain(result))


@router.post("/check-service-area", response_model=Envelope[ServiceAreaCheckData], status_code=status.HTTP_200_OK)
def check_service_area_endpoint(payload: ServiceAreaRequest) -> Envelope[ServiceAreaCheckData]:
    try:
        result = check_service_area(
            payload.latitude,
            payload.longitude,
            radius_km=payload.radiusKm,
            organization_id=payload.organizationId,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error checking service area: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check service area",
        ) from exc
    return Envelope(data=ServiceAreaCheckData.from_domain(result))


@router.post("/nearby-technicians", response_model=Envelope[NearbyTechniciansData], status_code=status.HTTP_200_OK)
def nearby_technicians(payload: NearbyTechniciansRequest) -> Envelope[NearbyTechniciansData]:
    """Available technicians within the search radius, nearest first."""
    try:
        result = find_nearby_technicians(
            payload.latitude,
            payload.longitude,
            radius_km=payload.radiusKm,
            required_skills=payload.requiredSkills,
        )
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error searching nearby technicians: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to find nearby technicians",
        ) from exc
    return Envelope(data=NearbyTechniciansData.from_domain(result))


@router.post("/travel-time", response_model=Envelope[TravelTimeData], status_code=status.HTTP_200_OK)
def travel_time(payload: TravelTimeRequest) -> Envelope[TravelTimeData]:
    try:
        estimate = estimate_travel_time(payload.origin, payload.destination, payload.mode)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(f"Error calculating travel time: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to calculate travel time",
        ) from exc
    return Envelope(data=TravelTimeData.from_domain(estimate))


@router.get("/service-areas", response_model=Envelope[List[ServiceAreaModel]], status_code=status.HTTP_200_OK)
def list_service_areas(
    organizationId: str | None = Query(default=None, description="Filter service areas by organization"),
) -> Envelope[List[ServiceAreaModel]]:
    """Active service areas, in store order."""
    try:
        areas = get_active_service_areas(organizationId)
    except Exception as exc:
        logger.exception(f"Error listing service areas: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list service areas",
        ) from exc
    return Envelope(data=[ServiceAreaModel.from_domain(area) for area in areas])
