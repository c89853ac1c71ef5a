"""Service area evaluation: is a coordinate inside any active circular service area?"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ..data.service_area_repository import get_active_service_areas
from ..models.domain import Coordinate, ServiceArea, ServiceAreaCheck, ServiceAreaMatch
from .geospatial import distance_between, require_coordinate, round_half_up

DEFAULT_RADIUS_KM = 50.0


def match_service_areas(point: Coordinate, areas: Sequence[ServiceArea]) -> tuple[ServiceAreaMatch, ...]:
    """Active areas whose own radius covers the point, in store order."""

    matches: list[ServiceAreaMatch] = []
    for area in areas:
        if not area.is_active:
            continue
        distance = distance_between(point, area.center)
        if distance <= area.radius_km:
            matches.append(ServiceAreaMatch(area=area, distance_km=round_half_up(distance, 1)))
    return tuple(matches)


def check_service_area(
    latitude: Any,
    longitude: Any,
    radius_km: float = DEFAULT_RADIUS_KM,
    organization_id: Optional[str] = None,
    areas: Optional[Sequence[ServiceArea]] = None,
) -> ServiceAreaCheck:
    """Evaluate a coordinate against the configured service areas.

    ``radius_km`` is accepted for API compatibility only: inclusion is decided
    by each area's configured radius. ``nearest_area`` is the first matching
    area in store order, not necessarily the closest one; every match carries
    its ``distance_km`` for clients that need the true minimum.
    """

    point = require_coordinate(latitude, longitude)

    if areas is None:
        areas = get_active_service_areas(organization_id)
    elif organization_id is not None:
        areas = [area for area in areas if area.organization_id == organization_id]

    matches = match_service_areas(point, areas)
    return ServiceAreaCheck(
        is_serviceable=bool(matches),
        service_areas=matches,
        nearest_area=matches[0] if matches else None,
        coordinates=point,
    )
