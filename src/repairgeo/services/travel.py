"""Straight-line travel time estimates."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..errors import ValidationError
from ..models.domain import Coordinate, TravelEstimate
from .geospatial import distance_between, require_coordinate, round_half_up, round_minutes

DEFAULT_MODE = "driving"
BUFFER_RATIO = 0.15

# minutes per km
MODE_RATES = {
    "driving": 2.2,
    "walking": 12.0,
    "transit": 4.5,
}

_MISSING_ENDPOINTS = "Origin and destination coordinates are required"


def _endpoint(value: Any) -> Coordinate:
    if isinstance(value, Coordinate):
        return value
    if not value:
        raise ValidationError(_MISSING_ENDPOINTS)
    if isinstance(value, Mapping):
        return require_coordinate(value.get("latitude"), value.get("longitude"), _MISSING_ENDPOINTS)
    return require_coordinate(
        getattr(value, "latitude", None), getattr(value, "longitude", None), _MISSING_ENDPOINTS
    )


def estimate_travel_time(origin: Any, destination: Any, mode: Optional[str] = None) -> TravelEstimate:
    """Estimate door-to-door minutes between two points.

    Unknown modes are priced at the driving rate but echoed back unchanged.
    """

    start = _endpoint(origin)
    end = _endpoint(destination)
    mode = mode or DEFAULT_MODE
    rate = MODE_RATES.get(mode, MODE_RATES[DEFAULT_MODE])

    distance = distance_between(start, end)
    base_time = round_minutes(distance * rate)
    buffer_time = round_minutes(base_time * BUFFER_RATIO)
    return TravelEstimate(
        distance_km=round_half_up(distance, 1),
        base_time_minutes=base_time,
        buffer_minutes=buffer_time,
        total_time_minutes=base_time + buffer_time,
        mode=mode,
        origin=start,
        destination=end,
    )
