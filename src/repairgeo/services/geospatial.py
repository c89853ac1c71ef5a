"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Any

from ..errors import ValidationError
from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between(origin: Coordinate, destination: Coordinate) -> float:
    return haversine_km(origin.latitude, origin.longitude, destination.latitude, destination.longitude)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3), unlike the builtin banker's rounding."""

    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_minutes(value: float) -> int:
    return int(round_half_up(value))


def require_coordinate(
    latitude: Any,
    longitude: Any,
    message: str = "Latitude and longitude are required",
) -> Coordinate:
    """Validate a raw latitude/longitude pair and return a Coordinate.

    Zero counts as missing, matching the behaviour clients already rely on.
    """

    if isinstance(latitude, bool) or isinstance(longitude, bool):
        raise ValidationError(f"{message}; numeric values are required")
    if not latitude or not longitude:
        raise ValidationError(message)
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{message}; numeric values are required") from exc
    if math.isnan(lat) or math.isnan(lon):
        raise ValidationError(f"{message}; numeric values are required")
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise ValidationError(
            "Valid latitude (-90 to 90) and longitude (-180 to 180) are required"
        )
    return Coordinate(latitude=lat, longitude=lon)
