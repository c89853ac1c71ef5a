"""Technician proximity search."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from ..config import settings
from ..data.technician_repository import get_available_technicians
from ..errors import ValidationError
from ..models.domain import Coordinate, DistanceResult, NearbyTechnicians, TechnicianRecord
from .geospatial import distance_between, require_coordinate, round_half_up, round_minutes

ARRIVAL_MINUTES_PER_KM = 2.5
ARRIVAL_WINDOW_MINUTES = 15


def average_rating(ratings: Sequence[int]) -> float:
    if not ratings:
        return 0.0
    return round_half_up(sum(ratings) / len(ratings), 1)


def estimate_arrival_range(distance_km: float) -> tuple[int, int]:
    low = round_minutes(distance_km * ARRIVAL_MINUTES_PER_KM)
    return low, low + ARRIVAL_WINDOW_MINUTES


def location_score(distance_km: float) -> float:
    """Score proximity on a 0-100 scale; closer technicians score higher."""
    if distance_km <= 5:
        score = 100.0
    elif distance_km <= 15:
        score = 85 - (distance_km - 5) * 1.5
    elif distance_km <= 30:
        score = 70 - (distance_km - 15)
    else:
        score = max(20.0, 55 - (distance_km - 30) * 0.5)
    return round_half_up(max(0.0, min(100.0, score)), 1)


def _has_skills(technician: TechnicianRecord, required: frozenset[str]) -> bool:
    return required.issubset(technician.skills)


def _is_candidate(technician: TechnicianRecord) -> bool:
    return technician.is_active and technician.is_available and technician.coordinate is not None


def rank_technicians(
    point: Coordinate,
    technicians: Iterable[TechnicianRecord],
    radius_km: float,
    required_skills: Optional[Iterable[str]] = None,
) -> tuple[DistanceResult, ...]:
    required = frozenset(skill.strip().lower() for skill in required_skills or () if skill.strip())

    in_range: list[tuple[float, TechnicianRecord]] = []
    for technician in technicians:
        if not _is_candidate(technician) or not _has_skills(technician, required):
            continue
        distance = distance_between(point, technician.coordinate)
        if distance > radius_km:
            continue
        in_range.append((distance, technician))

    # sorted() is stable, equal distances keep directory order
    in_range = sorted(in_range, key=lambda item: item[0])

    return tuple(
        DistanceResult(
            technician=technician,
            distance_km=round_half_up(distance, 1),
            average_rating=average_rating(technician.ratings),
            estimated_arrival_minutes_range=estimate_arrival_range(distance),
            location_score=location_score(distance),
        )
        for distance, technician in in_range
    )


def find_nearby_technicians(
    latitude: Any,
    longitude: Any,
    radius_km: Optional[float] = None,
    required_skills: Optional[Iterable[str]] = None,
    technicians: Optional[Iterable[TechnicianRecord]] = None,
) -> NearbyTechnicians:
    """Available technicians within ``radius_km`` of the coordinate, nearest first."""

    point = require_coordinate(latitude, longitude)
    if radius_km is None:
        radius_km = settings.default_search_radius_km
    if radius_km <= 0:
        raise ValidationError("A positive search radius is required")

    if technicians is None:
        technicians = get_available_technicians()

    return NearbyTechnicians(
        technicians=rank_technicians(point, technicians, radius_km, required_skills),
        search_radius=radius_km,
        coordinates=point,
    )
