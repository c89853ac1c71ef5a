"""Domain models for service areas, technicians and derived estimates."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(slots=True, frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def as_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(slots=True, frozen=True)
class ServiceArea:
    """Administrator-defined circular region where repair service is offered."""

    id: str
    name: str
    center: Coordinate
    radius_km: float
    organization_id: Optional[str] = None
    is_active: bool = True


@dataclass(slots=True, frozen=True)
class TechnicianRecord:
    """Technician directory entry. ``coordinate`` is None when the technician cannot be located."""

    id: str
    name: str
    coordinate: Optional[Coordinate]
    is_active: bool = True
    is_available: bool = True
    skills: frozenset[str] = field(default_factory=frozenset)
    ratings: tuple[int, ...] = ()


@dataclass(slots=True, frozen=True)
class DistanceResult:
    technician: TechnicianRecord
    distance_km: float
    average_rating: float
    estimated_arrival_minutes_range: tuple[int, int]
    location_score: float

    @property
    def estimated_arrival_time(self) -> str:
        low, high = self.estimated_arrival_minutes_range
        return f"{low}-{high} minutes"


@dataclass(slots=True, frozen=True)
class TravelEstimate:
    distance_km: float
    base_time_minutes: int
    buffer_minutes: int
    total_time_minutes: int
    mode: str
    origin: Optional[Coordinate] = None
    destination: Optional[Coordinate] = None


@dataclass(slots=True, frozen=True)
class GeocodedAddress:
    address: str
    city: str
    state: str
    zip_code: str
    country: str
    coordinates: Coordinate


@dataclass(slots=True, frozen=True)
class ServiceAreaMatch:
    area: ServiceArea
    distance_km: float


@dataclass(slots=True, frozen=True)
class ServiceAreaCheck:
    is_serviceable: bool
    service_areas: tuple[ServiceAreaMatch, ...]
    nearest_area: Optional[ServiceAreaMatch]
    coordinates: Coordinate


@dataclass(slots=True, frozen=True)
class NearbyTechnicians:
    technicians: tuple[DistanceResult, ...]
    search_radius: float
    coordinates: Coordinate

    @property
    def total_found(self) -> int:
        return len(self.technicians)
