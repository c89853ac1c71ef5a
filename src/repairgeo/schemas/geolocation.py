"""Geolocation request/response schemas."""

from __future__ import annotations

from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator

from ..models.domain import (
    Coordinate,
    DistanceResult,
    GeocodedAddress,
    NearbyTechnicians,
    ServiceAreaCheck,
    ServiceAreaMatch,
    ServiceArea,
    TravelEstimate,
)

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Success wrapper; failures are rendered as ``{"success": false, "error": ...}``."""

    success: bool = True
    data: DataT


# Requests. Coordinates stay optional here so a missing value reaches the
# service layer and fails with the "required" message clients expect.


class CoordinateModel(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _reject_booleans(cls, value):
        # lax float parsing would turn true into 1.0
        if isinstance(value, bool):
            raise ValueError("a numeric coordinate is required")
        return value


class ReverseGeocodeRequest(CoordinateModel):
    pass


class ServiceAreaRequest(CoordinateModel):
    radiusKm: float = Field(50.0, gt=0, description="Accepted for compatibility; areas use their own radius.")
    organizationId: Optional[str] = Field(default=None, description="Restrict the check to one organization.")


class NearbyTechniciansRequest(CoordinateModel):
    radiusKm: Optional[float] = Field(None, gt=0)
    requiredSkills: Optional[List[str]] = Field(
        default=None,
        description="Only return technicians holding every listed skill.",
    )


class TravelTimeRequest(BaseModel):
    origin: Optional[CoordinateModel] = None
    destination: Optional[CoordinateModel] = None
    mode: Optional[str] = Field(default=None, description="driving, walking or transit.")


# Responses


class CoordinatesModel(BaseModel):
    latitude: float
    longitude: float

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> "CoordinatesModel":
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude)


class ReverseGeocodeData(BaseModel):
    address: str
    city: str
    state: str
    zipCode: str
    country: str
    coordinates: CoordinatesModel

    @classmethod
    def from_domain(cls, result: GeocodedAddress) -> "ReverseGeocodeData":
        return cls(
            address=result.address,
            city=result.city,
            state=result.state,
            zipCode=result.zip_code,
            country=result.country,
            coordinates=CoordinatesModel.from_domain(result.coordinates),
        )


class ServiceAreaModel(BaseModel):
    id: str
    name: str
    centerLatitude: float
    centerLongitude: float
    radiusKm: float
    organizationId: Optional[str] = None
    isActive: bool
    distanceKm: Optional[float] = None

    @classmethod
    def from_domain(cls, area: ServiceArea, distance_km: float | None = None) -> "ServiceAreaModel":
        return cls(
            id=area.id,
            name=area.name,
            centerLatitude=area.center.latitude,
            centerLongitude=area.center.longitude,
            radiusKm=area.radius_km,
            organizationId=area.organization_id,
            isActive=area.is_active,
            distanceKm=distance_km,
        )

    @classmethod
    def from_match(cls, match: ServiceAreaMatch) -> "ServiceAreaModel":
        return cls.from_domain(match.area, match.distance_km)


class ServiceAreaCheckData(BaseModel):
    isServiceable: bool
    serviceAreas: List[ServiceAreaModel]
    nearestArea: Optional[ServiceAreaModel]
    coordinates: CoordinatesModel

    @classmethod
    def from_domain(cls, check: ServiceAreaCheck) -> "ServiceAreaCheckData":
        return cls(
            isServiceable=check.is_serviceable,
            serviceAreas=[ServiceAreaModel.from_match(match) for match in check.service_areas],
            nearestArea=ServiceAreaModel.from_match(check.nearest_area) if check.nearest_area else None,
            coordinates=CoordinatesModel.from_domain(check.coordinates),
        )


class TechnicianModel(BaseModel):
    id: str
    name: str
    skills: List[str]
    isAvailable: bool


class NearbyTechnicianModel(BaseModel):
    technician: TechnicianModel
    distanceKm: float
    averageRating: float
    estimatedArrivalMinutesRange: List[int]
    estimatedArrivalTime: str
    locationScore: float

    @classmethod
    def from_domain(cls, result: DistanceResult) -> "NearbyTechnicianModel":
        technician = result.technician
        return cls(
            technician=TechnicianModel(
                id=technician.id,
                name=technician.name,
                skills=sorted(technician.skills),
                isAvailable=technician.is_available,
            ),
            distanceKm=result.distance_km,
            averageRating=result.average_rating,
            estimatedArrivalMinutesRange=list(result.estimated_arrival_minutes_range),
            estimatedArrivalTime=result.estimated_arrival_time,
            locationScore=result.location_score,
        )


class NearbyTechniciansData(BaseModel):
    technicians: List[NearbyTechnicianModel]
    searchRadius: float
    coordinates: CoordinatesModel
    totalFound: int

    @classmethod
    def from_domain(cls, result: NearbyTechnicians) -> "NearbyTechniciansData":
        return cls(
            technicians=[NearbyTechnicianModel.from_domain(item) for item in result.technicians],
            searchRadius=result.search_radius,
            coordinates=CoordinatesModel.from_domain(result.coordinates),
            totalFound=result.total_found,
        )


class TravelTimeData(BaseModel):
    distanceKm: float
    estimatedTravelTimeMinutes: int
    baseTime: int
    bufferTime: int
    mode: str
    origin: CoordinatesModel
    destination: CoordinatesModel

    @classmethod
    def from_domain(cls, estimate: TravelEstimate) -> "TravelTimeData":
        return cls(
            distanceKm=estimate.distance_km,
            estimatedTravelTimeMinutes=estimate.total_time_minutes,
            baseTime=estimate.base_time_minutes,
            bufferTime=estimate.buffer_minutes,
            mode=estimate.mode,
            origin=CoordinatesModel.from_domain(estimate.origin),
            destination=CoordinatesModel.from_domain(estimate.destination),
        )
