"""Reverse geocoding against a Nominatim-compatible provider with a local fallback."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from ..config import settings
from ..errors import UpstreamUnavailable
from ..models.domain import Coordinate, GeocodedAddress
from .geospatial import require_coordinate

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

_CITY_KEYS = ("city", "town", "village", "hamlet", "municipality", "suburb")


class ReverseGeocoder(Protocol):
    def reverse(self, coordinate: Coordinate) -> GeocodedAddress:
        """Resolve a coordinate or raise UpstreamUnavailable."""
        ...


class NominatimGeocoder:
    """Single-attempt client for the Nominatim ``/reverse`` endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        connect_timeout: float | None = None,
    ) -> None:
        self.base_url = (base_url or settings.geocoder_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Geocoder base URL is not configured.")
        self.user_agent = user_agent or settings.geocoder_user_agent
        self.timeout = timeout if timeout is not None else settings.geocoder_timeout_seconds
        self.connect_timeout = (
            connect_timeout if connect_timeout is not None else settings.geocoder_connect_timeout_seconds
        )

    def _get_client(self) -> httpx.Client:
        # Limits apply per operation (connect, read, write, pool), not to the whole request.
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.connect_timeout, self.timeout)),
            headers={"User-Agent": self.user_agent, "Accept": "application/json"},
        )

    def reverse(self, coordinate: Coordinate) -> GeocodedAddress:
        params = {
            "lat": coordinate.latitude,
            "lon": coordinate.longitude,
            "format": "jsonv2",
            "addressdetails": 1,
        }
        url = f"{self.base_url}/reverse"

        client = self._get_client()
        try:
            response = client.get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise UpstreamUnavailable(
                f"Geocoder returned HTTP {exc.response.status_code}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(f"Geocoder timed out after {self.timeout:.1f}s") from exc
        except (httpx.HTTPError, OSError) as exc:
            raise UpstreamUnavailable(f"Failed to reach geocoder at {self.base_url}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamUnavailable("Geocoder returned a non-JSON body") from exc
        finally:
            client.close()

        return parse_nominatim_payload(payload, coordinate)

    def check_health(self) -> bool:
        client = self._get_client()
        try:
            response = client.get(f"{self.base_url}/status", params={"format": "json"})
            return response.status_code == 200
        except httpx.HTTPError as exc:
            logger.warning(f"Geocoder health check failed: {exc}")
            return False
        finally:
            client.close()


def _component(address: dict, *keys: str) -> str:
    for key in keys:
        value = address.get(key)
        if value:
            return str(value)
    return UNKNOWN


def parse_nominatim_payload(payload: Any, coordinate: Coordinate) -> GeocodedAddress:
    """Map a Nominatim jsonv2 response onto a GeocodedAddress."""

    if not isinstance(payload, dict):
        raise UpstreamUnavailable("Geocoder payload is not an object")
    if "error" in payload:
        raise UpstreamUnavailable(f"Geocoder could not resolve location: {payload['error']}")
    address = payload.get("address")
    if not isinstance(address, dict):
        raise UpstreamUnavailable("Geocoder payload has no address details")

    street = " ".join(
        str(part) for part in (address.get("house_number"), address.get("road")) if part
    )
    if not street:
        display_name = str(payload.get("display_name") or "")
        street = display_name.split(",")[0].strip()

    return GeocodedAddress(
        address=street or UNKNOWN,
        city=_component(address, *_CITY_KEYS),
        state=_component(address, "state", "region"),
        zip_code=_component(address, "postcode"),
        country=_component(address, "country"),
        coordinates=coordinate,
    )


def fallback_address(coordinate: Coordinate) -> GeocodedAddress:
    """Deterministic record used whenever the provider is unavailable."""
    return GeocodedAddress(
        address=f"{coordinate.latitude}, {coordinate.longitude}",
        city=UNKNOWN,
        state=UNKNOWN,
        zip_code=UNKNOWN,
        country=UNKNOWN,
        coordinates=coordinate,
    )


def reverse_geocode(latitude: Any, longitude: Any, geocoder: ReverseGeocoder | None = None) -> GeocodedAddress:
    """Resolve a coordinate to an address, degrading to the fallback record on provider failure."""

    coordinate = require_coordinate(latitude, longitude)
    if geocoder is None:
        if not settings.geocoder_enabled:
            return fallback_address(coordinate)
        geocoder = NominatimGeocoder()

    try:
        return geocoder.reverse(coordinate)
    except UpstreamUnavailable as exc:
        logger.warning(
            f"Reverse geocoding failed for ({coordinate.latitude}, {coordinate.longitude}), "
            f"using fallback address: {exc}"
        )
        return fallback_address(coordinate)


def check_health() -> bool:
    """Return True when the configured geocoder answers its status endpoint."""
    if not settings.geocoder_enabled:
        return False
    return NominatimGeocoder().check_health()
