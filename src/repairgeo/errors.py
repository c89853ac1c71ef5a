"""Exception types raised by the geolocation services."""

from __future__ import annotations


class GeolocationError(Exception):
    """Base class for errors raised by this package."""


class ValidationError(GeolocationError, ValueError):
    """A required coordinate field is missing, falsy, non-numeric or out of range."""


class UpstreamUnavailable(GeolocationError, ConnectionError):
    """The reverse geocoding provider failed or returned an unusable payload."""


class InternalError(GeolocationError, RuntimeError):
    """The record store could not be read."""
