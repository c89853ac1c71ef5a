"""Route group exports."""

from . import geolocation, health

__all__ = ["geolocation", "health"]
