"""Hex-zone indexing of coordinates.

Two points that fall in the same H3 cell are treated as the same place for
every zone-equality comparison in the service. This lets the trip store use
exact-match queries instead of radius scans.
"""

import logging
import math

import h3

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION = 7


def zone_of(lat: float | None, lng: float | None, resolution: int = DEFAULT_RESOLUTION) -> str | None:
    """Return the H3 cell id containing (lat, lng), or None for invalid input.

    Never raises: out-of-range or non-numeric coordinates produce None so that
    zone-equality filters degrade to "no match".
    """
    if lat is None or lng is None:
        return None
    try:
        lat_f = float(lat)
        lng_f = float(lng)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat_f) and math.isfinite(lng_f)):
        return None
    if not (-90.0 <= lat_f <= 90.0 and -180.0 <= lng_f <= 180.0):
        return None

    try:
        return h3.latlng_to_cell(lat_f, lng_f, resolution)
    except ValueError as e:
        logger.debug(f"Cannot index ({lat_f}, {lng_f}) at resolution {resolution}: {e}")
        return None


class ZoneIndexer:
    """Maps coordinates to hex zones at a fixed, process-wide resolution."""

    def __init__(self, resolution: int = DEFAULT_RESOLUTION):
        if not 0 <= resolution <= 15:
            raise ValueError(f"H3 resolution must be between 0 and 15, got {resolution}")
        self.resolution = resolution

    def zone_of(self, lat: float | None, lng: float | None) -> str | None:
        return zone_of(lat, lng, self.resolution)

    def zone_pair(
        self,
        origin: tuple[float, float] | None,
        destination: tuple[float, float] | None,
    ) -> tuple[str | None, str | None]:
        from_zone = self.zone_of(*origin) if origin else None
        to_zone = self.zone_of(*destination) if destination else None
        return from_zone, to_zone
