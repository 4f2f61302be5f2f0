"""Geospatial helpers: hex-zone indexing, great-circle distance and zone names."""

from .distance import haversine_distance_km
from .zones import ZoneIndexer, zone_of

__all__ = ["ZoneIndexer", "zone_of", "haversine_distance_km"]
