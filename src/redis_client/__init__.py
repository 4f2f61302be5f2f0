"""Redis-backed caches."""

from .latest_trip_cache import LatestTripEndCache

__all__ = ["LatestTripEndCache"]
