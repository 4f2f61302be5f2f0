from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

if TYPE_CHECKING:
    import redis

logger = logging.getLogger(__name__)

LATEST_TRIP_END_TTL = 300  # 5 minutes


class LatestTripEndCache:
    """Caches the end time of each user's most recent trip.

    Entries are dropped whenever the user submits a new trip and otherwise
    expire after a short TTL. A Redis failure is a cache miss, never an error.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int = LATEST_TRIP_END_TTL):
        self._client = client
        self._ttl = ttl_seconds

    @staticmethod
    def _key(user_id: str) -> str:
        return f"latest_trip_end:{user_id}"

    def get(self, user_id: str) -> datetime | None:
        try:
            raw = self._client.get(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Latest trip cache read failed for {user_id}: {e}")
            return None
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning(f"Discarding malformed latest trip entry for {user_id}: {raw!r}")
            return None

    def set(self, user_id: str, end_time: datetime) -> None:
        try:
            self._client.setex(self._key(user_id), self._ttl, end_time.isoformat())
        except RedisError as e:
            logger.warning(f"Latest trip cache write failed for {user_id}: {e}")

    def invalidate(self, user_id: str) -> None:
        try:
            self._client.delete(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Latest trip cache invalidation failed for {user_id}: {e}")
