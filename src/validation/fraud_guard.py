"""Duplicate and abuse checks for trip submissions.

Each check answers allow or deny with a reason. The checks only read from
the store; when a read fails the check allows the trip and logs the error,
keeping submissions available while the store is degraded.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from core.exceptions import StoreUnavailableError
from db.repositories import TripRepository
from db.utils import utc_now
from redis_client import LatestTripEndCache
from trip import Trip

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verdict:
    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "Verdict":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "Verdict":
        return cls(allowed=False, reason=reason)


class FraudGuard:
    def __init__(
        self,
        trips: TripRepository,
        latest_trip_cache: LatestTripEndCache | None = None,
        duplicate_window_minutes: int = 30,
        same_zone_window_minutes: int = 30,
        time_feasibility_enabled: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.trips = trips
        self.latest_trip_cache = latest_trip_cache
        self.duplicate_window = timedelta(minutes=duplicate_window_minutes)
        self.same_zone_window = timedelta(minutes=same_zone_window_minutes)
        self.time_feasibility_enabled = time_feasibility_enabled
        self._clock = clock

    def screen(self, trip: Trip) -> Verdict:
        """Run every enabled check in order and return the first denial."""
        checks: list[tuple[str, Callable[[Trip], Verdict]]] = [
            ("duplicate", self.check_duplicate),
            ("same_zone", self.check_same_zone),
        ]
        if self.time_feasibility_enabled:
            checks.append(("time_feasibility", self.check_time_feasibility))

        for name, check in checks:
            verdict = self._fail_open(name, check, trip)
            if not verdict.allowed:
                logger.info(f"Trip from {trip.user_id} denied by {name} check: {verdict.reason}")
                return verdict
        return Verdict.allow()

    def check_duplicate(self, trip: Trip) -> Verdict:
        """Deny when the user already logged this zone pair on the same date near this start time."""
        if trip.date is None:
            return Verdict.allow()
        candidates = self.trips.find_by_user_and_window(
            trip.user_id, trip.from_zone, trip.to_zone, trip.date
        )
        for existing in candidates:
            if abs(existing.start_time - trip.start_time) <= self.duplicate_window:
                minutes = int(self.duplicate_window.total_seconds() // 60)
                return Verdict.deny(
                    f"Duplicate trip: the same route was already submitted within {minutes} minutes"
                )
        return Verdict.allow()

    def check_same_zone(self, trip: Trip) -> Verdict:
        """Throttle round trips that start and end in the same zone."""
        if trip.from_zone is None or trip.from_zone != trip.to_zone:
            return Verdict.allow()
        since = self._clock() - self.same_zone_window
        recent = self.trips.find_recent_by_user_zones(
            trip.user_id, trip.from_zone, trip.to_zone, since
        )
        if recent:
            minutes = int(self.same_zone_window.total_seconds() // 60)
            return Verdict.deny(
                f"A trip within the same area was already submitted in the last {minutes} minutes"
            )
        return Verdict.allow()

    def check_time_feasibility(self, trip: Trip) -> Verdict:
        """Deny a trip that starts before the user's previous trip ended."""
        latest_end = self.latest_trip_end(trip.user_id)
        if latest_end is not None and trip.start_time < latest_end:
            return Verdict.deny("Trip starts before your previous trip ended")
        return Verdict.allow()

    def latest_trip_end(self, user_id: str) -> datetime | None:
        if self.latest_trip_cache is not None:
            cached = self.latest_trip_cache.get(user_id)
            if cached is not None:
                return cached

        latest = self.trips.find_latest_by_user(user_id)
        if latest is None:
            return None
        end_time = latest.end_time
        if self.latest_trip_cache is not None:
            self.latest_trip_cache.set(user_id, end_time)
        return end_time

    @staticmethod
    def _fail_open(name: str, check: Callable[[Trip], Verdict], trip: Trip) -> Verdict:
        try:
            return check(trip)
        except StoreUnavailableError as e:
            logger.warning(f"{name} check skipped for {trip.user_id}, store unavailable: {e}")
            return Verdict.allow()
