"""SubmitTrip: validates, screens, prices and persists a crowdsourced trip."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.exceptions import (
    DuplicateOrAbuseDetectedError,
    FareServiceError,
    StoreUnavailableError,
    UnauthenticatedError,
)
from db.repositories import TripRepository, UserRoleRepository
from db.utils import utc_now
from fare_logging import log_submission_context
from geo import ZoneIndexer
from metrics import trip_rejections, trip_submissions
from pricing import TariffCalculator, interquartile_range
from redis_client import LatestTripEndCache
from settings import RegionSettings, SimilaritySettings
from trip import Coordinate, Trip, ValidationStatus

from .features import derive_features, hour_distance
from .fraud_guard import FraudGuard
from .rate_limiter import RateLimiter
from .schema import CoordinatePayload, parse_trip_payload

logger = logging.getLogger(__name__)

ACCEPTED_MESSAGE = "Trip submitted successfully"
FLAGGED_MESSAGE = "Trip submitted. The fare is outside the expected range and was flagged for review"


@dataclass(frozen=True)
class CallerIdentity:
    """Who is calling, as resolved by the transport layer. The IP arrives already hashed."""

    user_id: str | None
    ip_hash: str = "unknown"
    user_agent: str = "unknown"


@dataclass(frozen=True)
class Authorization:
    """Resolved once per request and passed to every check that cares."""

    user_id: str
    is_admin: bool


class SubmitTripResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    status: ValidationStatus | None = None
    trip_id: str | None = None
    message: str | None = None
    error: str | None = None
    code: str | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def failure(cls, error: FareServiceError) -> "SubmitTripResult":
        return cls(
            success=False,
            error=error.message,
            code=error.code,
            details=error.details or None,
        )


def _coordinate(payload: CoordinatePayload | None) -> Coordinate | None:
    if payload is None:
        return None
    return Coordinate(lat=payload.lat, lng=payload.lng, name=payload.name)


class ValidationPipeline:
    """Orchestrates a trip submission.

    Order of steps:
        1. caller identity required
        2. admin status resolved once
        3. schema validation (invalid payloads do not consume quota)
        4. rate limit (non-admins)
        5. derived features and zones
        6. fraud screening (non-admins)
        7. tariff bounds, then the similar-fares IQR fallback
        8. persistence and latest-trip cache invalidation

    Nothing is written to the trip store before every check has passed.
    """

    def __init__(
        self,
        trips: TripRepository,
        roles: UserRoleRepository,
        rate_limiter: RateLimiter,
        fraud_guard: FraudGuard,
        tariff: TariffCalculator,
        zone_indexer: ZoneIndexer,
        region: RegionSettings,
        similarity: SimilaritySettings,
        latest_trip_cache: LatestTripEndCache | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.trips = trips
        self.roles = roles
        self.rate_limiter = rate_limiter
        self.fraud_guard = fraud_guard
        self.tariff = tariff
        self.zone_indexer = zone_indexer
        self.region = region
        self.similarity = similarity
        self.latest_trip_cache = latest_trip_cache
        self.tz = ZoneInfo(region.timezone)
        self._clock = clock

    def authorize(self, user_id: str) -> Authorization:
        return Authorization(user_id=user_id, is_admin=self.roles.is_admin(user_id))

    def submit_trip(self, raw: Any, caller: CallerIdentity) -> SubmitTripResult:
        with log_submission_context(caller.user_id, operation="submit_trip"):
            try:
                trip = self._submit(raw, caller)
            except FareServiceError as e:
                trip_rejections.add(1, {"code": e.code})
                if isinstance(e, StoreUnavailableError):
                    logger.error(f"Trip submission failed: {e}")
                else:
                    logger.info(f"Trip submission rejected ({e.code}): {e.message}")
                return SubmitTripResult.failure(e)

            trip_submissions.add(1, {"status": trip.validation_status.value})
            return SubmitTripResult(
                success=True,
                status=trip.validation_status,
                trip_id=trip.trip_id,
                message=FLAGGED_MESSAGE if trip.suspicious else ACCEPTED_MESSAGE,
            )

    def _submit(self, raw: Any, caller: CallerIdentity) -> Trip:
        if not caller.user_id:
            raise UnauthenticatedError("Sign in to submit trips")

        auth = self.authorize(caller.user_id)
        payload = parse_trip_payload(raw, self.region)

        if not auth.is_admin:
            self.rate_limiter.check_and_increment(auth.user_id)

        now = self._clock()
        start_time = payload.start_time or now
        features = derive_features(payload, start_time, self.zone_indexer, self.tz)

        candidate = Trip(
            user_id=auth.user_id,
            fare=payload.fare,
            distance=payload.distance,
            duration=payload.duration,
            passenger_count=payload.passenger_count,
            origin=_coordinate(payload.origin),
            destination=_coordinate(payload.destination),
            start_time=start_time,
            governorate=payload.governorate,
            submitted_at=now,
            ip_hash=caller.ip_hash,
            user_agent=caller.user_agent,
            is_admin_submission=auth.is_admin,
            **features.model_dump(),
        )

        if not auth.is_admin:
            verdict = self.fraud_guard.screen(candidate)
            if not verdict.allowed:
                raise DuplicateOrAbuseDetectedError(verdict.reason or "Submission rejected")

        candidate = self.apply_fare_verdict(candidate)

        trip_id = self.trips.insert(candidate)
        if self.latest_trip_cache is not None:
            self.latest_trip_cache.invalidate(auth.user_id)

        logger.info(
            f"Trip {trip_id} stored as {candidate.validation_status.value} "
            f"(fare={candidate.fare}, official={candidate.official_fare})"
        )
        return candidate.model_copy(update={"trip_id": trip_id})

    def apply_fare_verdict(self, trip: Trip) -> Trip:
        """Classify the fare against the tariff window, falling back to similar fares."""
        bounds = self.tariff.bounds(trip.distance)
        status = bounds.classify(trip.fare)

        if status != ValidationStatus.ACCEPTED and self._within_similar_fares(trip):
            logger.info(
                f"Fare {trip.fare} outside tariff window "
                f"[{bounds.min_allowed_fare}, {bounds.max_allowed_fare}] "
                "accepted on similar-trip IQR fallback"
            )
            status = ValidationStatus.ACCEPTED

        return trip.model_copy(
            update={
                "validation_status": status,
                "suspicious": status != ValidationStatus.ACCEPTED,
                "official_fare": bounds.official_fare,
                "min_allowed_fare": bounds.min_allowed_fare,
                "max_allowed_fare": bounds.max_allowed_fare,
            }
        )

    def similar_fares(self, trip: Trip) -> list[float]:
        """Fares of comparable unflagged trips: same zone pair, close distance and hour of day."""
        tolerance = self.similarity.relative_distance_tolerance
        candidates = self.trips.find_similar(
            trip.from_zone,
            trip.to_zone,
            min_distance=trip.distance * (1 - tolerance),
            max_distance=trip.distance * (1 + tolerance),
            limit=self.similarity.query_limit,
        )

        fares = []
        for other in candidates:
            if other.suspicious:
                continue
            if abs(other.distance - trip.distance) / trip.distance > tolerance:
                continue
            if other.time_of_day is None or trip.time_of_day is None:
                continue
            if hour_distance(other.time_of_day, trip.time_of_day) > self.similarity.hour_window:
                continue
            fares.append(other.fare)
        return fares

    def _within_similar_fares(self, trip: Trip) -> bool:
        try:
            fares = self.similar_fares(trip)
        except StoreUnavailableError as e:
            logger.warning(f"Similar-fare fallback skipped, store unavailable: {e}")
            return False

        if len(fares) < self.similarity.min_samples:
            return False
        fences = interquartile_range(fares)
        return fences is not None and fences.contains(trip.fare)
