"""AnalyzeSimilarTrips: fare context for a candidate route."""

import logging
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import Field, ValidationError, field_validator

from core.exceptions import FareServiceError, InvalidParametersError
from db.repositories import TripRepository
from db.utils import to_naive_utc
from geo import ZoneIndexer
from geo.distance import endpoints_within
from geo.zone_names import ZoneNameLookup
from metrics import similarity_queries
from settings import RegionSettings, SimilaritySettings
from trip import Trip
from validation.features import hour_distance, local_hour

from .statistics import CamelModel, TripStatistics, summarize_trips

logger = logging.getLogger(__name__)


class AnalyzeQuery(CamelModel):
    """Candidate route. Radii left unset take the configured defaults."""

    from_lat: float
    from_lng: float
    to_lat: float
    to_lng: float
    distance: float = Field(gt=0, le=100)
    start_time: datetime | None = None
    governorate: str | None = None
    max_distance: float | None = Field(default=None, gt=0, le=100)
    max_time_diff: float | None = Field(default=None, ge=0, le=12)
    max_distance_diff: float | None = Field(default=None, ge=0, le=100)

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: datetime | None) -> datetime | None:
        return to_naive_utc(v) if v is not None else None


class AnalyzeResult(CamelModel):
    success: bool
    data: TripStatistics | None = None
    error: str | None = None
    code: str | None = None
    details: dict[str, Any] | None = None


class SimilarityAnalyzer:
    """Finds trips comparable to a route and aggregates their fares.

    Candidates come from an exact zone-pair query over a distance band. Since a
    hex cell is coarse, each candidate is then checked for true proximity of
    both endpoints. Suspicious trips never contribute to the aggregate.
    """

    def __init__(
        self,
        trips: TripRepository,
        zone_indexer: ZoneIndexer,
        region: RegionSettings,
        settings: SimilaritySettings,
        zone_names: ZoneNameLookup | None = None,
    ):
        self.trips = trips
        self.zone_indexer = zone_indexer
        self.region = region
        self.settings = settings
        self.zone_names = zone_names
        self.tz = ZoneInfo(region.timezone)

    def analyze(self, raw: Any, user_id: str | None = None) -> AnalyzeResult:
        try:
            query = self.parse_query(raw)
            statistics = self.similar_trip_statistics(query)
        except FareServiceError as e:
            similarity_queries.add(1, {"outcome": e.code})
            logger.info(f"Similar trip analysis failed for {user_id or 'anonymous'} ({e.code}): {e}")
            return AnalyzeResult(
                success=False, error=e.message, code=e.code, details=e.details or None
            )

        similarity_queries.add(1, {"outcome": "ok"})
        return AnalyzeResult(success=True, data=statistics)

    def parse_query(self, raw: Any) -> AnalyzeQuery:
        try:
            query = AnalyzeQuery.model_validate(raw)
        except ValidationError as e:
            reasons = [
                f"{'.'.join(str(p) for p in err['loc']) or 'query'}: {err['msg']}"
                for err in e.errors()
            ]
            raise InvalidParametersError(
                "Invalid analysis parameters", details={"reasons": reasons}
            ) from e

        reasons = []
        if not self.region.contains(query.from_lat, query.from_lng):
            reasons.append("Start location is outside the service region")
        if not self.region.contains(query.to_lat, query.to_lng):
            reasons.append("End location is outside the service region")
        if reasons:
            raise InvalidParametersError(
                "Invalid analysis parameters", details={"reasons": reasons}
            )
        return query

    def similar_trip_statistics(self, query: AnalyzeQuery) -> TripStatistics:
        origin = (query.from_lat, query.from_lng)
        destination = (query.to_lat, query.to_lng)
        from_zone, to_zone = self.zone_indexer.zone_pair(origin, destination)

        distance_diff = _or_default(query.max_distance_diff, self.settings.max_distance_diff_km)
        candidates = self.trips.find_similar(
            from_zone,
            to_zone,
            min_distance=max(0.0, query.distance - distance_diff),
            max_distance=query.distance + distance_diff,
            governorate=query.governorate,
            limit=self.settings.query_limit,
        )

        max_distance = _or_default(query.max_distance, self.settings.max_distance_km)
        time_diff = _or_default(query.max_time_diff, self.settings.max_time_diff_hours)
        query_hour = local_hour(query.start_time, self.tz) if query.start_time else None

        kept: list[Trip] = []
        for trip in candidates:
            if not trip.has_coordinates:
                continue
            if not endpoints_within(
                origin,
                destination,
                trip.origin.as_tuple(),
                trip.destination.as_tuple(),
                max_distance,
            ):
                continue
            if trip.suspicious:
                continue
            if query_hour is not None and hour_distance(self._hour_of(trip), query_hour) > time_diff:
                continue
            kept.append(trip)

        logger.debug(
            f"Similar trips for {from_zone}->{to_zone}: "
            f"{len(candidates)} candidates, {len(kept)} kept"
        )

        statistics = summarize_trips(kept, self.tz)
        if self.zone_names is not None:
            statistics.from_zone_name = self.zone_names.name_of(from_zone)
            statistics.to_zone_name = self.zone_names.name_of(to_zone)
        return statistics

    def _hour_of(self, trip: Trip) -> int:
        if trip.time_of_day is not None:
            return trip.time_of_day
        return local_hour(trip.start_time, self.tz)


def _or_default(value: float | None, default: float) -> float:
    return default if value is None else value
