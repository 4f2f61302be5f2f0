"""Aggregate fare statistics over a set of similar trips."""

from collections.abc import Sequence
from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from trip import Trip
from validation.features import sunday_based_weekday, to_local

HISTOGRAM_BUCKETS = 8
RECENT_TRIPS_LIMIT = 10

TIME_OF_DAY_BUCKETS = ("morning", "afternoon", "evening", "night")
DAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
DISTANCE_BUCKETS = ("short", "medium", "long")

SHORT_TRIP_MAX_KM = 5.0
MEDIUM_TRIP_MAX_KM = 15.0


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BucketStats(CamelModel):
    count: int = 0
    average_fare: float = 0.0


class FareRange(CamelModel):
    min: float = 0.0
    max: float = 0.0


class HistogramBucket(CamelModel):
    range: str
    count: int
    percentage: float


class RecentTrip(CamelModel):
    """Anonymized view of a trip: no identity, no coordinates."""

    fare: float
    distance: float
    duration: float | None = None
    start_time: datetime | None = None
    governorate: str | None = None


def _empty_buckets(names: Sequence[str]) -> dict[str, BucketStats]:
    return {name: BucketStats() for name in names}


class TripStatistics(CamelModel):
    similar_trips_count: int = 0
    average_fare: float = 0.0
    estimated_fare: float = 0.0
    fare_range: FareRange = Field(default_factory=FareRange)
    by_time_of_day: dict[str, BucketStats] = Field(
        default_factory=lambda: _empty_buckets(TIME_OF_DAY_BUCKETS)
    )
    by_day_of_week: dict[str, BucketStats] = Field(
        default_factory=lambda: _empty_buckets(DAY_NAMES)
    )
    by_distance: dict[str, BucketStats] = Field(
        default_factory=lambda: _empty_buckets(DISTANCE_BUCKETS)
    )
    fare_distribution: list[HistogramBucket] = Field(default_factory=list)
    recent_trips: list[RecentTrip] = Field(default_factory=list)
    from_zone_name: str | None = None
    to_zone_name: str | None = None


def time_of_day_bucket(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 24:
        return "evening"
    return "night"


def distance_bucket(distance_km: float) -> str:
    if distance_km <= SHORT_TRIP_MAX_KM:
        return "short"
    if distance_km <= MEDIUM_TRIP_MAX_KM:
        return "medium"
    return "long"


def fare_histogram(fares: Sequence[float], buckets: int = HISTOGRAM_BUCKETS) -> list[HistogramBucket]:
    """Equal-width histogram spanning min..max of the fares.

    The maximum lands in the last bucket. When every fare is equal they all
    land in the first bucket.
    """
    if not fares:
        return []

    low = min(fares)
    high = max(fares)
    width = (high - low) / buckets
    counts = [0] * buckets
    for fare in fares:
        index = int((fare - low) // width) if width > 0 else 0
        counts[min(index, buckets - 1)] += 1

    return [
        HistogramBucket(
            range=f"{round(low + i * width)}-{round(low + (i + 1) * width)}",
            count=count,
            percentage=round(count / len(fares) * 100),
        )
        for i, count in enumerate(counts)
    ]


def _average(total: float, count: int) -> float:
    return round(total / count, 2) if count else 0.0


def _accumulate(groups: dict[str, list[float]], key: str, fare: float) -> None:
    groups.setdefault(key, []).append(fare)


def _bucket_stats(names: Sequence[str], groups: dict[str, list[float]]) -> dict[str, BucketStats]:
    return {
        name: BucketStats(
            count=len(groups.get(name, [])),
            average_fare=_average(sum(groups.get(name, [])), len(groups.get(name, []))),
        )
        for name in names
    }


def summarize_trips(trips: Sequence[Trip], tz: ZoneInfo) -> TripStatistics:
    """Build the aggregate for an already-filtered set of trips."""
    if not trips:
        return TripStatistics()

    fares = [t.fare for t in trips if t.fare > 0]
    mean_fare = sum(fares) / len(fares) if fares else 0.0

    by_time: dict[str, list[float]] = {}
    by_day: dict[str, list[float]] = {}
    by_distance: dict[str, list[float]] = {}
    for trip in trips:
        hour = trip.time_of_day
        weekday = trip.day_of_week
        if hour is None or weekday is None:
            local = to_local(trip.start_time, tz)
            hour = local.hour
            weekday = sunday_based_weekday(local)
        _accumulate(by_time, time_of_day_bucket(hour), trip.fare)
        _accumulate(by_day, DAY_NAMES[weekday], trip.fare)
        _accumulate(by_distance, distance_bucket(trip.distance), trip.fare)

    recent = sorted(
        trips,
        key=lambda t: t.submitted_at or datetime.min,
        reverse=True,
    )[:RECENT_TRIPS_LIMIT]

    return TripStatistics(
        similar_trips_count=len(trips),
        average_fare=round(mean_fare, 2),
        estimated_fare=round(mean_fare, 2),
        fare_range=FareRange(min=min(fares), max=max(fares)) if fares else FareRange(),
        by_time_of_day=_bucket_stats(TIME_OF_DAY_BUCKETS, by_time),
        by_day_of_week=_bucket_stats(DAY_NAMES, by_day),
        by_distance=_bucket_stats(DISTANCE_BUCKETS, by_distance),
        fare_distribution=fare_histogram(fares),
        recent_trips=[
            RecentTrip(
                fare=t.fare,
                distance=t.distance,
                duration=t.duration,
                start_time=t.start_time,
                governorate=t.governorate,
            )
            for t in recent
        ],
    )
