"""Derived index and ML features for a submitted trip."""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from geo import ZoneIndexer

from .schema import TripPayload


class TripFeatures(BaseModel):
    date: str
    month: int
    time_of_day: int
    day_of_week: int
    speed_kmh: float | None = None
    from_zone: str | None = None
    to_zone: str | None = None


def to_local(moment: datetime, tz: ZoneInfo) -> datetime:
    """Convert a naive UTC datetime to local wall-clock time in `tz`."""
    return moment.replace(tzinfo=UTC).astimezone(tz)


def local_hour(moment: datetime, tz: ZoneInfo) -> int:
    return to_local(moment, tz).hour


def sunday_based_weekday(local: datetime) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return (local.weekday() + 1) % 7


def hour_distance(a: int, b: int) -> int:
    """Distance between two hours of the day on the 24h clock (23 and 1 are 2 apart)."""
    diff = abs(a - b) % 24
    return min(diff, 24 - diff)


def derive_features(
    payload: TripPayload,
    start_time: datetime,
    zone_indexer: ZoneIndexer,
    tz: ZoneInfo,
) -> TripFeatures:
    local = to_local(start_time, tz)

    speed_kmh = None
    if payload.duration:
        speed_kmh = round(payload.distance / (payload.duration / 60), 2)

    from_zone, to_zone = zone_indexer.zone_pair(
        payload.origin.as_tuple() if payload.origin else None,
        payload.destination.as_tuple() if payload.destination else None,
    )

    return TripFeatures(
        date=local.strftime("%Y-%m-%d"),
        month=local.month,
        time_of_day=local.hour,
        day_of_week=sunday_based_weekday(local),
        speed_kmh=speed_kmh,
        from_zone=from_zone,
        to_zone=to_zone,
    )
