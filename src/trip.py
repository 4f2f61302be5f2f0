"""Trip fare observation models."""

from datetime import datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field


class ValidationStatus(str, Enum):
    """Verdict of the fare plausibility check."""

    ACCEPTED = "accepted"
    BELOW_MIN_FARE = "below_min_fare"
    ABOVE_MAX_FARE = "above_max_fare"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Coordinate(BaseModel):
    lat: float
    lng: float
    name: str | None = None

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


class Trip(BaseModel):
    """A persisted fare observation. Immutable once stored.

    All datetimes are naive UTC.
    """

    trip_id: str | None = None
    user_id: str
    fare: float = Field(gt=0)
    distance: float = Field(gt=0, le=100)
    duration: float | None = None
    passenger_count: int | None = None
    origin: Coordinate | None = None
    destination: Coordinate | None = None
    start_time: datetime
    governorate: str | None = None
    submitted_at: datetime | None = None
    ip_hash: str = "unknown"
    user_agent: str = "unknown"
    suspicious: bool = False
    validation_status: ValidationStatus = ValidationStatus.ACCEPTED
    official_fare: float | None = None
    min_allowed_fare: float | None = None
    max_allowed_fare: float | None = None
    from_zone: str | None = None
    to_zone: str | None = None
    date: str | None = None
    month: int | None = None
    time_of_day: int | None = Field(default=None, ge=0, le=23)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    speed_kmh: float | None = None
    is_admin_submission: bool = False

    @property
    def end_time(self) -> datetime:
        if self.duration:
            return self.start_time + timedelta(minutes=self.duration)
        return self.start_time

    @property
    def has_coordinates(self) -> bool:
        return self.origin is not None and self.destination is not None
