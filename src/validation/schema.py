"""Trip submission payload schema.

Static limits live on the fields. The service-region bounding box comes from
settings and is passed in through the validation context, so every violated
field is reported in a single pass.
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from core.exceptions import InvalidTripDataError
from db.utils import to_naive_utc
from settings import RegionSettings

MAX_FARE = 1000.0
MAX_DISTANCE_KM = 100.0
MAX_DURATION_MINUTES = 300.0
MAX_PASSENGERS = 10


class CoordinatePayload(BaseModel):
    lat: float
    lng: float
    name: str | None = Field(default=None, max_length=200)

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)

    @field_validator("lat")
    @classmethod
    def lat_in_region(cls, v: float, info: ValidationInfo) -> float:
        region = _region_from(info)
        if region is not None and not region.min_lat <= v <= region.max_lat:
            raise PydanticCustomError(
                "out_of_region",
                f"Latitude must be between {region.min_lat} and {region.max_lat}",
            )
        return v

    @field_validator("lng")
    @classmethod
    def lng_in_region(cls, v: float, info: ValidationInfo) -> float:
        region = _region_from(info)
        if region is not None and not region.min_lng <= v <= region.max_lng:
            raise PydanticCustomError(
                "out_of_region",
                f"Longitude must be between {region.min_lng} and {region.max_lng}",
            )
        return v


class TripPayload(BaseModel):
    """Raw trip as sent by the client. `from`/`to` are exposed as origin/destination."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    fare: float = Field(gt=0, le=MAX_FARE)
    distance: float = Field(gt=0, le=MAX_DISTANCE_KM)
    duration: float | None = Field(default=None, gt=0, le=MAX_DURATION_MINUTES)
    passenger_count: int | None = Field(default=None, ge=1, le=MAX_PASSENGERS)
    origin: CoordinatePayload | None = Field(default=None, alias="from")
    destination: CoordinatePayload | None = Field(default=None, alias="to")
    start_time: datetime | None = None
    governorate: str | None = Field(default=None, max_length=100)
    user_id: str | None = None

    @field_validator("start_time")
    @classmethod
    def normalize_start_time(cls, v: datetime | None) -> datetime | None:
        # Naive timestamps are taken as UTC
        return to_naive_utc(v) if v is not None else None


def _region_from(info: ValidationInfo) -> RegionSettings | None:
    if isinstance(info.context, Mapping):
        return info.context.get("region")
    return None


def _describe(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error["loc"]) or "payload"
    return f"{location}: {error['msg']}"


def parse_trip_payload(raw: Any, region: RegionSettings | None = None) -> TripPayload:
    """Validate a raw payload, raising InvalidTripDataError listing every violation."""
    try:
        return TripPayload.model_validate(raw, context={"region": region})
    except ValidationError as e:
        raise InvalidTripDataError([_describe(err) for err in e.errors()]) from e
