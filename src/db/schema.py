"""SQLAlchemy ORM models for fare service persistence."""

from datetime import datetime

from sqlalchemy import Boolean, Float, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .utils import utc_now


class Base(DeclarativeBase):
    pass


class Trip(Base):
    __tablename__ = "trips"

    trip_id: Mapped[str] = mapped_column(String, primary_key=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False)
    fare: Mapped[float] = mapped_column(Float, nullable=False)
    distance: Mapped[float] = mapped_column(Float, nullable=False)
    duration: Mapped[float | None] = mapped_column(Float, nullable=True)
    passenger_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    from_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    from_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    from_name: Mapped[str | None] = mapped_column(String, nullable=True)
    to_lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    to_lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    to_name: Mapped[str | None] = mapped_column(String, nullable=True)
    start_time: Mapped[datetime] = mapped_column(nullable=False)
    governorate: Mapped[str | None] = mapped_column(String, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(default=lambda: utc_now())
    ip_hash: Mapped[str] = mapped_column(String, nullable=False)
    user_agent: Mapped[str] = mapped_column(String, nullable=False)
    # Nullable for records written before fare validation existed
    suspicious: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    validation_status: Mapped[str] = mapped_column(String, nullable=False)
    official_fare: Mapped[float | None] = mapped_column(Float, nullable=True)
    min_allowed_fare: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_allowed_fare: Mapped[float | None] = mapped_column(Float, nullable=True)
    from_zone: Mapped[str | None] = mapped_column(String, nullable=True)
    to_zone: Mapped[str | None] = mapped_column(String, nullable=True)
    date: Mapped[str | None] = mapped_column(String, nullable=True)
    month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    time_of_day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    speed_kmh: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_admin_submission: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index("idx_trip_user_date_zones", "user_id", "date", "from_zone", "to_zone"),
        Index("idx_trip_user_start", "user_id", "start_time"),
        Index("idx_trip_zones_distance", "from_zone", "to_zone", "distance"),
    )


class RateLimitCounter(Base):
    __tablename__ = "rate_limit_counters"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    hour_slot: Mapped[int] = mapped_column(Integer, nullable=False)
    hour_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    day_slot: Mapped[int] = mapped_column(Integer, nullable=False)
    day_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    # Bumped on every write; compare-and-swap guard
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (Index("idx_rate_limit_expires", "expires_at"),)


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(String, primary_key=True)
    role: Mapped[str] = mapped_column(String, nullable=False)
    updated_by: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )


class ServiceMetadata(Base):
    __tablename__ = "service_metadata"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(String, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=lambda: utc_now(),
        onupdate=lambda: utc_now(),
    )
