"""Trip repository: the only component that queries trip records."""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from trip import Coordinate, Trip as TripDomain, ValidationStatus

from ..schema import Trip
from ..transaction import transaction, translate_store_errors
from ..utils import utc_now

logger = logging.getLogger(__name__)


class BackfillReport(BaseModel):
    total_processed: int = 0
    total_updated: int = 0
    total_skipped: int = 0
    batches_processed: int = 0
    resolution: int | None = None


class TripRepository:
    """Query and persistence facade over trip records.

    Every call opens its own short-lived session; there is no state shared
    between requests other than the database itself.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def insert(self, trip: TripDomain) -> str:
        """Persist a new trip and return its id."""
        trip_id = trip.trip_id or uuid.uuid4().hex
        row = self._to_row(trip, trip_id)
        with translate_store_errors("insert"):
            with self.session_factory() as session, transaction(session):
                session.add(row)
        return trip_id

    def get(self, trip_id: str) -> TripDomain | None:
        with translate_store_errors("get"):
            with self.session_factory() as session:
                row = session.get(Trip, trip_id)
                return self._to_domain(row) if row else None

    def find_by_user_and_window(
        self,
        user_id: str,
        from_zone: str | None,
        to_zone: str | None,
        date: str,
    ) -> list[TripDomain]:
        """Trips by this user on the same local date between the same zones."""
        if from_zone is None or to_zone is None:
            return []
        stmt = select(Trip).where(
            Trip.user_id == user_id,
            Trip.date == date,
            Trip.from_zone == from_zone,
            Trip.to_zone == to_zone,
        )
        return self._fetch(stmt, "find_by_user_and_window")

    def find_recent_by_user_zones(
        self,
        user_id: str,
        from_zone: str | None,
        to_zone: str | None,
        since: datetime,
    ) -> list[TripDomain]:
        """Trips by this user between the same zones submitted at or after `since`."""
        if from_zone is None or to_zone is None:
            return []
        stmt = select(Trip).where(
            Trip.user_id == user_id,
            Trip.from_zone == from_zone,
            Trip.to_zone == to_zone,
            Trip.submitted_at >= since,
        )
        return self._fetch(stmt, "find_recent_by_user_zones")

    def find_latest_by_user(self, user_id: str) -> TripDomain | None:
        stmt = (
            select(Trip)
            .where(Trip.user_id == user_id)
            .order_by(Trip.start_time.desc())
            .limit(1)
        )
        trips = self._fetch(stmt, "find_latest_by_user")
        return trips[0] if trips else None

    def find_similar(
        self,
        from_zone: str | None,
        to_zone: str | None,
        min_distance: float,
        max_distance: float,
        governorate: str | None = None,
        limit: int = 100,
    ) -> list[TripDomain]:
        """Trips with a positive fare between the same zones within a distance band."""
        if from_zone is None or to_zone is None:
            return []
        stmt = select(Trip).where(
            Trip.from_zone == from_zone,
            Trip.to_zone == to_zone,
            Trip.distance >= min_distance,
            Trip.distance <= max_distance,
            Trip.fare > 0,
        )
        if governorate:
            stmt = stmt.where(Trip.governorate == governorate)
        stmt = stmt.order_by(Trip.submitted_at.desc()).limit(limit)
        return self._fetch(stmt, "find_similar")

    def backfill_zones(
        self,
        zone_of: Callable[[float | None, float | None], str | None],
        resolution: int | None = None,
        batch_size: int = 100,
        max_batches: int = 50,
        force: bool = False,
    ) -> BackfillReport:
        """Recompute zones for trips that have coordinates.

        Only trips missing a zone are touched unless `force` is set, which
        recomputes every trip (needed after a resolution change).
        """
        report = BackfillReport(resolution=resolution)
        last_id = ""

        with translate_store_errors("backfill_zones"):
            for _ in range(max_batches):
                with self.session_factory() as session, transaction(session):
                    stmt = select(Trip).where(
                        Trip.trip_id > last_id,
                        Trip.from_lat.is_not(None),
                        Trip.to_lat.is_not(None),
                    )
                    if not force:
                        stmt = stmt.where(or_(Trip.from_zone.is_(None), Trip.to_zone.is_(None)))
                    rows = list(
                        session.execute(stmt.order_by(Trip.trip_id).limit(batch_size))
                        .scalars()
                        .all()
                    )
                    if not rows:
                        break

                    for row in rows:
                        report.total_processed += 1
                        from_zone = zone_of(row.from_lat, row.from_lng)
                        to_zone = zone_of(row.to_lat, row.to_lng)
                        if (from_zone, to_zone) == (row.from_zone, row.to_zone):
                            report.total_skipped += 1
                            continue
                        row.from_zone = from_zone
                        row.to_zone = to_zone
                        report.total_updated += 1

                    last_id = rows[-1].trip_id
                    report.batches_processed += 1

        logger.info(
            f"Zone backfill finished: processed={report.total_processed} "
            f"updated={report.total_updated} batches={report.batches_processed}"
        )
        return report

    def _fetch(self, stmt: Any, operation: str) -> list[TripDomain]:
        with translate_store_errors(operation):
            with self.session_factory() as session:
                result = session.execute(stmt)
                return [self._to_domain(t) for t in result.scalars().all()]

    @staticmethod
    def _to_row(trip: TripDomain, trip_id: str) -> Trip:
        origin = trip.origin
        destination = trip.destination
        return Trip(
            trip_id=trip_id,
            user_id=trip.user_id,
            fare=trip.fare,
            distance=trip.distance,
            duration=trip.duration,
            passenger_count=trip.passenger_count,
            from_lat=origin.lat if origin else None,
            from_lng=origin.lng if origin else None,
            from_name=origin.name if origin else None,
            to_lat=destination.lat if destination else None,
            to_lng=destination.lng if destination else None,
            to_name=destination.name if destination else None,
            start_time=trip.start_time,
            governorate=trip.governorate,
            submitted_at=trip.submitted_at or utc_now(),
            ip_hash=trip.ip_hash,
            user_agent=trip.user_agent,
            suspicious=trip.suspicious,
            validation_status=trip.validation_status.value,
            official_fare=trip.official_fare,
            min_allowed_fare=trip.min_allowed_fare,
            max_allowed_fare=trip.max_allowed_fare,
            from_zone=trip.from_zone,
            to_zone=trip.to_zone,
            date=trip.date,
            month=trip.month,
            time_of_day=trip.time_of_day,
            day_of_week=trip.day_of_week,
            speed_kmh=trip.speed_kmh,
            is_admin_submission=trip.is_admin_submission,
        )

    @staticmethod
    def _to_domain(row: Trip) -> TripDomain:
        """Convert ORM model to domain model."""
        origin = None
        if row.from_lat is not None and row.from_lng is not None:
            origin = Coordinate(lat=row.from_lat, lng=row.from_lng, name=row.from_name)
        destination = None
        if row.to_lat is not None and row.to_lng is not None:
            destination = Coordinate(lat=row.to_lat, lng=row.to_lng, name=row.to_name)

        return TripDomain(
            trip_id=row.trip_id,
            user_id=row.user_id,
            fare=row.fare,
            distance=row.distance,
            duration=row.duration,
            passenger_count=row.passenger_count,
            origin=origin,
            destination=destination,
            start_time=row.start_time,
            governorate=row.governorate,
            submitted_at=row.submitted_at,
            ip_hash=row.ip_hash,
            user_agent=row.user_agent,
            suspicious=bool(row.suspicious),
            validation_status=ValidationStatus(row.validation_status),
            official_fare=row.official_fare,
            min_allowed_fare=row.min_allowed_fare,
            max_allowed_fare=row.max_allowed_fare,
            from_zone=row.from_zone,
            to_zone=row.to_zone,
            date=row.date,
            month=row.month,
            time_of_day=row.time_of_day,
            day_of_week=row.day_of_week,
            speed_kmh=row.speed_kmh,
            is_admin_submission=row.is_admin_submission,
        )
