"""Per-user rate limit counters with optimistic (compare-and-swap) writes."""

from collections.abc import Callable
from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import CounterConflictError

from ..schema import RateLimitCounter
from ..transaction import transaction, translate_store_errors


class CounterState(BaseModel):
    user_id: str
    hour_slot: int
    hour_count: int
    day_slot: int
    day_count: int
    expires_at: datetime
    version: int = 0


class RateLimitRepository:
    """Repository for rate limit counter rows.

    Writes never overwrite blindly: `insert` fails if another writer created
    the row first and `compare_and_swap` fails if the stored version moved.
    Both signal the race with CounterConflictError so the caller can re-read.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load(self, user_id: str) -> CounterState | None:
        with translate_store_errors("rate_limit_load"):
            with self.session_factory() as session:
                row = session.get(RateLimitCounter, user_id)
                if row is None:
                    return None
                return CounterState(
                    user_id=row.user_id,
                    hour_slot=row.hour_slot,
                    hour_count=row.hour_count,
                    day_slot=row.day_slot,
                    day_count=row.day_count,
                    expires_at=row.expires_at,
                    version=row.version,
                )

    def insert(self, state: CounterState) -> None:
        with translate_store_errors("rate_limit_insert"):
            try:
                with self.session_factory() as session, transaction(session):
                    session.add(
                        RateLimitCounter(
                            user_id=state.user_id,
                            hour_slot=state.hour_slot,
                            hour_count=state.hour_count,
                            day_slot=state.day_slot,
                            day_count=state.day_count,
                            expires_at=state.expires_at,
                            version=1,
                        )
                    )
            except IntegrityError as e:
                raise CounterConflictError(
                    f"Counter for {state.user_id} created concurrently"
                ) from e

    def compare_and_swap(self, state: CounterState, expected_version: int) -> None:
        stmt = (
            update(RateLimitCounter)
            .where(
                RateLimitCounter.user_id == state.user_id,
                RateLimitCounter.version == expected_version,
            )
            .values(
                hour_slot=state.hour_slot,
                hour_count=state.hour_count,
                day_slot=state.day_slot,
                day_count=state.day_count,
                expires_at=state.expires_at,
                version=expected_version + 1,
            )
        )
        with translate_store_errors("rate_limit_update"):
            with self.session_factory() as session, transaction(session):
                result = session.execute(stmt)
                updated = result.rowcount
        if updated != 1:
            raise CounterConflictError(
                f"Counter for {state.user_id} changed since version {expected_version}"
            )

    def purge_expired(self, now: datetime) -> int:
        """Delete counter rows past their retention window."""
        stmt = delete(RateLimitCounter).where(RateLimitCounter.expires_at < now)
        with translate_store_errors("rate_limit_purge"):
            with self.session_factory() as session, transaction(session):
                result = session.execute(stmt)
                return result.rowcount or 0
