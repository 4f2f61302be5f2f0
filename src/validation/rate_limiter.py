"""Per-user hour/day submission quotas with an atomic check-and-increment."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from core.exceptions import CounterConflictError, RateLimitExceededError
from core.retry import RetryConfig, with_retry_sync
from db.repositories import CounterState, RateLimitRepository
from db.utils import utc_now

logger = logging.getLogger(__name__)

HOUR_SECONDS = 3600
DAY_SECONDS = 86400

# Conflicts resolve within a few milliseconds; keep retries short and numerous.
CAS_RETRY = RetryConfig(
    max_attempts=12,
    base_delay=0.005,
    multiplier=1.5,
    max_delay=0.1,
    jitter=0.5,
    retryable_exceptions=(CounterConflictError,),
)


def slots_for(moment: datetime) -> tuple[int, int]:
    """Hour and day slot indexes for a naive UTC datetime."""
    epoch = moment.replace(tzinfo=UTC).timestamp()
    return int(epoch // HOUR_SECONDS), int(epoch // DAY_SECONDS)


class RateLimiter:
    """Caps submissions per user per hour slot and per day slot.

    The read-modify-write is a compare-and-swap on the counter row's version,
    so concurrent calls for one user can never both pass on a stale count.
    A lost race re-reads and tries again.
    """

    def __init__(
        self,
        repository: RateLimitRepository,
        per_hour: int = 5,
        per_day: int = 20,
        retention_hours: int = 48,
        clock: Callable[[], datetime] = utc_now,
        retry_config: RetryConfig = CAS_RETRY,
    ):
        self.repository = repository
        self.per_hour = per_hour
        self.per_day = per_day
        self.retention = timedelta(hours=retention_hours)
        self._clock = clock
        self._retry_config = retry_config

    def check_and_increment(self, user_id: str) -> CounterState:
        """Consume one submission from the user's quota.

        Raises:
            RateLimitExceededError: hour or day ceiling already reached
            StoreUnavailableError: counter store failed
        """
        return with_retry_sync(
            lambda: self._attempt(user_id),
            self._retry_config,
            operation_name=f"rate_limit[{user_id}]",
        )

    def _attempt(self, user_id: str) -> CounterState:
        now = self._clock()
        hour_slot, day_slot = slots_for(now)
        current = self.repository.load(user_id)

        hour_count = 0
        day_count = 0
        if current is not None:
            if current.hour_slot == hour_slot:
                hour_count = current.hour_count
            if current.day_slot == day_slot:
                day_count = current.day_count

        if hour_count >= self.per_hour:
            raise RateLimitExceededError(
                "Too many submissions this hour. Please wait.",
                details={"limit": self.per_hour, "window": "hour"},
            )
        if day_count >= self.per_day:
            raise RateLimitExceededError(
                "Too many submissions today. Please try again tomorrow.",
                details={"limit": self.per_day, "window": "day"},
            )

        updated = CounterState(
            user_id=user_id,
            hour_slot=hour_slot,
            hour_count=hour_count + 1,
            day_slot=day_slot,
            day_count=day_count + 1,
            expires_at=now + self.retention,
        )
        if current is None:
            self.repository.insert(updated)
        else:
            self.repository.compare_and_swap(updated, expected_version=current.version)
        return updated

    def purge_expired(self) -> int:
        purged = self.repository.purge_expired(self._clock())
        if purged:
            logger.info(f"Purged {purged} expired rate limit counters")
        return purged
