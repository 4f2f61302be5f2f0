"""Tests for the per-user submission quota."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from core.exceptions import RateLimitExceededError
from tests.factories import FixedClock
from validation import RateLimiter
from validation.rate_limiter import slots_for


@pytest.mark.unit
class TestRateLimiter:
    def test_first_call_creates_counter(self, rate_limiter, rate_limit_repository, clock):
        rate_limiter.check_and_increment("rider-1")

        state = rate_limit_repository.load("rider-1")
        assert state.hour_count == 1
        assert state.day_count == 1
        assert (state.hour_slot, state.day_slot) == slots_for(clock())

    def test_hour_ceiling(self, rate_limiter):
        for _ in range(5):
            rate_limiter.check_and_increment("rider-1")

        with pytest.raises(RateLimitExceededError, match="this hour"):
            rate_limiter.check_and_increment("rider-1")

    def test_counters_are_per_user(self, rate_limiter):
        for _ in range(5):
            rate_limiter.check_and_increment("rider-1")

        rate_limiter.check_and_increment("rider-2")

    def test_hour_slot_rollover_resets_hour_count_only(
        self, rate_limiter, rate_limit_repository, clock
    ):
        for _ in range(5):
            rate_limiter.check_and_increment("rider-1")

        clock.advance(hours=1)
        rate_limiter.check_and_increment("rider-1")

        state = rate_limit_repository.load("rider-1")
        assert state.hour_count == 1
        assert state.day_count == 6

    def test_day_ceiling(self, rate_limiter, clock):
        # 10:00 UTC; four full hours stay inside the same UTC day
        for _ in range(4):
            for _ in range(5):
                rate_limiter.check_and_increment("rider-1")
            clock.advance(hours=1)

        with pytest.raises(RateLimitExceededError, match="today"):
            rate_limiter.check_and_increment("rider-1")

    def test_rejected_calls_do_not_increment(self, rate_limiter, rate_limit_repository):
        for _ in range(5):
            rate_limiter.check_and_increment("rider-1")
        with pytest.raises(RateLimitExceededError):
            rate_limiter.check_and_increment("rider-1")

        assert rate_limit_repository.load("rider-1").day_count == 5

    def test_counter_expiry_and_purge(self, rate_limiter, rate_limit_repository, clock):
        rate_limiter.check_and_increment("rider-1")

        clock.advance(hours=47)
        assert rate_limiter.purge_expired() == 0

        clock.advance(hours=2)
        assert rate_limiter.purge_expired() == 1
        assert rate_limit_repository.load("rider-1") is None


@pytest.mark.unit
def test_slots_are_floor_of_epoch():
    moment = datetime(2025, 3, 12, 10, 59, 59)
    hour_slot, day_slot = slots_for(moment)

    assert slots_for(datetime(2025, 3, 12, 10, 0)) == (hour_slot, day_slot)
    assert slots_for(datetime(2025, 3, 12, 11, 0))[0] == hour_slot + 1
    assert slots_for(datetime(2025, 3, 13, 0, 0))[1] == day_slot + 1


@pytest.mark.critical
@pytest.mark.concurrency
class TestConcurrentCheckAndIncrement:
    def test_six_concurrent_calls_admit_exactly_five(self, rate_limit_repository):
        clock = FixedClock(datetime(2025, 3, 12, 10, 15))
        limiter = RateLimiter(rate_limit_repository, per_hour=5, per_day=20, clock=clock)

        def attempt(_: int) -> str:
            try:
                limiter.check_and_increment("rider-1")
                return "ok"
            except RateLimitExceededError:
                return "limited"

        with ThreadPoolExecutor(max_workers=6) as pool:
            outcomes = list(pool.map(attempt, range(6)))

        assert outcomes.count("ok") == 5
        assert outcomes.count("limited") == 1
        assert rate_limit_repository.load("rider-1").hour_count == 5

        # Next hour slot: the seventh submission goes through
        clock.advance(hours=1)
        limiter.check_and_increment("rider-1")
        assert rate_limit_repository.load("rider-1").hour_count == 1

    def test_concurrent_calls_never_exceed_ceiling(self, rate_limit_repository):
        clock = FixedClock(datetime(2025, 3, 12, 10, 15))
        limiter = RateLimiter(rate_limit_repository, per_hour=5, per_day=20, clock=clock)

        def attempt(_: int) -> bool:
            try:
                limiter.check_and_increment("rider-1")
                return True
            except RateLimitExceededError:
                return False

        with ThreadPoolExecutor(max_workers=8) as pool:
            admitted = sum(pool.map(attempt, range(20)))

        assert admitted == 5
