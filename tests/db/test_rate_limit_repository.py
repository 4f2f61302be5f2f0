from datetime import timedelta

import pytest

from core.exceptions import CounterConflictError
from db.repositories import CounterState
from tests.factories import NOW


def _state(**overrides):
    fields = {
        "user_id": "rider-1",
        "hour_slot": 10,
        "hour_count": 1,
        "day_slot": 1,
        "day_count": 1,
        "expires_at": NOW + timedelta(hours=48),
    }
    fields.update(overrides)
    return CounterState(**fields)


@pytest.mark.unit
class TestRateLimitRepository:
    def test_load_missing_counter(self, rate_limit_repository):
        assert rate_limit_repository.load("rider-1") is None

    def test_insert_then_load(self, rate_limit_repository):
        rate_limit_repository.insert(_state())

        loaded = rate_limit_repository.load("rider-1")
        assert loaded.hour_count == 1
        assert loaded.version == 1

    def test_second_insert_conflicts(self, rate_limit_repository):
        rate_limit_repository.insert(_state())

        with pytest.raises(CounterConflictError):
            rate_limit_repository.insert(_state())

    def test_compare_and_swap_bumps_version(self, rate_limit_repository):
        rate_limit_repository.insert(_state())

        rate_limit_repository.compare_and_swap(_state(hour_count=2, day_count=2), expected_version=1)

        loaded = rate_limit_repository.load("rider-1")
        assert loaded.hour_count == 2
        assert loaded.version == 2

    def test_compare_and_swap_with_stale_version_conflicts(self, rate_limit_repository):
        rate_limit_repository.insert(_state())
        rate_limit_repository.compare_and_swap(_state(hour_count=2), expected_version=1)

        with pytest.raises(CounterConflictError):
            rate_limit_repository.compare_and_swap(_state(hour_count=3), expected_version=1)
        assert rate_limit_repository.load("rider-1").hour_count == 2

    def test_purge_expired(self, rate_limit_repository):
        rate_limit_repository.insert(_state(user_id="old", expires_at=NOW - timedelta(hours=1)))
        rate_limit_repository.insert(_state(user_id="fresh"))

        assert rate_limit_repository.purge_expired(NOW) == 1
        assert rate_limit_repository.load("old") is None
        assert rate_limit_repository.load("fresh") is not None
