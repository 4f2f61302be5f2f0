"""Tests for retry utilities."""

from unittest.mock import Mock

import pytest

from core.exceptions import CounterConflictError, RateLimitExceededError, StoreUnavailableError
from core.retry import RetryConfig, with_retry_sync

FAST = RetryConfig(max_attempts=3, base_delay=0.0, max_delay=0.0)


@pytest.mark.unit
class TestWithRetrySync:
    def test_returns_first_success(self):
        operation = Mock(return_value="ok")

        assert with_retry_sync(operation, FAST) == "ok"
        assert operation.call_count == 1

    def test_retries_transient_errors_until_success(self):
        operation = Mock(side_effect=[StoreUnavailableError("down"), "ok"])

        assert with_retry_sync(operation, FAST) == "ok"
        assert operation.call_count == 2

    def test_gives_up_after_max_attempts(self):
        operation = Mock(side_effect=StoreUnavailableError("down"))

        with pytest.raises(StoreUnavailableError):
            with_retry_sync(operation, FAST)
        assert operation.call_count == 3

    def test_permanent_errors_are_not_retried(self):
        operation = Mock(side_effect=RateLimitExceededError("slow down"))

        with pytest.raises(RateLimitExceededError):
            with_retry_sync(operation, FAST)
        assert operation.call_count == 1

    def test_custom_retryable_exceptions(self):
        config = RetryConfig(
            max_attempts=5,
            base_delay=0.0,
            retryable_exceptions=(CounterConflictError,),
        )
        operation = Mock(side_effect=StoreUnavailableError("down"))

        with pytest.raises(StoreUnavailableError):
            with_retry_sync(operation, config)
        assert operation.call_count == 1

    def test_on_retry_sees_each_failure(self):
        seen = []
        operation = Mock(side_effect=[CounterConflictError("race"), CounterConflictError("race"), 7])

        result = with_retry_sync(operation, FAST, on_retry=lambda e, n: seen.append(n))

        assert result == 7
        assert seen == [1, 2]


@pytest.mark.unit
class TestRetryConfig:
    def test_delay_grows_and_caps(self):
        config = RetryConfig(base_delay=0.01, multiplier=2.0, max_delay=0.03)

        assert [config.delay_for(n) for n in range(4)] == [0.01, 0.02, 0.03, 0.03]

    def test_jitter_stays_within_bounds(self):
        config = RetryConfig(base_delay=0.1, multiplier=1.0, max_delay=1.0, jitter=0.5)

        delays = [config.delay_for(0) for _ in range(50)]

        assert all(0.05 <= d <= 0.15 for d in delays)
