"""Tests for the exception hierarchy."""

import pytest

from core.exceptions import (
    CounterConflictError,
    DuplicateOrAbuseDetectedError,
    FareServiceError,
    InvalidParametersError,
    InvalidTripDataError,
    PermanentError,
    RateLimitExceededError,
    StoreUnavailableError,
    TransientError,
    UnauthenticatedError,
)


@pytest.mark.unit
class TestExceptionHierarchy:
    @pytest.mark.parametrize("error_cls", [StoreUnavailableError, CounterConflictError])
    def test_transient_errors(self, error_cls):
        assert issubclass(error_cls, TransientError)
        assert issubclass(error_cls, FareServiceError)

    @pytest.mark.parametrize(
        "error_cls",
        [
            UnauthenticatedError,
            RateLimitExceededError,
            DuplicateOrAbuseDetectedError,
            InvalidParametersError,
        ],
    )
    def test_permanent_errors(self, error_cls):
        assert issubclass(error_cls, PermanentError)

    def test_codes_are_stable(self):
        assert UnauthenticatedError.code == "unauthenticated"
        assert RateLimitExceededError.code == "rate_limit_exceeded"
        assert InvalidTripDataError.code == "invalid_trip_data"
        assert DuplicateOrAbuseDetectedError.code == "duplicate_or_abuse"
        assert InvalidParametersError.code == "invalid_parameters"
        assert StoreUnavailableError.code == "store_unavailable"

    def test_details_default_to_empty_dict(self):
        error = StoreUnavailableError("down")
        assert error.details == {}
        assert error.message == "down"


@pytest.mark.unit
def test_invalid_trip_data_lists_every_reason():
    error = InvalidTripDataError(["fare: too high", "distance: too long"])

    assert error.reasons == ["fare: too high", "distance: too long"]
    assert error.details == {"reasons": ["fare: too high", "distance: too long"]}
    assert str(error) == "Validation failed: fare: too high, distance: too long"
