"""Standardized exception hierarchy for the fare validation service."""

from typing import Any


class FareServiceError(Exception):
    """Base exception for all fare service errors."""

    code = "internal_error"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(FareServiceError):
    """Errors that may succeed on retry."""

    pass


class StoreUnavailableError(TransientError):
    """Database or cache failed while serving a request."""

    code = "store_unavailable"


class CounterConflictError(TransientError):
    """A concurrent writer updated a counter between our read and write."""

    code = "counter_conflict"


class PermanentError(FareServiceError):
    """Errors that will not succeed on retry."""

    pass


class UnauthenticatedError(PermanentError):
    """Caller identity is missing."""

    code = "unauthenticated"


class ForbiddenError(PermanentError):
    """Caller is authenticated but lacks the required role."""

    code = "forbidden"


class RateLimitExceededError(PermanentError):
    """Per-user submission quota exhausted for the current window."""

    code = "rate_limit_exceeded"


class InvalidTripDataError(PermanentError):
    """Trip payload failed schema validation.

    Carries every violated field, not only the first one.
    """

    code = "invalid_trip_data"

    def __init__(self, reasons: list[str]):
        super().__init__(
            f"Validation failed: {', '.join(reasons)}",
            details={"reasons": reasons},
        )
        self.reasons = reasons


class DuplicateOrAbuseDetectedError(PermanentError):
    """Submission rejected by duplicate or abuse detection."""

    code = "duplicate_or_abuse"


class InvalidParametersError(PermanentError):
    """Analysis query parameters are out of range."""

    code = "invalid_parameters"


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    code = "configuration_error"
