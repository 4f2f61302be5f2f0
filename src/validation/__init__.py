"""Trip submission validation: schema, quotas, fraud screening and fare verdicts."""

from .fraud_guard import FraudGuard, Verdict
from .pipeline import Authorization, CallerIdentity, SubmitTripResult, ValidationPipeline
from .rate_limiter import RateLimiter
from .schema import TripPayload, parse_trip_payload

__all__ = [
    "Authorization",
    "CallerIdentity",
    "FraudGuard",
    "RateLimiter",
    "SubmitTripResult",
    "TripPayload",
    "ValidationPipeline",
    "Verdict",
    "parse_trip_payload",
]
