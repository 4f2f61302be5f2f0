"""Per-client throttling of the analysis endpoint using slowapi.

This is transport-level protection against scraping. Trip submission quotas
are enforced per user by validation.rate_limiter instead.
"""

from opentelemetry import metrics
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from api.identity import USER_ID_HEADER

meter = metrics.get_meter("fare_service")

rate_limit_hits = meter.create_counter(
    name="api_rate_limit_hits_total",
    description="Total API requests rejected by rate limiting",
    unit="1",
)


def get_user_or_ip(request: Request) -> str:
    """Rate limit by forwarded user id if present, otherwise by IP."""
    user_id = request.headers.get(USER_ID_HEADER)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


DEFAULT_ANALYZE_LIMIT = "60/minute"

_analyze_limit = DEFAULT_ANALYZE_LIMIT


def configure_analyze_limit(limit: str) -> None:
    """Bind the /trips/analyze limit from the settings the app was built with."""
    global _analyze_limit
    _analyze_limit = limit


def analyze_rate_limit() -> str:
    return _analyze_limit


limiter = Limiter(key_func=get_user_or_ip)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """429 with the same envelope as operation failures, plus a Retry-After header."""
    rate_limit_hits.add(1, {"endpoint": request.url.path, "method": request.method})

    retry_after = "60"
    view_rate_limit = getattr(request.state, "view_rate_limit", None)
    if view_rate_limit:
        window_map = {"second": 1, "minute": 60, "hour": 3600, "day": 86400}
        for unit, seconds in window_map.items():
            if unit in str(view_rate_limit):
                retry_after = str(seconds)
                break

    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": f"Too many requests: {exc.detail}",
            "code": "rate_limit_exceeded",
        },
    )
    response.headers["retry-after"] = retry_after
    return response
