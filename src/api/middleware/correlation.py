"""Request correlation id middleware."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from core.correlation import with_correlation

REQUEST_ID_HEADER = "X-Request-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds X-Request-ID (or a fresh id) to the request's logs and echoes it back."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        with with_correlation(request.headers.get(REQUEST_ID_HEADER)) as correlation_id:
            response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response
