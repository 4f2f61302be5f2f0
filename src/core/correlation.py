"""Request correlation id, bound per request by the API middleware."""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

current_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def new_correlation_id() -> str:
    return uuid.uuid4().hex


class CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = current_correlation_id.get() or "-"
        return True


@contextmanager
def with_correlation(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id (a fresh one when omitted) and yield it."""
    correlation_id = correlation_id or new_correlation_id()
    token = current_correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        current_correlation_id.reset(token)


def get_current_correlation_id() -> str | None:
    return current_correlation_id.get()
