"""Per-request logging fields (user, operation, trip) attached to every record."""

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from types import MappingProxyType
from typing import Any

_fields: ContextVar[Mapping[str, Any]] = ContextVar("log_fields", default=MappingProxyType({}))


class LogContext:
    """Read access to the fields bound by `log_context` in the current context."""

    @staticmethod
    def get() -> Mapping[str, Any]:
        return _fields.get()


class ContextFilter(logging.Filter):
    """Copies bound fields onto log records without overwriting explicit extras."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _fields.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind fields for the duration of the block. Nested blocks add to the outer fields."""
    token = _fields.set(MappingProxyType({**_fields.get(), **kwargs}))
    try:
        yield
    finally:
        _fields.reset(token)


@contextmanager
def log_submission_context(user_id: str | None, **kwargs: Any) -> Iterator[None]:
    with log_context(user_id=user_id or "-", **kwargs):
        yield
