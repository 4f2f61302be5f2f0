"""Root logger configuration for the service process."""

import logging
import sys
from typing import TextIO

from core.correlation import CorrelationFilter

from .context import ContextFilter
from .filters import PIIFilter
from .formatters import DevFormatter, JSONFormatter

# Loggers that are too chatty at INFO for a request-per-line service log
QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access", "urllib3")


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    environment: str = "development",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Replace root handlers with a single filtered stream handler and return it.

    Filter order matters: correlation and context fields are stamped before
    the formatter runs, and PII is masked before anything is written.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter(environment) if json_output else DevFormatter())
    for log_filter in (CorrelationFilter(), ContextFilter(), PIIFilter()):
        handler.addFilter(log_filter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
