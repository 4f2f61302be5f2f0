"""Log formatters: one JSON object per line in production, plain text locally."""

import json
import logging
from datetime import UTC, datetime

CONTEXT_FIELDS = ("correlation_id", "user_id", "trip_id", "operation")


class JSONFormatter(logging.Formatter):
    def __init__(self, environment: str = "development"):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "env": self.environment,
        }
        entry.update(
            {name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)}
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        # default=str keeps datetimes and enums passed as extras serializable
        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """`time [LEVEL] [corr=..] logger: message`, with the user appended when bound."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s [%(levelname)8s] [corr=%(correlation_id)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        user_id = getattr(record, "user_id", None)
        if user_id and user_id != "-":
            line = f"{line} (user={user_id})"
        return line
