"""
Centralized Logging

Architectural Intent:
- Provides structured JSON or human-readable logging for all ticketsync components
- Every module logs through logging.getLogger(__name__) under the "ticketsync" root
- Log level comes from config or the --verbose/--debug CLI flags
"""

import json
import logging
import sys
from datetime import datetime, UTC

ROOT_LOGGER = "ticketsync"

# Optional LogRecord attributes copied into JSON output when set via extra=
_CONTEXT_FIELDS = ("ticket_id", "incident_id", "event_type", "outcome")


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
) -> None:
    """Configure logging for the ticketsync application.

    Args:
        level: Logging level, as a number or a name such as "DEBUG"
        json_format: If True, use JSON structured output. Otherwise human-readable.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )

    root.addHandler(handler)
