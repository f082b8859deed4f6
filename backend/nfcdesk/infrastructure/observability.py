"""Structured Logging - JSON and text formatters carrying the tap context.

Invariants:
    - Every line has timestamp (the record's creation time, UTC), level, logger, message
    - Context fields (card_id, entity_kind, entity_id, loan_id, ...) appear in both
      formats whenever the call site passed them through extra=
    - setup_logging is idempotent: calling it again replaces the nfcdesk handler

Design Decisions:
    - Plain logging with a custom formatter, no third-party logging library
    - APScheduler's per-run INFO lines are raised to WARNING; _guarded in
      infrastructure/scheduler.py logs each job outcome once
"""

import logging
import json
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "card_id", "entity_kind", "entity_id", "action", "error_code",
    "loan_id", "appointment_id", "job", "path",
)

_QUIET_LOGGERS = ("apscheduler.executors.default", "apscheduler.scheduler")


def context_of(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key]
        for key in CONTEXT_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **context_of(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        # enums and datetimes in extras go through str()
        return json.dumps(log, ensure_ascii=False, default=str)


class ContextTextFormatter(logging.Formatter):
    """Human-readable lines for development, context appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = context_of(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        first, newline, rest = line.partition("\n")
        return f"{first} [{pairs}]{newline}{rest}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the nfcdesk handler on the root logger."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "nfcdesk", False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.nfcdesk = True
    handler.setFormatter(JSONFormatter() if fmt == "json" else ContextTextFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
