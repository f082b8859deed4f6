"""Structured Logging - formatter output and handler installation.

Tests:
    - JSON lines carry the tap context passed through extra=
    - Text lines append the same context as key=value
    - setup_logging twice leaves one nfcdesk handler
"""

import json
import logging

from nfcdesk.infrastructure.observability import (
    ContextTextFormatter, JSONFormatter, setup_logging,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.makeLogRecord({
        "name": "nfcdesk.services.tap_dispatcher",
        "levelno": logging.INFO,
        "levelname": "INFO",
        "msg": "Person %s",
        "args": ("entry",),
        "created": 1792404300.0,
    })
    record.__dict__.update(extra)
    return record


def test_json_line_carries_context():
    line = JSONFormatter().format(
        _record(card_id="AA11", entity_kind="person", entity_id=3, loan_id=None),
    )
    log = json.loads(line)

    assert log["message"] == "Person entry"
    assert log["card_id"] == "AA11"
    assert log["entity_id"] == 3
    assert "loan_id" not in log
    assert log["timestamp"].startswith("2026-10-19T")


def test_text_line_appends_context():
    line = ContextTextFormatter().format(_record(card_id="AA11", job="reminders"))

    assert "Person entry" in line
    assert line.endswith("[card_id=AA11 job=reminders]")


def test_text_line_without_context_is_plain():
    assert "[" not in ContextTextFormatter().format(_record())


def test_setup_logging_is_idempotent():
    root = logging.getLogger()
    level = root.level
    try:
        setup_logging("DEBUG", "text")
        handler = setup_logging("WARNING", "json")

        ours = [h for h in root.handlers if getattr(h, "nfcdesk", False)]
        assert ours == [handler]
        assert isinstance(handler.formatter, JSONFormatter)
        assert root.level == logging.WARNING
        assert logging.getLogger("apscheduler.executors.default").level == logging.WARNING
    finally:
        for h in [h for h in root.handlers if getattr(h, "nfcdesk", False)]:
            root.removeHandler(h)
        root.setLevel(level)
