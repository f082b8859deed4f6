"""Error Hierarchy - envelopes, status codes and retry hints.

Tests:
    - to_response() carries code, category, severity and retryable flag
    - Timeout and not-ready errors are retryable with retry_after_ms
    - NoActiveLoan and DirectoryAmbiguity are warnings
    - to_sse_event() marks warnings as recoverable
"""

from nfcdesk.core.errors import (
    DirectoryAmbiguityError, EngineNotReadyError, ErrorSeverity,
    NoActiveLoanError, OperationTimeoutError, ResourceUnavailableError,
)


def test_resource_unavailable_envelope():
    err = ResourceUnavailableError("computer", 4, "loaned")
    body = err.to_response()["error"]
    assert err.http_status == 409
    assert body["code"] == "RESOURCE_UNAVAILABLE"
    assert body["category"] == "conflict"
    assert body["retryable"] is False
    assert body["context"]["entity_kind"] == "computer"
    assert body["context"]["entity_id"] == 4


def test_timeout_is_retryable():
    err = OperationTimeoutError("submit_tap", 5.0)
    assert err.http_status == 503
    assert err.retryable
    assert err.to_response()["error"]["context"]["retry_after_ms"] == 500
    assert "5s" in err.message


def test_engine_not_ready_is_retryable():
    err = EngineNotReadyError()
    assert err.code == "ENGINE_NOT_READY"
    assert err.http_status == 503
    assert err.context.retry_after_ms == 1000


def test_warning_severities():
    assert NoActiveLoanError("book", 1).severity == ErrorSeverity.WARNING
    ambiguity = DirectoryAmbiguityError("AA11", ["person", "book"], "person")
    assert ambiguity.severity == ErrorSeverity.WARNING
    assert ambiguity.context.card_id == "AA11"


def test_sse_event_recoverable_flag():
    event = NoActiveLoanError("book", 1).to_sse_event()
    assert event["type"] == "error"
    assert event["data"]["recoverable"] is True
    assert OperationTimeoutError("x", 1).to_sse_event()["data"]["recoverable"] is False
