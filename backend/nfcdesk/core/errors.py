"""Error Hierarchy - typed, categorized exceptions for all nfcdesk failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces REST envelope; to_sse_event() produces SSE envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with NfcDeskError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
    - Retryable failures (timeout, not-ready) carry retry_after_ms so reader bridges can back off
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATA_INTEGRITY = "data_integrity"
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"
    TIMEOUT = "timeout"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    card_id: str | None = None
    entity_kind: str | None = None
    entity_id: int | None = None
    user_message: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class NfcDeskError(Exception):
    """Base exception for all nfcdesk errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def retryable(self) -> bool:
        return self.context.retry_after_ms is not None

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "retryable": self.retryable,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "card_id": self.context.card_id,
                    "entity_kind": self.context.entity_kind,
                    "entity_id": self.context.entity_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }

    def to_sse_event(self) -> dict:
        """Convert to SSE error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.context.user_message or self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING,
                ),
                "card_id": self.context.card_id,
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class InvalidInputError(NfcDeskError):
    """Malformed or empty input, rejected before any read."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class ResourceUnavailableError(NfcDeskError):
    """Reservation attempted on a loaned or maintenance resource."""
    def __init__(
        self, resource_kind: str, resource_id: int, status: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.entity_kind = resource_kind
        ctx.entity_id = resource_id
        super().__init__(
            f"{resource_kind} {resource_id} is not available ({status})",
            "RESOURCE_UNAVAILABLE", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.resource_kind = resource_kind
        self.resource_id = resource_id
        self.status = status


class NoActiveLoanError(NfcDeskError):
    """Release attempted on a resource with no active loan."""
    def __init__(
        self, resource_kind: str, resource_id: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.entity_kind = resource_kind
        ctx.entity_id = resource_id
        super().__init__(
            f"{resource_kind} {resource_id} has no active loan",
            "NO_ACTIVE_LOAN", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 409,
        )
        self.resource_kind = resource_kind
        self.resource_id = resource_id


class DirectoryAmbiguityError(NfcDeskError):
    """Card bound to more than one entity kind. Logged, resolved by priority."""
    def __init__(
        self, card_id: str, kinds: list[str], chosen: str,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.card_id = card_id
        super().__init__(
            f"Card '{card_id}' matches {', '.join(kinds)}; resolved as {chosen}",
            "DIRECTORY_AMBIGUITY", ErrorCategory.DATA_INTEGRITY,
            ErrorSeverity.WARNING, ctx, 500,
        )
        self.kinds = kinds
        self.chosen = chosen


class CardAlreadyAssignedError(NfcDeskError):
    """Card already bound to a different entity."""
    def __init__(
        self, card_id: str, owner_kind: str, owner_id: int,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.card_id = card_id
        super().__init__(
            f"Card '{card_id}' is already assigned to {owner_kind} {owner_id}",
            "CARD_ALREADY_ASSIGNED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, ctx, 409,
        )
        self.owner_kind = owner_kind
        self.owner_id = owner_id


class InvalidTransitionError(NfcDeskError):
    """Appointment status change not allowed by the lifecycle table."""
    def __init__(self, current: str, target: str, context: ErrorContext | None = None):
        super().__init__(
            f"Cannot move appointment from '{current}' to '{target}'",
            "INVALID_TRANSITION", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, context, 409,
        )
        self.current = current
        self.target = target


class ResourceNotFoundError(NfcDeskError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(NfcDeskError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class OperationTimeoutError(NfcDeskError):
    """Operation exceeded its time budget. Safe to retry."""
    def __init__(
        self, operation: str, timeout_seconds: float,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = ctx.retry_after_ms or 500
        super().__init__(
            f"{operation} timed out after {timeout_seconds:g}s",
            "OPERATION_TIMEOUT", ErrorCategory.TIMEOUT,
            ErrorSeverity.ERROR, ctx, 503,
        )
        self.operation = operation


class EngineNotReadyError(NfcDeskError):
    """Taps submitted before AccessEngine.ready() completed."""
    def __init__(self, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = ctx.retry_after_ms or 1000
        super().__init__(
            "Access engine is not ready",
            "ENGINE_NOT_READY", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, ctx, 503,
        )
