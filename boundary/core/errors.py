"""Error Hierarchy — typed, categorized exceptions for every boundary failure mode.

Invariants:
    - Every error has a code (str), kind (ErrorKind), severity (ErrorSeverity)
    - Validation and business errors (400-level) are recoverable;
      unrecoverable errors (500-level) always surface a generic message
    - to_envelope() produces the uniform {success, data, error} shape
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with BoundaryError base: the global handler catches all
    - ErrorContext as dataclass: observability data travels with the error,
      not through ambient state
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from boundary.core.domain_types import ErrorKind, RequestId
from boundary.core.envelope import ResponseEnvelope, failure_envelope

INTERNAL_ERROR_MESSAGE = "Internal error"
TIMEOUT_ERROR_MESSAGE = "Service timed out"
UNAUTHORIZED_MESSAGE = "Unauthorized"


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Request-scoped context attached to an error for logging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    request_id: RequestId | None = None
    endpoint: str | None = None


class BoundaryError(Exception):
    """Base exception for all boundary errors."""

    def __init__(
        self,
        message: str,
        code: str,
        kind: ErrorKind,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.kind = kind
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def public_message(self) -> str:
        """Message safe to return to the caller."""
        return self.message

    def to_envelope(self) -> ResponseEnvelope:
        """Convert to the uniform failure envelope."""
        return failure_envelope(self.public_message)

    def to_log_extra(self) -> dict:
        """Structured fields for logger.*(extra=...)."""
        return {
            "error_code": self.code,
            "error_kind": self.kind.value,
            "request_id": self.context.request_id,
            "endpoint": self.context.endpoint,
        }


# ─── Validation Errors (400) ────────────────────────────────────

@dataclass(frozen=True)
class FieldIssue:
    """One failing field: dot-joined path, readable reason, machine code."""
    path: str
    reason: str
    code: str

    def render(self) -> str:
        return f"{self.path}: {self.reason}"


class SchemaValidationError(BoundaryError):
    """Raw input does not satisfy the declared schema."""
    def __init__(
        self, schema_name: str, issues: list[FieldIssue],
        context: ErrorContext | None = None,
    ):
        super().__init__(
            "; ".join(issue.render() for issue in issues),
            "VALIDATION_ERROR", ErrorKind.VALIDATION,
            ErrorSeverity.WARNING, context, 400,
        )
        self.schema_name = schema_name
        self.issues = issues

    @property
    def fields(self) -> list[str]:
        return [issue.path for issue in self.issues]


# ─── Business Errors (4xx) ──────────────────────────────────────

class BusinessError(BoundaryError):
    """Expected domain condition — surfaces a safe, specific message."""
    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        code: str = "BUSINESS_RULE",
        context: ErrorContext | None = None,
        http_status: int = 400,
    ):
        super().__init__(
            message, code, kind, ErrorSeverity.INFO, context, http_status,
        )


class ResourceNotFoundError(BusinessError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: object,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            ErrorKind.NOT_FOUND, "RESOURCE_NOT_FOUND", context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class ConflictError(BusinessError):
    """Operation collides with existing state."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, ErrorKind.CONFLICT, "CONFLICT", context, 409,
        )


# ─── Unrecoverable Errors (500-level) ───────────────────────────

class UnrecoverableError(BoundaryError):
    """Infrastructure or dependency failure. Message is logged, never returned."""
    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        kind: ErrorKind = ErrorKind.INTERNAL,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(
            message, code, kind, ErrorSeverity.CRITICAL, context, http_status,
        )

    @property
    def public_message(self) -> str:
        return INTERNAL_ERROR_MESSAGE


class ServiceTimeoutError(UnrecoverableError):
    """Service stage exceeded its time budget."""
    def __init__(self, timeout_seconds: float, context: ErrorContext | None = None):
        super().__init__(
            f"Service did not complete within {timeout_seconds}s",
            "SERVICE_TIMEOUT", ErrorKind.TIMEOUT, context, 504,
        )
        self.timeout_seconds = timeout_seconds

    @property
    def public_message(self) -> str:
        return TIMEOUT_ERROR_MESSAGE


# ─── Auth Errors (401) ──────────────────────────────────────────

class AuthDeniedError(BoundaryError):
    """Guard denied the request before it reached the handler."""
    def __init__(self, redirect_target: str, context: ErrorContext | None = None):
        super().__init__(
            UNAUTHORIZED_MESSAGE, "UNAUTHORIZED", ErrorKind.UNAUTHORIZED,
            ErrorSeverity.WARNING, context, 401,
        )
        self.redirect_target = redirect_target


# ─── Control Flow ───────────────────────────────────────────────

class ClientDisconnected(Exception):
    """Caller went away mid-request; no envelope is emitted."""
