"""Error Hierarchy — typed, categorized exceptions for all Rize failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Every error maps to exactly one short user_message
    - UnknownProviderError falls back to the raw provider message
    - ProviderFailure and subclasses are raw adapter failures; they are
      classified (core/classify_errors.py) before reaching callers

Design Decisions:
    - Single hierarchy with RizeError base: FastAPI global handler catches all (ADR: uniform error shape)
    - Raw provider failures live outside the RizeError tree so an unclassified
      failure can never be rendered by the API
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone

from rize.core.domain_types import CollectionKind, ProviderErrorKind


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    STORAGE = "storage"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    operation: str | None = None
    collection: str | None = None
    debug_info: dict[str, Any] | None = None


class RizeError(Exception):
    """Base exception for all Rize errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status
        self.user_message = user_message or message

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.user_message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "operation": self.context.operation,
                    "collection": self.context.collection,
                },
            }
        }


# ─── Local Errors (400-level) ───────────────────────────────────

class CredentialValidationError(RizeError):
    """Credential input rejected locally, before any provider call."""
    def __init__(self, field: str, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field

    def to_response(self) -> dict:
        response = super().to_response()
        response["error"]["field"] = self.field
        return response


class EmptyInputError(RizeError):
    """List entry text is empty after trimming."""
    def __init__(self, kind: CollectionKind, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.collection = kind.value
        super().__init__(
            f"Please enter a {kind.value}",
            "EMPTY_INPUT", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.kind = kind


class NotAuthenticatedError(RizeError):
    """Sensitive resource requested without an admitted session."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Sign in to continue",
            "NOT_AUTHENTICATED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


# ─── Identity Provider Errors (classified) ──────────────────────

class IdentityProviderError(RizeError):
    """Classified identity-provider failure. `kind` is the closed taxonomy."""
    kind: ProviderErrorKind = ProviderErrorKind.UNKNOWN


class InvalidCredentialsError(IdentityProviderError):
    kind = ProviderErrorKind.INVALID_CREDENTIALS

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
            user_message="Invalid email or password.",
        )


class ServiceBlockedError(IdentityProviderError):
    kind = ProviderErrorKind.SERVICE_BLOCKED

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SERVICE_BLOCKED", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 403,
            user_message="Rize app is currently blocked. Please contact the developer.",
        )


class NetworkUnavailableError(IdentityProviderError):
    kind = ProviderErrorKind.NETWORK_UNAVAILABLE

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "NETWORK_UNAVAILABLE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 503,
            user_message="Network unavailable. Check your connection and try again.",
        )


class UnknownProviderError(IdentityProviderError):
    kind = ProviderErrorKind.UNKNOWN

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "PROVIDER_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 502,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class StorageIOError(RizeError):
    """Local storage operation failed. Fatal to the single call only."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.operation = operation
        super().__init__(
            f"Storage {operation} failed: {message}",
            "STORAGE_IO_ERROR", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, ctx, 503,
            user_message="Failed to save or load your data. Please try again.",
        )
        self.operation = operation


class SchemaVersionError(RizeError):
    """Store carries a schema version this build cannot open."""
    def __init__(self, found: int, expected: int, context: ErrorContext | None = None):
        super().__init__(
            f"Unsupported schema version {found} (expected {expected})",
            "SCHEMA_VERSION_MISMATCH", ErrorCategory.STORAGE,
            ErrorSeverity.CRITICAL, context, 500,
        )
        self.found = found
        self.expected = expected


# ─── Raw Provider Failures (unclassified) ───────────────────────

class ProviderFailure(Exception):
    """Raised by IdentityProvider implementations. `code` is the provider's own."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.code = code


class InvalidCredentialsFailure(ProviderFailure):
    pass


class NetworkFailure(ProviderFailure):
    pass


class IdentityRevokedFailure(ProviderFailure):
    """The provider no longer recognises the identity (disabled, deleted, expired)."""
