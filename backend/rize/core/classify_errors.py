"""Error Classification — maps raw identity-provider failures into the closed taxonomy.

Invariants:
    - classify_provider_failure never raises; any input resolves to an IdentityProviderError
    - Rule order: invalid-credentials type → "blocked" message → network → unknown
    - The "blocked" match is a case-sensitive substring test ("Blocked" does not match)
    - Unknown keeps the raw provider message

Design Decisions:
    - BLOCKED_MARKER is a named substring rule on the provider message. The
      provider exposes no typed signal for a blocked app, so the heuristic is
      kept explicit and testable rather than buried in a branch.
"""

from rize.core.errors import (
    ErrorContext,
    IdentityProviderError,
    InvalidCredentialsError,
    InvalidCredentialsFailure,
    NetworkFailure,
    NetworkUnavailableError,
    ServiceBlockedError,
    UnknownProviderError,
)

BLOCKED_MARKER = "blocked"

NETWORK_EXCEPTION_TYPES: tuple[type[BaseException], ...] = (
    NetworkFailure, ConnectionError, TimeoutError,
)


def failure_message(failure: BaseException) -> str:
    message = getattr(failure, "message", None) or str(failure)
    return message or failure.__class__.__name__


def is_blocked_message(message: str) -> bool:
    """Service-blocked rule: the provider message contains the literal, lowercase "blocked"."""
    return BLOCKED_MARKER in message


def classify_provider_failure(
    failure: BaseException, context: ErrorContext | None = None,
) -> IdentityProviderError:
    """Map any provider failure to InvalidCredentials/ServiceBlocked/NetworkUnavailable/Unknown."""
    if isinstance(failure, IdentityProviderError):
        return failure
    try:
        message = failure_message(failure)
    except Exception:
        message = failure.__class__.__name__

    if isinstance(failure, InvalidCredentialsFailure):
        return InvalidCredentialsError(message, context)
    if is_blocked_message(message):
        return ServiceBlockedError(message, context)
    if isinstance(failure, NETWORK_EXCEPTION_TYPES):
        return NetworkUnavailableError(message, context)
    return UnknownProviderError(message, context)
