"""Domain Types — enums and value objects shared by the core and the shell.

Invariants:
    - All valid states encoded as Enums, no raw string matching
    - Identity is immutable; a reload produces a new Identity
    - ListRecord ids come from storage, never from callers

Design Decisions:
    - str Enums: serialize to JSON without custom encoders (ADR: API responses are JSON)
    - Frozen dataclasses for value objects: safe to share between coroutines
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


RecordId = NewType("RecordId", int)

PASSWORD_PROVIDER = "password"


# ─── Enums ───────────────────────────────────────────────────────

class CollectionKind(str, Enum):
    """Which physical list store (and ordering rule) applies."""
    NOTE = "note"
    TASK = "task"


class SortOrder(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


class SessionPhase(str, Enum):
    """Authentication state machine phases."""
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    PENDING_VERIFICATION = "pending_verification"
    AWAITING_VERIFICATION = "awaiting_verification"
    AUTHENTICATED = "authenticated"


class AuthSignal(str, Enum):
    """Completion signal returned by every AuthSessionManager operation."""
    READY_FOR_HOME = "ready_for_home"
    AWAITING_VERIFICATION = "awaiting_verification"
    REGISTERED_PENDING_VERIFICATION = "registered_pending_verification"
    FEDERATED_SIGN_IN_FAILED = "federated_sign_in_failed"
    FAILED = "failed"
    SIGNED_OUT = "signed_out"
    STALE_RESULT_DISCARDED = "stale_result_discarded"
    SESSION_INVALIDATED = "session_invalidated"
    PASSWORD_RESET_SENT = "password_reset_sent"


class ProviderErrorKind(str, Enum):
    """Closed taxonomy for identity-provider failures."""
    INVALID_CREDENTIALS = "invalid_credentials"
    SERVICE_BLOCKED = "service_blocked"
    NETWORK_UNAVAILABLE = "network_unavailable"
    UNKNOWN = "unknown"


class Destination(str, Enum):
    """Navigation targets exposed to the presentation layer."""
    GUEST = "guest"
    SIGN_IN = "sign_in"
    SIGN_UP = "sign_up"
    PASSWORD_RESET = "password_reset"
    HOME = "home"
    TASKS = "tasks"
    NOTES = "notes"
    PROFILE = "profile"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class Identity:
    """Remote identity handle. `token` and `refresh_token` are opaque to everything but the provider."""
    uid: str
    email: str | None
    email_verified: bool = False
    token: str | None = None
    provider_id: str = PASSWORD_PROVIDER
    # Long-lived credential that lets a restarted process resume this identity
    refresh_token: str | None = None

    @property
    def is_federated(self) -> bool:
        """Federated identities carry provider-level trust: no email gate."""
        return self.provider_id != PASSWORD_PROVIDER

    @property
    def is_trusted(self) -> bool:
        return self.email_verified or self.is_federated


@dataclass(frozen=True)
class ListRecord:
    id: RecordId
    text: str
    kind: CollectionKind
