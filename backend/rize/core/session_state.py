"""Session State — in-memory authentication state machine for the device session.

Invariants:
    - AUTHENTICATED requires a trusted identity (email verified, or federated)
    - A failed attempt restores the phase held before the attempt (no mutation on failure)
    - reset() bumps `generation`; any reconciliation that started under an
      older generation must drop its result
    - email_verified is authoritative only while identity is present

Design Decisions:
    - Dataclass with explicit transition methods: pure, deterministic, testable without mocks
    - Illegal transitions raise ValueError: a programming error in the shell, not a user error
"""

from dataclasses import dataclass

from rize.core.domain_types import Identity, SessionPhase


@dataclass
class SessionState:
    """Per-device authentication state: pure dataclass, no IO."""

    phase: SessionPhase = SessionPhase.ANONYMOUS

    # Present only while the provider holds a session
    identity: Identity | None = None

    # Mirror of the durable cache flag (SessionCache is the source of truth on disk)
    cached_authenticated: bool = False

    # Incremented on every reset; used to invalidate in-flight reconciliation
    generation: int = 0

    # Phase to restore if the current attempt fails
    phase_before_attempt: SessionPhase | None = None

    # Persisted provider handle loaded at start; reconcile resumes it remotely
    resume_handle: Identity | None = None

    @property
    def email_verified(self) -> bool:
        return bool(self.identity and self.identity.email_verified)

    @property
    def email(self) -> str | None:
        return self.identity.email if self.identity else None

    @property
    def is_authenticated(self) -> bool:
        return self.phase == SessionPhase.AUTHENTICATED

    def begin_attempt(self) -> int:
        """Enter AUTHENTICATING. Returns the generation the attempt belongs to."""
        if self.phase != SessionPhase.AUTHENTICATING:
            self.phase_before_attempt = self.phase
        self.phase = SessionPhase.AUTHENTICATING
        return self.generation

    def abort_attempt(self) -> None:
        """Attempt failed: restore the phase held before it."""
        if self.phase == SessionPhase.AUTHENTICATING:
            self.phase = self.phase_before_attempt or SessionPhase.ANONYMOUS
        self.phase_before_attempt = None

    def identity_established(self, identity: Identity) -> None:
        """Password sign-in/sign-up succeeded remotely: verification still pending."""
        if self.phase != SessionPhase.AUTHENTICATING:
            raise ValueError(
                f"Cannot establish identity from phase {self.phase.value}",
            )
        self.identity = identity
        self.phase = SessionPhase.PENDING_VERIFICATION
        self.phase_before_attempt = None

    def identity_refreshed(self, identity: Identity) -> None:
        self.identity = identity

    def mark_awaiting_verification(self) -> None:
        if self.identity is None:
            raise ValueError("Cannot await verification without an identity")
        self.phase = SessionPhase.AWAITING_VERIFICATION

    def mark_authenticated(self, identity: Identity | None = None) -> None:
        """Trusted identity confirmed; the durable cache has already been written."""
        if identity is not None:
            self.identity = identity
        if self.identity is None:
            raise ValueError("Cannot authenticate without an identity")
        if not self.identity.is_trusted:
            raise ValueError("Cannot authenticate an unverified password identity")
        self.phase = SessionPhase.AUTHENTICATED
        self.cached_authenticated = True
        self.phase_before_attempt = None

    def restore_cached(
        self, cached_authenticated: bool, handle: Identity | None = None,
    ) -> None:
        """Load the durable flag (and handle) at process start. Does not admit the session."""
        self.cached_authenticated = cached_authenticated
        self.resume_handle = handle if cached_authenticated else None

    def reset(self) -> None:
        """Sign-out or invalidated reconciliation: back to an empty session."""
        self.phase = SessionPhase.ANONYMOUS
        self.identity = None
        self.cached_authenticated = False
        self.resume_handle = None
        self.phase_before_attempt = None
        self.generation += 1

    def is_stale(self, generation: int) -> bool:
        return generation != self.generation
