"""Auth Session Manager — sign-in, sign-up, federated sign-in, verification gating and sign-out.

Invariants:
    - Sole reader of the identity provider and sole writer of the session cache
    - Credentials are validated locally first; a rejected pair never reaches the provider
    - Provider failures are classified (core/classify_errors.py) and returned in the
      AuthOutcome; a failed attempt leaves session state as it was
    - The cache flag is set True only for a verified (or federated) identity
    - Every operation except sign_out() runs under one operation lock, so two
      requests never interleave their transitions on the shared SessionState
    - sign_out() never waits for that lock: it bumps the state generation before
      any await, so an operation in flight drops its result at its next check
      instead of re-setting the cache
    - Cache writes happen under one lock and re-check the generation on both sides
    - Best-effort actions (verification email, provider sign-out) log and continue

Design Decisions:
    - Every operation returns an AuthOutcome (signal + phase + error): the UI
      branches on signals, never on exceptions
    - sign_in composes into the verification step explicitly instead of nesting callbacks
    - The persisted identity handle is only resumed by reconcile(), never by
      restore(): startup stays offline and the cached flag alone admits nothing
"""

import asyncio
import functools
import logging
from dataclasses import dataclass

from rize.core.classify_errors import classify_provider_failure
from rize.core.domain_types import AuthSignal, Destination, Identity, SessionPhase
from rize.core.errors import (
    ErrorContext,
    IdentityRevokedFailure,
    NotAuthenticatedError,
    ProviderFailure,
    RizeError,
    StorageIOError,
)
from rize.core.navigation_policy import initial_destination
from rize.core.repository_protocols import IdentityProvider, SessionCacheStore
from rize.core.session_state import SessionState
from rize.core.validate_credentials import (
    DEFAULT_MIN_PASSWORD_LENGTH,
    validate_password_reset,
    validate_sign_in,
    validate_sign_up,
)

logger = logging.getLogger(__name__)

PROVIDER_EXCEPTIONS = (ProviderFailure, ConnectionError, TimeoutError)


@dataclass(frozen=True)
class AuthOutcome:
    """Completion signal for one AuthSessionManager operation."""
    signal: AuthSignal
    phase: SessionPhase
    email: str | None = None
    error: RizeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.signal not in (
            AuthSignal.FAILED, AuthSignal.FEDERATED_SIGN_IN_FAILED,
        )


def serialized(method):
    """Run the operation under the manager's operation lock."""
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        async with self._operation_lock:
            return await method(self, *args, **kwargs)
    return wrapper


class AuthSessionManager:
    """Orchestrates the device's authentication session."""

    def __init__(
        self,
        provider: IdentityProvider,
        cache: SessionCacheStore,
        password_min_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
    ):
        self._provider = provider
        self._cache = cache
        self._password_min_length = password_min_length
        self._operation_lock = asyncio.Lock()
        self._cache_lock = asyncio.Lock()
        self.state = SessionState()

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    # ─── Startup & routing ──────────────────────────────────────

    @serialized
    async def restore(self) -> SessionPhase:
        """Load the durable cache flag (and provider handle) at process start."""
        cached = await self._cache.read()
        self.state.restore_cached(cached.is_authenticated, cached.handle)
        logger.info(
            "Session cache restored",
            extra={"phase": self.current_route_hint().value},
        )
        return self.current_route_hint()

    def current_route_hint(self) -> SessionPhase:
        """Cold-start hint from the cached flag only. Never gates sensitive screens."""
        if self.state.cached_authenticated:
            return SessionPhase.AUTHENTICATED
        return SessionPhase.ANONYMOUS

    def initial_destination(self) -> Destination:
        return initial_destination(self.current_route_hint())

    def current_email(self) -> str | None:
        """Signed-in user's email, only once the session is admitted."""
        return self.state.email if self.state.is_authenticated else None

    # ─── Password flows ─────────────────────────────────────────

    @serialized
    async def sign_in(self, email: str, password: str) -> AuthOutcome:
        """Validate, sign in remotely, then gate on email verification."""
        email, password = email.strip(), password.strip()
        error = validate_sign_in(email, password)
        if error:
            return self._rejected(error, "sign_in")

        generation = self.state.begin_attempt()
        try:
            identity = await self._provider.sign_in_with_password(email, password)
        except PROVIDER_EXCEPTIONS as e:
            return self._attempt_failed(e, "sign_in", generation)
        if self.state.is_stale(generation):
            return self._discarded("sign_in")

        self.state.identity_established(identity)
        return await self._verify_current("sign_in")

    @serialized
    async def ensure_verified(self) -> AuthOutcome:
        """Reload the remote identity; admit if verified, else request verification."""
        return await self._verify_current("ensure_verified")

    @serialized
    async def sign_up(self, email: str, password: str) -> AuthOutcome:
        """Create the account and send a verification email. Never admits the session."""
        email, password = email.strip(), password.strip()
        error = validate_sign_up(email, password, self._password_min_length)
        if error:
            return self._rejected(error, "sign_up")

        generation = self.state.begin_attempt()
        try:
            identity = await self._provider.create_account(email, password)
        except PROVIDER_EXCEPTIONS as e:
            return self._attempt_failed(e, "sign_up", generation)
        if self.state.is_stale(generation):
            return self._discarded("sign_up")

        self.state.identity_established(identity)
        self.state.mark_awaiting_verification()
        await self._send_verification_best_effort(identity)
        if self.state.is_stale(generation):
            return self._discarded("sign_up")
        return self._outcome(AuthSignal.REGISTERED_PENDING_VERIFICATION)

    @serialized
    async def request_password_reset(self, email: str) -> AuthOutcome:
        email = email.strip()
        error = validate_password_reset(email)
        if error:
            return self._rejected(error, "password_reset")
        try:
            await self._provider.send_password_reset_email(email)
        except PROVIDER_EXCEPTIONS as e:
            return self._failed(e, "password_reset")
        logger.info("Password reset email requested")
        return self._outcome(AuthSignal.PASSWORD_RESET_SENT)

    # ─── Federated flow ─────────────────────────────────────────

    @serialized
    async def complete_federated_sign_in(self, external_token: str | None) -> AuthOutcome:
        """Exchange an external account token. None means the user cancelled."""
        if not external_token:
            logger.info(
                "Federated sign-in cancelled",
                extra={"signal": AuthSignal.FEDERATED_SIGN_IN_FAILED.value},
            )
            return self._outcome(AuthSignal.FEDERATED_SIGN_IN_FAILED)

        generation = self.state.begin_attempt()
        try:
            identity = await self._provider.exchange_federated_token(external_token)
        except PROVIDER_EXCEPTIONS as e:
            outcome = self._attempt_failed(e, "federated_sign_in", generation)
            return AuthOutcome(
                AuthSignal.FEDERATED_SIGN_IN_FAILED, outcome.phase,
                outcome.email, outcome.error,
            )
        if self.state.is_stale(generation):
            return self._discarded("federated_sign_in")

        return await self._admit(identity, generation, "federated_sign_in")

    # ─── Sign-out & reconciliation ──────────────────────────────

    async def sign_out(self) -> AuthOutcome:
        """Clear identity and cache; invalidate in-flight operations. Idempotent."""
        self.state.reset()
        try:
            await self._provider.sign_out()
        except PROVIDER_EXCEPTIONS as e:
            logger.warning(f"Provider sign-out failed (ignored): {e}")
        try:
            async with self._cache_lock:
                await self._cache.set_authenticated(False)
        except StorageIOError as e:
            return self._storage_failed(e, "sign_out")
        logger.info(
            "Signed out",
            extra={"generation": self.state.generation},
        )
        return self._outcome(AuthSignal.SIGNED_OUT)

    @serialized
    async def reconcile(self) -> AuthOutcome:
        """Re-check remote state before a sensitive screen trusts the cached flag."""
        generation = self.state.generation
        identity = self.state.identity or self._provider.current_identity()
        handle = self.state.resume_handle
        if identity is None and handle is not None:
            try:
                identity = await self._provider.resume_identity(handle)
            except PROVIDER_EXCEPTIONS as e:
                return await self._remote_check_failed(e, generation, "reconcile")
            if self.state.is_stale(generation):
                return self._discarded("reconcile")
        if identity is None:
            if self.state.cached_authenticated or self.state.is_authenticated:
                return await self._invalidate(None, "reconcile")
            return self._outcome(AuthSignal.SIGNED_OUT)

        try:
            refreshed = await self._provider.reload_identity(identity)
        except PROVIDER_EXCEPTIONS as e:
            return await self._remote_check_failed(e, generation, "reconcile")
        if self.state.is_stale(generation):
            return self._discarded("reconcile")

        if refreshed.is_trusted:
            return await self._admit(refreshed, generation, "reconcile")
        if self.state.cached_authenticated:
            return await self._invalidate(None, "reconcile")
        self.state.identity_refreshed(refreshed)
        self.state.mark_awaiting_verification()
        return self._outcome(AuthSignal.AWAITING_VERIFICATION)

    # ─── Helpers ────────────────────────────────────────────────

    async def _verify_current(self, operation: str) -> AuthOutcome:
        identity = self.state.identity
        if identity is None:
            return self._rejected(NotAuthenticatedError(), operation)

        generation = self.state.generation
        try:
            refreshed = await self._provider.reload_identity(identity)
        except PROVIDER_EXCEPTIONS as e:
            return await self._remote_check_failed(e, generation, operation)
        if self.state.is_stale(generation):
            return self._discarded(operation)

        self.state.identity_refreshed(refreshed)
        if refreshed.is_trusted:
            return await self._admit(refreshed, generation, operation)

        self.state.mark_awaiting_verification()
        await self._send_verification_best_effort(refreshed)
        if self.state.is_stale(generation):
            return self._discarded(operation)
        return self._outcome(AuthSignal.AWAITING_VERIFICATION)

    async def _remote_check_failed(
        self, failure: BaseException, generation: int, operation: str,
    ) -> AuthOutcome:
        """Reload/resume failed: revoked identities end the session, anything else is reported."""
        if self.state.is_stale(generation):
            return self._discarded(operation)
        if isinstance(failure, IdentityRevokedFailure):
            return await self._invalidate(failure, operation)
        return self._failed(failure, operation)

    async def _admit(
        self, identity: Identity, generation: int, operation: str,
    ) -> AuthOutcome:
        """Write the durable flag, then enter AUTHENTICATED unless signed out meanwhile."""
        try:
            async with self._cache_lock:
                if self.state.is_stale(generation):
                    return self._discarded(operation)
                await self._cache.set_authenticated(True, identity)
                if self.state.is_stale(generation):
                    return self._discarded(operation)
                self.state.mark_authenticated(identity)
        except StorageIOError as e:
            self.state.abort_attempt()
            return self._storage_failed(e, operation)
        logger.info(
            "Session authenticated",
            extra={
                "signal": AuthSignal.READY_FOR_HOME.value,
                "phase": self.state.phase.value,
            },
        )
        return self._outcome(AuthSignal.READY_FOR_HOME)

    async def _invalidate(
        self, failure: BaseException | None, operation: str,
    ) -> AuthOutcome:
        """Remote state no longer backs the cache: reset everything."""
        logger.warning(
            f"Session invalidated during {operation}: {failure or 'no provider identity'}",
            extra={"signal": AuthSignal.SESSION_INVALIDATED.value},
        )
        error = (
            classify_provider_failure(failure, ErrorContext(operation=operation))
            if failure is not None else None
        )
        signed_out = await self.sign_out()
        if signed_out.error:
            return signed_out
        return self._outcome(AuthSignal.SESSION_INVALIDATED, error)

    async def _send_verification_best_effort(self, identity: Identity) -> None:
        try:
            await self._provider.send_verification_email(identity)
            logger.info("Verification email sent")
        except PROVIDER_EXCEPTIONS as e:
            error = classify_provider_failure(e)
            logger.warning(
                f"Failed to send verification email: {error.message}",
                extra={"error_code": error.code},
            )

    def _outcome(
        self, signal: AuthSignal, error: RizeError | None = None,
    ) -> AuthOutcome:
        return AuthOutcome(
            signal=signal,
            phase=self.state.phase,
            email=self.state.email,
            error=error,
        )

    def _rejected(self, error: RizeError, operation: str) -> AuthOutcome:
        logger.info(
            f"{operation} rejected locally: {error.message}",
            extra={"error_code": error.code},
        )
        return self._outcome(AuthSignal.FAILED, error)

    def _failed(self, failure: BaseException, operation: str) -> AuthOutcome:
        error = classify_provider_failure(failure, ErrorContext(operation=operation))
        logger.warning(
            f"{operation} failed: {error.message}",
            extra={"error_code": error.code, "phase": self.state.phase.value},
        )
        return self._outcome(AuthSignal.FAILED, error)

    def _attempt_failed(
        self, failure: BaseException, operation: str, generation: int,
    ) -> AuthOutcome:
        if not self.state.is_stale(generation):
            self.state.abort_attempt()
        return self._failed(failure, operation)

    def _storage_failed(self, error: StorageIOError, operation: str) -> AuthOutcome:
        logger.error(
            f"{operation} could not update the session cache: {error.message}",
            extra={"error_code": error.code},
        )
        return self._outcome(AuthSignal.FAILED, error)

    def _discarded(self, operation: str) -> AuthOutcome:
        logger.info(
            f"Discarded stale {operation} result after sign-out",
            extra={
                "signal": AuthSignal.STALE_RESULT_DISCARDED.value,
                "generation": self.state.generation,
            },
        )
        return self._outcome(AuthSignal.STALE_RESULT_DISCARDED)
