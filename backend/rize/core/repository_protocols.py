"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell: dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - IdentityProvider methods raise ProviderFailure (or subclasses) on failure

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do IO; the pure functions that
      consume their results are never async themselves
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from rize.core.domain_types import CollectionKind, Identity, ListRecord


class IdentityProvider(Protocol):
    """Remote identity authority, implemented by infrastructure/identity_client.py."""
    async def sign_in_with_password(self, email: str, password: str) -> Identity: ...
    async def create_account(self, email: str, password: str) -> Identity: ...
    async def reload_identity(self, identity: Identity) -> Identity: ...
    async def send_verification_email(self, identity: Identity) -> None: ...
    async def send_password_reset_email(self, email: str) -> None: ...
    async def exchange_federated_token(self, token: str) -> Identity: ...
    async def resume_identity(self, handle: Identity) -> Identity: ...
    async def sign_out(self) -> None: ...
    def current_identity(self) -> Identity | None: ...


@dataclass(frozen=True)
class CachedSession:
    """Snapshot of the durable session cache.

    `handle` is the persisted provider identity (uid, email, refresh token),
    present only while the flag is set. Its email_verified is always False:
    verification is re-read from the provider, never trusted from disk.
    """
    is_authenticated: bool = False
    email: str | None = None
    updated_at: datetime | None = None
    handle: Identity | None = None


class SessionCacheStore(Protocol):
    """Durable authentication flag, implemented by services/session_cache.py."""
    async def read(self) -> CachedSession: ...
    async def set_authenticated(
        self, value: bool, identity: Identity | None = None,
    ) -> None: ...


class ListRepository(Protocol):
    """Ordered record persistence, implemented by services/list_store.py."""
    async def append(self, kind: CollectionKind, text: str) -> ListRecord: ...
    async def list(self, kind: CollectionKind) -> list[str]: ...
