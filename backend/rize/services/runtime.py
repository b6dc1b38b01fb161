"""Runtime — builds and owns the process-wide stores, provider client and session manager.

Invariants:
    - Exactly one AuthSessionManager per process (one logical session per device)
    - Every store's schema is checked before the runtime is published
    - shutdown() closes the provider client and disposes every engine

Design Decisions:
    - Module-level singleton initialized from the FastAPI lifespan, mirroring
      the database manager pattern: no import-time side effects
"""

import logging
from dataclasses import dataclass

from rize.config import Settings
from rize.core.domain_types import CollectionKind
from rize.infrastructure.database import DatabaseSessionManager
from rize.infrastructure.identity_client import FirebaseIdentityClient
from rize.models.list_record import NoteEntry, TaskEntry
from rize.models.preference import Preference
from rize.services.auth_session import AuthSessionManager
from rize.services.list_store import ListStore
from rize.services.session_cache import SessionCache

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    stores: dict[str, DatabaseSessionManager]
    identity_client: FirebaseIdentityClient
    session_cache: SessionCache
    auth_manager: AuthSessionManager
    list_store: ListStore

    async def health_check(self) -> dict[str, bool]:
        return {
            name: await store.health_check()
            for name, store in self.stores.items()
        }

    async def shutdown(self) -> None:
        await self.identity_client.aclose()
        for store in self.stores.values():
            await store.dispose()


def build_stores(settings: Settings) -> dict[str, DatabaseSessionManager]:
    echo = settings.database_echo
    return {
        "notes": DatabaseSessionManager(
            settings.notes_database_url, [NoteEntry.__table__], echo=echo,
        ),
        "tasks": DatabaseSessionManager(
            settings.tasks_database_url, [TaskEntry.__table__], echo=echo,
        ),
        "session": DatabaseSessionManager(
            settings.session_database_url, [Preference.__table__], echo=echo,
        ),
    }


# Singleton (initialized on startup)
runtime: Runtime | None = None


async def init_runtime(settings: Settings) -> Runtime:
    global runtime
    stores = build_stores(settings)
    for store in stores.values():
        await store.init_schema()

    identity_client = FirebaseIdentityClient(
        api_key=settings.identity_api_key,
        base_url=settings.identity_base_url,
        token_url=settings.identity_token_url,
        timeout_seconds=settings.identity_timeout_seconds,
        max_retries=settings.identity_max_retries,
        base_delay_ms=settings.identity_base_delay_ms,
        max_delay_ms=settings.identity_max_delay_ms,
        federated_provider_id=settings.federated_provider_id,
        federated_request_uri=settings.federated_request_uri,
    )
    session_cache = SessionCache(stores["session"], settings.session_namespace)
    auth_manager = AuthSessionManager(
        identity_client, session_cache,
        password_min_length=settings.password_min_length,
    )
    await auth_manager.restore()
    list_store = ListStore({
        CollectionKind.NOTE: stores["notes"],
        CollectionKind.TASK: stores["tasks"],
    })

    runtime = Runtime(
        stores=stores,
        identity_client=identity_client,
        session_cache=session_cache,
        auth_manager=auth_manager,
        list_store=list_store,
    )
    logger.info("Runtime initialized")
    return runtime


async def shutdown_runtime() -> None:
    global runtime
    if runtime is not None:
        await runtime.shutdown()
        runtime = None


def get_runtime() -> Runtime:
    if not runtime:
        raise RuntimeError("Runtime not initialized")
    return runtime


def get_auth_manager() -> AuthSessionManager:
    """FastAPI dependency for the device session manager."""
    return get_runtime().auth_manager


def get_list_store() -> ListStore:
    """FastAPI dependency for list persistence."""
    return get_runtime().list_store
