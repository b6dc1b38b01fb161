"""Service test fixtures — file-backed SQLite stores, fake identity provider, FastAPI test client.

Invariants:
    - Every test gets fresh notes/tasks/session stores under tmp_path
    - Stores go through init_schema(), exactly as at startup
    - get_auth_manager / get_list_store overridden so routes use the test instances
    - Engines are disposed after each test

Design Decisions:
    - File-backed SQLite over :memory: so schema-version and restart tests can
      reopen the same file with a new manager
    - FakeIdentityProvider at the IdentityProvider boundary: no network in service tests
"""

import pytest
from httpx import ASGITransport, AsyncClient

from rize.core.domain_types import CollectionKind
from rize.infrastructure.database import DatabaseSessionManager
from rize.main import app
from rize.models.list_record import NoteEntry, TaskEntry
from rize.models.preference import Preference
from rize.services.auth_session import AuthSessionManager
from rize.services.list_store import ListStore
from rize.services.runtime import get_auth_manager, get_list_store
from rize.services.session_cache import SessionCache

from tests.services.fake_identity_provider import FakeIdentityProvider

TEST_NAMESPACE = "com.hytek.rize.test_preferences"


def sqlite_url(path) -> str:
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
async def stores(tmp_path):
    managers = {
        "notes": DatabaseSessionManager(
            sqlite_url(tmp_path / "notes.db"), [NoteEntry.__table__],
        ),
        "tasks": DatabaseSessionManager(
            sqlite_url(tmp_path / "tasks.db"), [TaskEntry.__table__],
        ),
        "session": DatabaseSessionManager(
            sqlite_url(tmp_path / "session.db"), [Preference.__table__],
        ),
    }
    for manager in managers.values():
        await manager.init_schema()
    yield managers
    for manager in managers.values():
        await manager.dispose()


@pytest.fixture
def session_cache(stores):
    return SessionCache(stores["session"], TEST_NAMESPACE)


@pytest.fixture
def provider():
    return FakeIdentityProvider()


@pytest.fixture
def auth_manager(provider, session_cache):
    return AuthSessionManager(provider, session_cache)


@pytest.fixture
def list_store(stores):
    return ListStore({
        CollectionKind.NOTE: stores["notes"],
        CollectionKind.TASK: stores["tasks"],
    })


@pytest.fixture
async def client(auth_manager, list_store):
    """FastAPI test client with the session manager and list store overridden."""
    app.dependency_overrides[get_auth_manager] = lambda: auth_manager
    app.dependency_overrides[get_list_store] = lambda: list_store

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
async def signed_in(auth_manager, provider):
    """A verified account, signed in and admitted."""
    provider.add_account("user@example.com", "secret", verified=True)
    outcome = await auth_manager.sign_in("user@example.com", "secret")
    assert outcome.ok
    return outcome
