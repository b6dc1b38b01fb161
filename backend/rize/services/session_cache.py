"""Session Cache — durable "is this device authenticated" flag, independent of the identity provider.

Invariants:
    - Key `isAuthenticated` (bool) under namespace `<app_id>_preferences`
    - Missing keys read as not authenticated
    - Each write (flag + identity handle + updatedAt) commits in one transaction
    - The identity handle (uid, email, provider, refresh token) is stored only
      while the flag is True; clearing the flag wipes every handle key
    - AuthSessionManager is the only writer; every other component reads

Design Decisions:
    - Stored in its own SQLite file: survives process restart, shares nothing with list stores
    - The handle lets a restarted process resume the provider session instead
      of forcing a new sign-in; the local cache is not encrypted
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import select

from rize.core.domain_types import PASSWORD_PROVIDER, Identity
from rize.core.repository_protocols import CachedSession
from rize.infrastructure.database import DatabaseSessionManager
from rize.models.preference import Preference

logger = logging.getLogger(__name__)

AUTHENTICATED_KEY = "isAuthenticated"
EMAIL_KEY = "email"
UID_KEY = "uid"
PROVIDER_KEY = "providerId"
REFRESH_TOKEN_KEY = "refreshToken"
UPDATED_AT_KEY = "updatedAt"


def _handle_from(values: dict) -> Identity | None:
    if not values.get(UID_KEY) or not values.get(REFRESH_TOKEN_KEY):
        return None
    return Identity(
        uid=values[UID_KEY],
        email=values.get(EMAIL_KEY),
        provider_id=values.get(PROVIDER_KEY) or PASSWORD_PROVIDER,
        refresh_token=values[REFRESH_TOKEN_KEY],
    )


class SessionCache:
    """Namespaced key/value view over the preferences table."""

    def __init__(self, db: DatabaseSessionManager, namespace: str):
        self._db = db
        self.namespace = namespace

    async def read(self) -> CachedSession:
        async with self._db.session() as session:
            result = await session.execute(
                select(Preference).where(Preference.namespace == self.namespace),
            )
            values = {pref.key: pref.value for pref in result.scalars()}
        is_authenticated = bool(values.get(AUTHENTICATED_KEY, False))
        updated_at = values.get(UPDATED_AT_KEY)
        return CachedSession(
            is_authenticated=is_authenticated,
            email=values.get(EMAIL_KEY),
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
            handle=_handle_from(values) if is_authenticated else None,
        )

    async def is_authenticated(self) -> bool:
        return (await self.read()).is_authenticated

    async def set_authenticated(
        self, value: bool, identity: Identity | None = None,
    ) -> None:
        kept = identity if value else None
        entries = {
            AUTHENTICATED_KEY: value,
            EMAIL_KEY: kept.email if kept else None,
            UID_KEY: kept.uid if kept else None,
            PROVIDER_KEY: kept.provider_id if kept else None,
            REFRESH_TOKEN_KEY: kept.refresh_token if kept else None,
            UPDATED_AT_KEY: datetime.now(timezone.utc).isoformat(),
        }
        async with self._db.session() as session:
            for key, val in entries.items():
                await session.merge(
                    Preference(namespace=self.namespace, key=key, value=val),
                )
            await session.commit()
        logger.info(f"Session cache set: {AUTHENTICATED_KEY}={value}")
