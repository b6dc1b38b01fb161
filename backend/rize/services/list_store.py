"""List Store — ordered, append-only persistence for notes and tasks.

Invariants:
    - append trims text and rejects empty-after-trim with EmptyInputError before touching storage
    - Each append is one committed INSERT; visible to the next list() call
    - list() materializes a fresh list on every call and never writes
    - Notes come back newest-first, tasks in insertion order (core/list_rules.py)
    - append/list serialized per collection kind; kinds never share a lock
    - Storage failures surface as StorageIOError for that call only

Design Decisions:
    - One generic store parameterized by CollectionKind replaces per-feature copies
    - Lock per kind on top of SQLite transactions: a reader never sees a half-applied append
"""

import asyncio
import logging

from sqlalchemy import select

from rize.core.domain_types import CollectionKind, ListRecord, RecordId, SortOrder
from rize.core.list_rules import check_entry_text, normalize_entry_text, ordering_for
from rize.infrastructure.database import DatabaseSessionManager
from rize.models.list_record import ENTRY_MODELS

logger = logging.getLogger(__name__)


class ListStore:
    """CRUD (create + read) over ordered string records, one store per kind."""

    def __init__(self, stores: dict[CollectionKind, DatabaseSessionManager]):
        missing = set(CollectionKind) - set(stores)
        if missing:
            raise ValueError(
                f"No store configured for: {sorted(k.value for k in missing)}",
            )
        self._stores = stores
        self._locks = {kind: asyncio.Lock() for kind in CollectionKind}

    async def append(self, kind: CollectionKind, text: str) -> ListRecord:
        """Persist one entry and return it with its storage-assigned id."""
        error = check_entry_text(kind, text)
        if error:
            logger.info(
                "Rejected empty list entry",
                extra={"collection": kind.value, "error_code": error.code},
            )
            raise error

        model = ENTRY_MODELS[kind]
        async with self._locks[kind]:
            async with self._stores[kind].session() as db:
                entry = model(text=normalize_entry_text(text))
                db.add(entry)
                await db.commit()

        logger.info(
            "List entry appended",
            extra={"collection": kind.value, "record_id": entry.id},
        )
        return ListRecord(id=RecordId(entry.id), text=entry.text, kind=kind)

    async def records(self, kind: CollectionKind) -> list[ListRecord]:
        """Full records in the collection's display order."""
        model = ENTRY_MODELS[kind]
        order = (
            model.id.desc()
            if ordering_for(kind) == SortOrder.DESCENDING
            else model.id.asc()
        )
        async with self._locks[kind]:
            async with self._stores[kind].session() as db:
                result = await db.execute(select(model).order_by(order))
                rows = result.scalars().all()
        return [
            ListRecord(id=RecordId(row.id), text=row.text, kind=kind)
            for row in rows
        ]

    async def list(self, kind: CollectionKind) -> list[str]:
        """Entry texts in the collection's display order."""
        return [record.text for record in await self.records(kind)]
