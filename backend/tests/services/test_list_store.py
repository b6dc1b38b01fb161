"""List Store — ordered append-only persistence for notes and tasks.

Tests cover:
    - append trims text and assigns increasing ids
    - Blank text rejected before touching storage
    - Notes list newest-first, tasks in insertion order
    - Collections never see each other's entries
    - Entries survive a new store over the same files
"""

import asyncio

import pytest

from rize.core.domain_types import CollectionKind
from rize.core.errors import EmptyInputError
from rize.infrastructure.database import DatabaseSessionManager
from rize.models.list_record import NoteEntry
from rize.services.list_store import ListStore


async def test_append_trims_and_returns_record(list_store):
    record = await list_store.append(CollectionKind.TASK, "  buy milk  ")

    assert record.text == "buy milk"
    assert record.kind == CollectionKind.TASK
    assert record.id >= 1


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_entry_rejected(list_store, text):
    with pytest.raises(EmptyInputError) as exc_info:
        await list_store.append(CollectionKind.NOTE, text)

    assert exc_info.value.message == "Please enter a note"
    assert await list_store.list(CollectionKind.NOTE) == []


async def test_notes_newest_first(list_store):
    for text in ["first", "second", "third"]:
        await list_store.append(CollectionKind.NOTE, text)

    assert await list_store.list(CollectionKind.NOTE) == ["third", "second", "first"]


async def test_tasks_in_insertion_order(list_store):
    for text in ["first", "second", "third"]:
        await list_store.append(CollectionKind.TASK, text)

    assert await list_store.list(CollectionKind.TASK) == ["first", "second", "third"]


async def test_ids_increase(list_store):
    first = await list_store.append(CollectionKind.TASK, "a")
    second = await list_store.append(CollectionKind.TASK, "b")

    assert second.id > first.id


async def test_duplicates_kept(list_store):
    await list_store.append(CollectionKind.TASK, "same")
    await list_store.append(CollectionKind.TASK, "same")

    assert await list_store.list(CollectionKind.TASK) == ["same", "same"]


async def test_collections_are_separate(list_store):
    await list_store.append(CollectionKind.NOTE, "a note")
    await list_store.append(CollectionKind.TASK, "a task")

    assert await list_store.list(CollectionKind.NOTE) == ["a note"]
    assert await list_store.list(CollectionKind.TASK) == ["a task"]


async def test_list_returns_fresh_copy(list_store):
    await list_store.append(CollectionKind.TASK, "a")
    items = await list_store.list(CollectionKind.TASK)
    items.append("mutated")

    assert await list_store.list(CollectionKind.TASK) == ["a"]


async def test_concurrent_appends_all_persist(list_store):
    texts = [f"task {i}" for i in range(10)]

    await asyncio.gather(*(list_store.append(CollectionKind.TASK, t) for t in texts))

    assert sorted(await list_store.list(CollectionKind.TASK)) == sorted(texts)


async def test_records_carry_ids(list_store):
    created = await list_store.append(CollectionKind.NOTE, "hello")

    records = await list_store.records(CollectionKind.NOTE)

    assert records == [created]


async def test_entries_survive_reopen(stores, list_store):
    await list_store.append(CollectionKind.NOTE, "persisted")

    reopened = DatabaseSessionManager(stores["notes"].database_url, [NoteEntry.__table__])
    await reopened.init_schema()
    try:
        store = ListStore({
            CollectionKind.NOTE: reopened,
            CollectionKind.TASK: stores["tasks"],
        })
        assert await store.list(CollectionKind.NOTE) == ["persisted"]
    finally:
        await reopened.dispose()


def test_missing_store_rejected(stores):
    with pytest.raises(ValueError):
        ListStore({CollectionKind.NOTE: stores["notes"]})
