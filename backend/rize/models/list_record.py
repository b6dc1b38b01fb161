"""List Record ORM — one append-only table per collection kind.

Invariants:
    - id is INTEGER PRIMARY KEY AUTOINCREMENT: monotonic, never reused (even after row loss)
    - text is non-nullable; emptiness is rejected before reaching storage
    - Rows are never updated in place

Design Decisions:
    - Shared mixin, two tables: notes and tasks stay physically independent
      while the mapping is written once
"""

from sqlalchemy import Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from rize.core.domain_types import CollectionKind
from rize.db.base import Base


class ListEntryMixin:
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)


class NoteEntry(ListEntryMixin, Base):
    __tablename__ = "notes"
    __table_args__ = {"sqlite_autoincrement": True}


class TaskEntry(ListEntryMixin, Base):
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}


ENTRY_MODELS: dict[CollectionKind, type[NoteEntry] | type[TaskEntry]] = {
    CollectionKind.NOTE: NoteEntry,
    CollectionKind.TASK: TaskEntry,
}
