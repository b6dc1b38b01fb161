"""ORM Models — SQLAlchemy declarative models for the local stores.

Invariants:
    - All models inherit from Base (db/base.py)
    - notes, tasks and preferences live in separate SQLite files

Design Decisions:
    - All models imported here so Base.metadata is complete before any store initializes
"""

from rize.models.list_record import NoteEntry, TaskEntry, ENTRY_MODELS  # noqa: F401
from rize.models.preference import Preference  # noqa: F401
