"""List Rules — entry normalization and per-collection ordering.

Invariants:
    - Stored text is trimmed and non-empty
    - Notes list newest-first (descending id); tasks list in insertion order (ascending id)
"""

from rize.core.domain_types import CollectionKind, SortOrder
from rize.core.errors import EmptyInputError

ORDERING: dict[CollectionKind, SortOrder] = {
    CollectionKind.NOTE: SortOrder.DESCENDING,
    CollectionKind.TASK: SortOrder.ASCENDING,
}


def normalize_entry_text(text: str) -> str:
    return text.strip()


def check_entry_text(kind: CollectionKind, text: str) -> EmptyInputError | None:
    """Reject entries that are empty once trimmed."""
    if not normalize_entry_text(text):
        return EmptyInputError(kind)
    return None


def ordering_for(kind: CollectionKind) -> SortOrder:
    return ORDERING[kind]
