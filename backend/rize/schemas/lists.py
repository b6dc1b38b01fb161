"""List Schemas — request/response models for notes and tasks."""

from pydantic import BaseModel, Field

from rize.core.domain_types import CollectionKind


class ListEntryCreate(BaseModel):
    """Trimming and the empty check happen in ListStore, not here."""
    text: str = Field(max_length=10_000)


class ListEntryResponse(BaseModel):
    id: int
    text: str
    kind: CollectionKind


class ListResponse(BaseModel):
    kind: CollectionKind
    items: list[str]
