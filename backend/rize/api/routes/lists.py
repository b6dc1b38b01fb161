"""List Routes — notes and tasks over the generic ListStore.

Invariants:
    - Both routes are admitted only when NavigationPolicy lets the session
      reach the collection's screen; otherwise NotAuthenticatedError (401)
    - EmptyInputError / StorageIOError propagate to the global handlers

Design Decisions:
    - `kind` path parameter over per-feature routers: one route pair serves both collections
"""

import logging

from fastapi import APIRouter, Depends, status

from rize.core.domain_types import CollectionKind, Destination
from rize.core.errors import NotAuthenticatedError
from rize.core.navigation_policy import decide
from rize.schemas.lists import ListEntryCreate, ListEntryResponse, ListResponse
from rize.services.auth_session import AuthSessionManager
from rize.services.list_store import ListStore
from rize.services.runtime import get_auth_manager, get_list_store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/lists", tags=["lists"])

SCREEN_FOR_KIND = {
    CollectionKind.NOTE: Destination.NOTES,
    CollectionKind.TASK: Destination.TASKS,
}


def require_admitted(
    kind: CollectionKind,
    manager: AuthSessionManager = Depends(get_auth_manager),
) -> CollectionKind:
    """Gate list access through the same policy the screens use."""
    decision = decide(manager.phase, SCREEN_FOR_KIND[kind])
    if decision.redirected:
        logger.info(
            f"List access denied for {kind.value}",
            extra={"phase": manager.phase.value, "collection": kind.value},
        )
        raise NotAuthenticatedError()
    return kind


@router.get("/{kind}", response_model=ListResponse)
async def list_entries(
    kind: CollectionKind = Depends(require_admitted),
    store: ListStore = Depends(get_list_store),
):
    return ListResponse(kind=kind, items=await store.list(kind))


@router.post(
    "/{kind}", response_model=ListEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def append_entry(
    body: ListEntryCreate,
    kind: CollectionKind = Depends(require_admitted),
    store: ListStore = Depends(get_list_store),
):
    record = await store.append(kind, body.text)
    return ListEntryResponse(id=record.id, text=record.text, kind=record.kind)
