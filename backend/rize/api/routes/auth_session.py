"""Auth Session Routes — HTTP surface over AuthSessionManager.

Invariants:
    - Every route returns the operation's AuthOutcome (signal, phase, email)
    - A failed outcome carrying a typed error is raised so the global handlers render it
    - An invalidated session is a 200: the signal carries it, the cause is only logged
    - Routes hold no session state of their own

Design Decisions:
    - Outcomes without an error (cancelled federated flow, stale result) are 200s:
      the signal tells the UI what happened
"""

import logging

from fastapi import APIRouter, Depends

from rize.core.domain_types import AuthSignal
from rize.schemas.auth import (
    AuthOutcomeResponse,
    CredentialsRequest,
    FederatedSignInRequest,
    PasswordResetRequest,
    SessionSnapshotResponse,
)
from rize.services.auth_session import AuthOutcome, AuthSessionManager
from rize.services.runtime import get_auth_manager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

FAILURE_SIGNALS = frozenset({
    AuthSignal.FAILED, AuthSignal.FEDERATED_SIGN_IN_FAILED,
})


def _to_response(outcome: AuthOutcome) -> AuthOutcomeResponse:
    if outcome.error is not None and outcome.signal in FAILURE_SIGNALS:
        raise outcome.error
    return AuthOutcomeResponse(
        signal=outcome.signal, phase=outcome.phase, email=outcome.email,
    )


@router.get("/session", response_model=SessionSnapshotResponse)
async def get_session(
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    """Current phase plus the cold-start routing hint."""
    return SessionSnapshotResponse(
        phase=manager.phase,
        route_hint=manager.current_route_hint(),
        initial_destination=manager.initial_destination(),
        email=manager.current_email(),
    )


@router.post("/sign-in", response_model=AuthOutcomeResponse)
async def sign_in(
    body: CredentialsRequest,
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    return _to_response(await manager.sign_in(body.email, body.password))


@router.post("/sign-up", response_model=AuthOutcomeResponse)
async def sign_up(
    body: CredentialsRequest,
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    return _to_response(await manager.sign_up(body.email, body.password))


@router.post("/verify", response_model=AuthOutcomeResponse)
async def ensure_verified(
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    """Re-check email verification (e.g. after the user clicked the email link)."""
    return _to_response(await manager.ensure_verified())


@router.post("/federated", response_model=AuthOutcomeResponse)
async def complete_federated_sign_in(
    body: FederatedSignInRequest,
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    token = None if body.cancelled else body.token
    return _to_response(await manager.complete_federated_sign_in(token))


@router.post("/sign-out", response_model=AuthOutcomeResponse)
async def sign_out(
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    return _to_response(await manager.sign_out())


@router.post("/password-reset", response_model=AuthOutcomeResponse)
async def request_password_reset(
    body: PasswordResetRequest,
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    return _to_response(await manager.request_password_reset(body.email))


@router.post("/reconcile", response_model=AuthOutcomeResponse)
async def reconcile(
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    """Fresh remote check before a sensitive screen is shown."""
    return _to_response(await manager.reconcile())
