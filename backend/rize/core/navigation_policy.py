"""Navigation Policy — single routing decision shared by every screen.

Invariants:
    - All functions are PURE: no IO, no async, no side effects
    - Auth-required destination while not AUTHENTICATED → SIGN_IN
    - Sign-in/sign-up entry points while AUTHENTICATED → HOME
    - Resolved destination equal to the caller's current one → no navigation
    - Every Destination appears in REQUIRES_AUTH (table is total)

Design Decisions:
    - Table-driven over per-screen branching: adding a screen means adding one row
"""

from dataclasses import dataclass

from rize.core.domain_types import Destination, SessionPhase

REQUIRES_AUTH: dict[Destination, bool] = {
    Destination.GUEST: False,
    Destination.SIGN_IN: False,
    Destination.SIGN_UP: False,
    Destination.PASSWORD_RESET: False,
    Destination.HOME: True,
    Destination.TASKS: True,
    Destination.NOTES: True,
    Destination.PROFILE: True,
}

ENTRY_POINTS = frozenset({
    Destination.GUEST, Destination.SIGN_IN, Destination.SIGN_UP,
})


@dataclass(frozen=True)
class NavigationDecision:
    destination: Destination
    navigate: bool
    redirected: bool


def requires_auth(destination: Destination) -> bool:
    return REQUIRES_AUTH[destination]


def resolve_destination(
    phase: SessionPhase, requested: Destination,
) -> Destination:
    """Apply the auth table to a requested destination."""
    authenticated = phase == SessionPhase.AUTHENTICATED
    if requires_auth(requested) and not authenticated:
        return Destination.SIGN_IN
    if requested in ENTRY_POINTS and authenticated:
        return Destination.HOME
    return requested


def decide(
    phase: SessionPhase,
    requested: Destination,
    current: Destination | None = None,
) -> NavigationDecision:
    """Map (session phase, requested destination) to where the UI may go."""
    destination = resolve_destination(phase, requested)
    return NavigationDecision(
        destination=destination,
        navigate=destination != current,
        redirected=destination != requested,
    )


def initial_destination(route_hint: SessionPhase) -> Destination:
    """Cold-start routing from the cached flag only."""
    if route_hint == SessionPhase.AUTHENTICATED:
        return Destination.HOME
    return Destination.GUEST
