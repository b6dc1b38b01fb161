"""Navigation Routes — exposes NavigationPolicy.decide against the live session phase."""

from fastapi import APIRouter, Depends

from rize.core.navigation_policy import decide
from rize.schemas.navigation import NavigationRequest, NavigationResponse
from rize.services.auth_session import AuthSessionManager
from rize.services.runtime import get_auth_manager

router = APIRouter(prefix="/api/v1/navigation", tags=["navigation"])


@router.post("/decide", response_model=NavigationResponse)
async def decide_navigation(
    body: NavigationRequest,
    manager: AuthSessionManager = Depends(get_auth_manager),
):
    decision = decide(manager.phase, body.requested, body.current)
    return NavigationResponse(
        destination=decision.destination,
        navigate=decision.navigate,
        redirected=decision.redirected,
    )
