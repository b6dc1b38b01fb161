from pydantic import BaseModel

from rize.core.domain_types import Destination


class NavigationRequest(BaseModel):
    requested: Destination
    current: Destination | None = None


class NavigationResponse(BaseModel):
    destination: Destination
    navigate: bool
    redirected: bool
