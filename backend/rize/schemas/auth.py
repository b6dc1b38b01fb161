"""Auth Schemas — request/response models for the session endpoints.

Invariants:
    - Credential fields are carried as-is; emptiness and format are checked by
      core/validate_credentials.py so field-specific messages stay in one place
    - Responses never echo passwords or provider tokens
"""

from pydantic import BaseModel, Field

from rize.core.domain_types import AuthSignal, Destination, SessionPhase


class CredentialsRequest(BaseModel):
    email: str = Field("", max_length=320)
    password: str = Field("", max_length=4096)


class PasswordResetRequest(BaseModel):
    email: str = Field("", max_length=320)


class FederatedSignInRequest(BaseModel):
    """token=None (or cancelled=True) reports a cancelled federated flow."""
    token: str | None = None
    cancelled: bool = False


class AuthOutcomeResponse(BaseModel):
    signal: AuthSignal
    phase: SessionPhase
    email: str | None = None


class SessionSnapshotResponse(BaseModel):
    phase: SessionPhase
    route_hint: SessionPhase
    initial_destination: Destination
    email: str | None = None
