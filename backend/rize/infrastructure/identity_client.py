"""Resilient Identity Client — Firebase Identity Toolkit REST over httpx, with retry and error mapping.

Invariants:
    - Transient errors (transport, 5xx): max `max_retries` retries with exponential backoff
    - Client errors (4xx): immediate failure, no retry
    - Exhausted transport retries raise NetworkFailure
    - Provider error codes mapped to InvalidCredentialsFailure / IdentityRevokedFailure /
      ProviderFailure; the raw provider message is always preserved
    - A 2xx body that is not a JSON object, or lacks the fields an identity
      needs, raises ProviderFailure(MALFORMED_RESPONSE); nothing else escapes
    - The provider-side current identity lives in memory and is cleared by sign_out();
      resume_identity() rebuilds it from a persisted refresh token

Design Decisions:
    - Wrapper over raw httpx.AsyncClient: retry and mapping isolated from AuthSessionManager
    - ±25% jitter on backoff: prevents thundering herd after a provider outage
    - Injectable transport: tests drive the client with httpx.MockTransport
    - Token refresh goes to the securetoken endpoint (absolute URL, form-encoded),
      through the same retry and mapping path as every other call
"""

import asyncio
import logging
import random
from urllib.parse import urlencode

import httpx

from rize.core.domain_types import Identity
from rize.core.errors import (
    IdentityRevokedFailure,
    InvalidCredentialsFailure,
    NetworkFailure,
    ProviderFailure,
)

logger = logging.getLogger(__name__)

MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

INVALID_CREDENTIAL_CODES = frozenset({
    "INVALID_PASSWORD",
    "EMAIL_NOT_FOUND",
    "INVALID_LOGIN_CREDENTIALS",
    "INVALID_EMAIL",
})

REVOKED_CODES = frozenset({
    "INVALID_ID_TOKEN",
    "USER_NOT_FOUND",
    "TOKEN_EXPIRED",
    "USER_DISABLED",
    "INVALID_REFRESH_TOKEN",
})


def _error_code(message: str) -> str:
    """Provider messages look like 'CODE' or 'CODE : human detail'."""
    return message.split(" : ", 1)[0].strip()


def _malformed(detail: str) -> ProviderFailure:
    logger.warning(f"Malformed identity provider response: {detail}")
    return ProviderFailure("Malformed provider response", MALFORMED_RESPONSE)


def _required(data: dict, key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise _malformed(f"missing {key}")
    return value


class FirebaseIdentityClient:
    """Identity provider backed by the Firebase Identity Toolkit REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://identitytoolkit.googleapis.com/v1",
        token_url: str = "https://securetoken.googleapis.com/v1/token",
        timeout_seconds: float = 10.0,
        max_retries: int = 2,
        base_delay_ms: int = 250,
        max_delay_ms: int = 4_000,
        federated_provider_id: str = "google.com",
        federated_request_uri: str = "http://localhost",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds, transport=transport,
        )
        self.api_key = api_key
        self.token_url = token_url
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.federated_provider_id = federated_provider_id
        self.federated_request_uri = federated_request_uri
        self._current: Identity | None = None

    # ─── IdentityProvider contract ──────────────────────────────

    async def sign_in_with_password(self, email: str, password: str) -> Identity:
        data = await self._post("/accounts:signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self._remember(self._identity_from(data, fallback_email=email))

    async def create_account(self, email: str, password: str) -> Identity:
        data = await self._post("/accounts:signUp", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return self._remember(self._identity_from(data, fallback_email=email))

    async def reload_identity(self, identity: Identity) -> Identity:
        """Refresh email_verified (and email) for the given identity."""
        if not identity.token:
            raise IdentityRevokedFailure("No active provider token", "INVALID_ID_TOKEN")
        data = await self._post("/accounts:lookup", {"idToken": identity.token})
        users = data.get("users") or []
        if not users:
            raise IdentityRevokedFailure("USER_NOT_FOUND", "USER_NOT_FOUND")
        user = users[0] if isinstance(users, list) else None
        if not isinstance(user, dict):
            raise _malformed("users is not a list of objects")
        if user.get("disabled"):
            raise IdentityRevokedFailure("USER_DISABLED", "USER_DISABLED")
        refreshed = Identity(
            uid=user.get("localId", identity.uid),
            email=user.get("email", identity.email),
            email_verified=bool(user.get("emailVerified", False)),
            token=identity.token,
            provider_id=identity.provider_id,
            refresh_token=identity.refresh_token,
        )
        # A reload finishing after sign_out() must not bring the identity back
        if self._current is not None and self._current.uid == refreshed.uid:
            self._current = refreshed
        return refreshed

    async def resume_identity(self, handle: Identity) -> Identity:
        """Exchange a persisted refresh token for a fresh id token (process restart)."""
        if not handle.refresh_token:
            raise IdentityRevokedFailure("No refresh token", "INVALID_REFRESH_TOKEN")
        data = await self._post(self.token_url, {
            "grant_type": "refresh_token",
            "refresh_token": handle.refresh_token,
        }, form=True)
        uid = _required(data, "user_id")
        if uid != handle.uid:
            raise IdentityRevokedFailure("Refresh token belongs to another user", "USER_MISMATCH")
        identity = Identity(
            uid=uid,
            email=handle.email,
            token=_required(data, "id_token"),
            provider_id=handle.provider_id,
            refresh_token=data.get("refresh_token") or handle.refresh_token,
        )
        logger.info("Provider session resumed from refresh token")
        return self._remember(identity)

    async def send_verification_email(self, identity: Identity) -> None:
        if not identity.token:
            raise IdentityRevokedFailure("No active provider token", "INVALID_ID_TOKEN")
        await self._post("/accounts:sendOobCode", {
            "requestType": "VERIFY_EMAIL",
            "idToken": identity.token,
        })

    async def send_password_reset_email(self, email: str) -> None:
        await self._post("/accounts:sendOobCode", {
            "requestType": "PASSWORD_RESET",
            "email": email,
        })

    async def exchange_federated_token(self, token: str) -> Identity:
        """Trade an external (e.g. Google) id token for a provider identity."""
        data = await self._post("/accounts:signInWithIdp", {
            "postBody": urlencode({
                "id_token": token,
                "providerId": self.federated_provider_id,
            }),
            "requestUri": self.federated_request_uri,
            "returnSecureToken": True,
            "returnIdpCredential": True,
        })
        identity = Identity(
            uid=_required(data, "localId"),
            email=data.get("email"),
            email_verified=bool(data.get("emailVerified", False)),
            token=data.get("idToken"),
            provider_id=data.get("providerId", self.federated_provider_id),
            refresh_token=data.get("refreshToken"),
        )
        return self._remember(identity)

    async def sign_out(self) -> None:
        self._current = None

    def current_identity(self) -> Identity | None:
        return self._current

    async def aclose(self) -> None:
        await self.client.aclose()

    # ─── Transport ──────────────────────────────────────────────

    async def _post(self, endpoint: str, payload: dict, form: bool = False) -> dict:
        """POST with automatic retry on transient failures."""
        body = {"data": payload} if form else {"json": payload}
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.client.post(
                    endpoint, params={"key": self.api_key}, **body,
                )
            except httpx.TransportError as e:
                await self._handle_transient_error(e, attempt, endpoint)
                continue

            if response.status_code >= 500:
                await self._handle_server_error(response, attempt, endpoint)
                continue
            if response.is_error:
                raise self._map_error(response)

            logger.info(
                f"Identity provider call succeeded: {endpoint}",
                extra={"attempt": attempt + 1},
            )
            return self._json_object(response, endpoint)
        raise NetworkFailure(f"{endpoint} failed after {self.max_retries} retries")

    async def _handle_transient_error(
        self, e: httpx.TransportError, attempt: int, endpoint: str,
    ) -> None:
        """Retry transport errors or raise NetworkFailure."""
        if attempt >= self.max_retries:
            raise NetworkFailure(
                f"Network error calling {endpoint} after {self.max_retries} retries: {e}",
                "NETWORK_ERROR",
            )
        delay = self._backoff(attempt)
        logger.warning(f"Transport error on {endpoint}, retry after {delay}ms: {e}")
        await asyncio.sleep(delay / 1000)

    async def _handle_server_error(
        self, response: httpx.Response, attempt: int, endpoint: str,
    ) -> None:
        """Retry 5xx responses or raise the mapped provider failure."""
        if attempt >= self.max_retries:
            raise self._map_error(response)
        delay = self._backoff(attempt)
        logger.warning(
            f"Provider returned {response.status_code} on {endpoint}, retry after {delay}ms",
        )
        await asyncio.sleep(delay / 1000)

    def _json_object(self, response: httpx.Response, endpoint: str) -> dict:
        try:
            data = response.json()
        except ValueError:
            raise _malformed(f"{endpoint} returned a non-JSON body")
        if not isinstance(data, dict):
            raise _malformed(f"{endpoint} returned {type(data).__name__}, not an object")
        return data

    def _map_error(self, response: httpx.Response) -> ProviderFailure:
        message = self._error_message(response)
        code = _error_code(message)
        if code in INVALID_CREDENTIAL_CODES:
            return InvalidCredentialsFailure(message, code)
        if code in REVOKED_CODES:
            return IdentityRevokedFailure(message, code)
        return ProviderFailure(message, code)

    def _error_message(self, response: httpx.Response) -> str:
        try:
            return str(response.json()["error"]["message"])
        except (ValueError, KeyError, TypeError):
            return response.text or f"HTTP {response.status_code}"

    def _identity_from(self, data: dict, fallback_email: str) -> Identity:
        return Identity(
            uid=_required(data, "localId"),
            email=data.get("email", fallback_email),
            email_verified=bool(data.get("emailVerified", False)),
            token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    def _remember(self, identity: Identity) -> Identity:
        self._current = identity
        return identity

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311
