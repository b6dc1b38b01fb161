"""Identity Client — REST adapter tests driven through httpx.MockTransport.

Tests cover:
    - Request shape: endpoint path, API key param, JSON payload
    - Provider error codes mapped to raw failure types
    - 4xx never retried; 5xx and transport errors retried up to max_retries
    - Exhausted transport retries raise NetworkFailure
    - Federated exchange keeps the external provider id
    - Malformed 2xx bodies raise ProviderFailure(MALFORMED_RESPONSE), never KeyError/ValueError
    - Refresh-token resume posts a form to the token endpoint
"""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from rize.core.domain_types import AuthSignal, Identity, SessionPhase
from rize.core.errors import (
    IdentityRevokedFailure,
    InvalidCredentialsFailure,
    NetworkFailure,
    ProviderFailure,
    UnknownProviderError,
)
from rize.infrastructure.identity_client import MALFORMED_RESPONSE, FirebaseIdentityClient
from rize.services.auth_session import AuthSessionManager

BASE_URL = "https://identity.test/v1"
TOKEN_URL = "https://securetoken.test/v1/token"


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"code": status, "message": message}})


@pytest.fixture
def calls():
    return []


@pytest.fixture
async def make_client(calls):
    clients = []

    def factory(*responses, max_retries=2):
        queue = list(responses)

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            item = queue.pop(0) if len(queue) > 1 else queue[0]
            if isinstance(item, Exception):
                raise item
            return httpx.Response(
                item.status_code, headers=item.headers, content=item.content,
            )

        client = FirebaseIdentityClient(
            api_key="test-key",
            base_url=BASE_URL,
            token_url=TOKEN_URL,
            max_retries=max_retries,
            base_delay_ms=0,
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        await client.aclose()


async def test_sign_in_request_shape(make_client, calls):
    client = make_client(httpx.Response(200, json={
        "localId": "uid-1", "email": "user@example.com",
        "idToken": "tok", "refreshToken": "refresh",
    }))

    identity = await client.sign_in_with_password("user@example.com", "secret")

    request = calls[0]
    assert request.url.path == "/v1/accounts:signInWithPassword"
    assert request.url.params["key"] == "test-key"
    assert json.loads(request.content) == {
        "email": "user@example.com", "password": "secret", "returnSecureToken": True,
    }
    assert identity == Identity(
        uid="uid-1", email="user@example.com", token="tok", refresh_token="refresh",
    )
    assert client.current_identity() == identity


@pytest.mark.parametrize("message", [
    "INVALID_PASSWORD",
    "EMAIL_NOT_FOUND",
    "INVALID_LOGIN_CREDENTIALS",
])
async def test_invalid_credentials_mapped(make_client, calls, message):
    client = make_client(_error(400, message))

    with pytest.raises(InvalidCredentialsFailure) as exc_info:
        await client.sign_in_with_password("user@example.com", "secret")

    assert exc_info.value.code == message
    assert len(calls) == 1


async def test_error_detail_after_code_is_preserved(make_client):
    client = make_client(_error(400, "TOO_MANY_ATTEMPTS_TRY_LATER : blocked due to unusual activity"))

    with pytest.raises(ProviderFailure) as exc_info:
        await client.sign_in_with_password("user@example.com", "secret")

    assert exc_info.value.code == "TOO_MANY_ATTEMPTS_TRY_LATER"
    assert "blocked" in exc_info.value.message


async def test_server_errors_retried_then_succeed(make_client, calls):
    client = make_client(
        _error(503, "UNAVAILABLE"),
        httpx.Response(200, json={"localId": "uid-1", "idToken": "tok"}),
    )

    identity = await client.create_account("user@example.com", "secret1")

    assert identity.uid == "uid-1"
    assert identity.email == "user@example.com"
    assert len(calls) == 2


async def test_server_errors_exhaust_retries(make_client, calls):
    client = make_client(_error(500, "INTERNAL"), max_retries=2)

    with pytest.raises(ProviderFailure):
        await client.create_account("user@example.com", "secret1")

    assert len(calls) == 3


async def test_transport_errors_become_network_failure(make_client, calls):
    client = make_client(httpx.ConnectError("connection refused"), max_retries=1)

    with pytest.raises(NetworkFailure):
        await client.sign_in_with_password("user@example.com", "secret")

    assert len(calls) == 2


async def test_reload_reads_verification_flag(make_client, calls):
    client = make_client(httpx.Response(200, json={
        "users": [{"localId": "uid-1", "email": "user@example.com", "emailVerified": True}],
    }))
    identity = Identity(uid="uid-1", email="user@example.com", token="tok")

    refreshed = await client.reload_identity(identity)

    assert refreshed.email_verified
    assert json.loads(calls[0].content) == {"idToken": "tok"}


async def test_reload_of_missing_user_is_revoked(make_client):
    client = make_client(httpx.Response(200, json={"users": []}))

    with pytest.raises(IdentityRevokedFailure):
        await client.reload_identity(Identity(uid="uid-1", email="a@b.co", token="tok"))


async def test_reload_of_expired_token_is_revoked(make_client):
    client = make_client(_error(400, "INVALID_ID_TOKEN"))

    with pytest.raises(IdentityRevokedFailure):
        await client.reload_identity(Identity(uid="uid-1", email="a@b.co", token="tok"))


async def test_reload_without_token_is_revoked(make_client, calls):
    client = make_client(httpx.Response(200, json={}))

    with pytest.raises(IdentityRevokedFailure):
        await client.reload_identity(Identity(uid="uid-1", email="a@b.co"))

    assert calls == []


async def test_reload_after_sign_out_does_not_restore_identity(make_client):
    client = make_client(
        httpx.Response(200, json={"localId": "uid-1", "email": "a@b.co", "idToken": "tok"}),
        httpx.Response(200, json={"users": [{"localId": "uid-1", "emailVerified": True}]}),
    )
    identity = await client.sign_in_with_password("a@b.co", "secret")
    await client.sign_out()

    await client.reload_identity(identity)

    assert client.current_identity() is None


async def test_password_reset_request(make_client, calls):
    client = make_client(httpx.Response(200, json={"email": "user@example.com"}))

    await client.send_password_reset_email("user@example.com")

    assert calls[0].url.path == "/v1/accounts:sendOobCode"
    assert json.loads(calls[0].content) == {
        "requestType": "PASSWORD_RESET", "email": "user@example.com",
    }


async def test_federated_exchange(make_client, calls):
    client = make_client(httpx.Response(200, json={
        "localId": "uid-9", "email": "g@gmail.com", "idToken": "tok",
        "providerId": "google.com",
    }))

    identity = await client.exchange_federated_token("external-token")

    assert identity.is_federated
    assert identity.is_trusted
    body = json.loads(calls[0].content)
    assert "id_token=external-token" in body["postBody"]
    assert "providerId=google.com" in body["postBody"]


async def test_sign_out_clears_current_identity(make_client):
    client = make_client(httpx.Response(200, json={"localId": "uid-1", "idToken": "tok"}))
    await client.sign_in_with_password("a@b.co", "secret")

    await client.sign_out()

    assert client.current_identity() is None


# ─── malformed responses ─────────────────────────────────────────

@pytest.mark.parametrize("response", [
    httpx.Response(200, text="<html>captive portal</html>"),
    httpx.Response(200, json=["not", "an", "object"]),
    httpx.Response(200, json={"kind": "identitytoolkit#VerifyPasswordResponse"}),
    httpx.Response(200, json={"localId": 42, "idToken": "tok"}),
])
async def test_malformed_sign_in_response_is_provider_failure(make_client, response):
    client = make_client(response)

    with pytest.raises(ProviderFailure) as exc_info:
        await client.sign_in_with_password("user@example.com", "secret")

    assert exc_info.value.code == MALFORMED_RESPONSE
    assert exc_info.value.message == "Malformed provider response"
    assert client.current_identity() is None


async def test_malformed_lookup_response_is_provider_failure(make_client):
    client = make_client(httpx.Response(200, json={"users": ["uid-1"]}))

    with pytest.raises(ProviderFailure) as exc_info:
        await client.reload_identity(Identity(uid="uid-1", email="a@b.co", token="tok"))

    assert exc_info.value.code == MALFORMED_RESPONSE


async def test_malformed_response_fails_sign_in_outcome(make_client, session_cache):
    manager = AuthSessionManager(
        make_client(httpx.Response(200, json={"kind": "x"})), session_cache,
    )

    outcome = await manager.sign_in("user@example.com", "secret")

    assert outcome.signal == AuthSignal.FAILED
    assert isinstance(outcome.error, UnknownProviderError)
    assert manager.phase == SessionPhase.ANONYMOUS
    assert not await session_cache.is_authenticated()


# ─── resume_identity ─────────────────────────────────────────────

async def test_resume_posts_refresh_grant_to_token_endpoint(make_client, calls):
    client = make_client(httpx.Response(200, json={
        "user_id": "uid-1", "id_token": "fresh-tok", "refresh_token": "rotated",
    }))
    handle = Identity(
        uid="uid-1", email="user@example.com", provider_id="google.com",
        refresh_token="refresh",
    )

    identity = await client.resume_identity(handle)

    request = calls[0]
    assert request.url.host == "securetoken.test"
    assert request.url.path == "/v1/token"
    assert request.url.params["key"] == "test-key"
    assert parse_qs(request.content.decode()) == {
        "grant_type": ["refresh_token"], "refresh_token": ["refresh"],
    }
    assert identity == Identity(
        uid="uid-1", email="user@example.com", token="fresh-tok",
        provider_id="google.com", refresh_token="rotated",
    )
    assert client.current_identity() == identity


async def test_resume_with_revoked_refresh_token(make_client):
    client = make_client(_error(400, "INVALID_REFRESH_TOKEN"))

    with pytest.raises(IdentityRevokedFailure) as exc_info:
        await client.resume_identity(
            Identity(uid="uid-1", email="a@b.co", refresh_token="refresh"),
        )

    assert exc_info.value.code == "INVALID_REFRESH_TOKEN"
    assert client.current_identity() is None


async def test_resume_for_another_user_is_revoked(make_client):
    client = make_client(httpx.Response(200, json={"user_id": "uid-2", "id_token": "tok"}))

    with pytest.raises(IdentityRevokedFailure) as exc_info:
        await client.resume_identity(
            Identity(uid="uid-1", email="a@b.co", refresh_token="refresh"),
        )

    assert exc_info.value.code == "USER_MISMATCH"


async def test_resume_without_refresh_token_skips_network(make_client, calls):
    client = make_client(httpx.Response(200, json={}))

    with pytest.raises(IdentityRevokedFailure):
        await client.resume_identity(Identity(uid="uid-1", email="a@b.co"))

    assert calls == []
