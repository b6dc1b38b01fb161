"""List Routes — notes and tasks behind the navigation gate.

Tests cover:
    - 401 until the session is admitted (cached flag alone is not enough)
    - Append returns 201 with the stored record
    - Listing order per collection
    - Blank entries → 400 EMPTY_INPUT
    - Unknown collection → 400
"""

from rize.core.domain_types import Identity


async def test_lists_require_admitted_session(client):
    for kind in ("note", "task"):
        response = await client.get(f"/api/v1/lists/{kind}")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "NOT_AUTHENTICATED"
        assert response.headers["www-authenticate"] == "Bearer"


async def test_cached_flag_alone_does_not_open_lists(client, auth_manager, session_cache):
    await session_cache.set_authenticated(True, Identity(uid="uid-1", email="user@example.com"))
    await auth_manager.restore()

    response = await client.get("/api/v1/lists/note")

    assert response.status_code == 401


async def test_append_and_list_notes(client, signed_in):
    for text in ["first", "second"]:
        created = await client.post("/api/v1/lists/note", json={"text": f"  {text} "})
        assert created.status_code == 201
        assert created.json()["text"] == text
        assert created.json()["kind"] == "note"

    response = await client.get("/api/v1/lists/note")

    assert response.status_code == 200
    assert response.json() == {"kind": "note", "items": ["second", "first"]}


async def test_tasks_in_insertion_order(client, signed_in):
    for text in ["first", "second"]:
        await client.post("/api/v1/lists/task", json={"text": text})

    response = await client.get("/api/v1/lists/task")

    assert response.json()["items"] == ["first", "second"]


async def test_blank_entry_rejected(client, signed_in):
    response = await client.post("/api/v1/lists/task", json={"text": "   "})

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "EMPTY_INPUT"
    assert error["message"] == "Please enter a task"


async def test_unknown_collection(client, signed_in):
    response = await client.get("/api/v1/lists/reminder")

    assert response.status_code == 400


async def test_lists_closed_after_sign_out(client, signed_in):
    await client.post("/api/v1/auth/sign-out")

    response = await client.get("/api/v1/lists/note")

    assert response.status_code == 401
