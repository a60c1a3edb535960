"""User routes: registration from the token's email, profiles."""

from datetime import datetime

from tests.conftest import ALICE_EMAIL, auth_headers


async def test_register_creates_user_from_token_email(client):
    res = await client.post("/users/", headers=auth_headers("carol@example.com"))

    assert res.status_code == 201
    assert res.json()["data"] == {"username": "carol", "email": "carol@example.com"}


async def test_register_is_idempotent(client, alice):
    res = await client.post("/users/", headers=auth_headers(ALICE_EMAIL))

    assert res.status_code == 201
    assert res.json()["message"] == "User already exists"
    assert res.json()["data"]["username"] == "alice"


async def test_register_rejects_taken_username(client, alice):
    res = await client.post(
        "/users/", json={"username": "alice"}, headers=auth_headers("other@example.com")
    )

    assert res.status_code == 422
    assert res.json()["error_details"][0]["field"] == "username"


async def test_register_requires_token(client):
    res = await client.post("/users/")

    assert res.status_code == 401


async def test_profile_and_public_profile(client, alice):
    me = await client.get("/users/me", headers=auth_headers(ALICE_EMAIL))
    public = await client.get("/users/alice")
    missing = await client.get("/users/nobody")

    assert me.json()["data"]["email"] == ALICE_EMAIL
    assert public.json()["data"]["username"] == "alice"
    assert "email" not in public.json()["data"]
    assert missing.status_code == 404


async def test_list_users(client, alice, bob):
    res = await client.get("/users/")

    assert [u["username"] for u in res.json()["data"]] == ["alice", "bob"]


async def test_update_profile(client, alice):
    res = await client.put(
        "/users/me",
        json={"username": "alice2", "name": "Alice", "about": "writes posts"},
        headers=auth_headers(ALICE_EMAIL),
    )

    assert res.status_code == 200
    data = res.json()["data"]
    assert (data["username"], data["name"], data["about"]) == ("alice2", "Alice", "writes posts")
    assert data["email"] == ALICE_EMAIL
    assert datetime.fromisoformat(data["updated_at"]) > datetime.fromisoformat(data["created_at"])
    assert (await client.get("/users/alice2")).status_code == 200
    assert (await client.get("/users/alice")).status_code == 404


async def test_update_profile_keeps_unset_fields(client, alice):
    await client.put("/users/me", json={"name": "Alice"}, headers=auth_headers(ALICE_EMAIL))
    res = await client.put(
        "/users/me", json={"about": "hi", "username": "alice"}, headers=auth_headers(ALICE_EMAIL)
    )

    assert res.status_code == 200
    assert res.json()["data"]["name"] == "Alice"
    assert res.json()["data"]["username"] == "alice"


async def test_update_profile_rejects_taken_username(client, alice, bob):
    res = await client.put(
        "/users/me", json={"username": "bob"}, headers=auth_headers(ALICE_EMAIL)
    )

    assert res.status_code == 422
    assert res.json()["error_details"][0]["field"] == "username"


async def test_update_profile_requires_token_and_registration(client):
    anonymous = await client.put("/users/me", json={"name": "x"})
    unregistered = await client.put(
        "/users/me", json={"name": "x"}, headers=auth_headers("ghost@example.com")
    )

    assert anonymous.status_code == 401
    assert unregistered.status_code == 404
