"""
Login, registration and /me against a real database.
"""
from __future__ import annotations


async def test_register_then_login(client):
    response = await client.post(
        "/api/auth/register", json={"username": "newbie", "password": "pass1234", "role": " HR "}
    )
    assert response.status_code == 201
    body = response.json()
    assert body["user"]["username"] == "newbie"
    assert body["user"]["role"] == "hr"
    assert body["token"]

    response = await client.post("/api/auth/login", json={"username": "newbie", "password": "pass1234"})
    assert response.status_code == 200
    token = response.json()["token"]

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["role"] == "hr"


async def test_duplicate_username(client, make_user):
    await make_user("taken", "admin")
    response = await client.post("/api/auth/register", json={"username": "taken", "password": "x"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Username already exists"


async def test_login_failures(client, make_user):
    await make_user("alice", "finance", password="right-one")

    response = await client.post("/api/auth/login", json={"username": "alice", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid credentials"

    response = await client.post("/api/auth/login", json={"username": "ghost", "password": "x"})
    assert response.status_code == 401

    response = await client.post("/api/auth/login", json={"username": "alice"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Username and password are required"


async def test_change_password(client, make_user, auth_header):
    user = await make_user("bob", "acts", password="old-pass")
    headers = auth_header("acts", "bob", user.id)

    response = await client.post(
        "/api/auth/change-password",
        json={"current_password": "nope", "new_password": "new-pass"},
        headers=headers,
    )
    assert response.status_code == 400

    response = await client.post(
        "/api/auth/change-password",
        json={"current_password": "old-pass", "new_password": "new-pass"},
        headers=headers,
    )
    assert response.status_code == 200
    login = await client.post("/api/auth/login", json={"username": "bob", "password": "new-pass"})
    assert login.status_code == 200


async def test_password_hashing_runs_in_threadpool(client, make_user, monkeypatch):
    from app.api.v1 import auth as auth_routes

    offloaded = []
    original = auth_routes.run_in_threadpool

    async def _recording(func, *args, **kwargs):
        offloaded.append(func.__name__)
        return await original(func, *args, **kwargs)

    monkeypatch.setattr(auth_routes, "run_in_threadpool", _recording)

    await make_user("threaded", "hr", password="pw-12345")
    response = await client.post("/api/auth/login", json={"username": "threaded", "password": "pw-12345"})
    assert response.status_code == 200
    response = await client.post("/api/auth/register", json={"username": "threaded2", "password": "pw"})
    assert response.status_code == 201
    assert offloaded == ["verify_password", "hash_password"]
