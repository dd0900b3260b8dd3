from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from biubiustar.core.config import settings
from biubiustar.core.security import decode_access_token
from conftest import PASSWORD, auth, register


@pytest.mark.asyncio
async def test_register_then_login_returns_token_for_same_user(api_client):
    registered = await register(api_client, "alice", "a@x.com")
    assert registered["user"]["username"] == "alice"
    assert registered["user"]["email"] == "a@x.com"
    assert "password_hash" not in registered["user"]

    resp = await api_client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert decode_access_token(data["token"])["userId"] == registered["user"]["id"]


@pytest.mark.asyncio
async def test_register_rejects_duplicate_email_or_username(api_client, alice):
    resp = await api_client.post(
        "/api/auth/register",
        json={"email": "A@x.com", "username": "someone", "password": PASSWORD},
    )
    assert resp.status_code == 400
    resp = await api_client.post(
        "/api/auth/register",
        json={"email": "new@x.com", "username": "alice", "password": PASSWORD},
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_register_validation_errors_use_envelope(api_client):
    resp = await api_client.post(
        "/api/auth/register",
        json={"email": "not-an-email", "username": "ab", "password": "123"},
    )
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Invalid request data"
    fields = {e["field"] for e in body["errors"]}
    assert {"email", "username", "password"} <= fields


@pytest.mark.asyncio
async def test_login_with_wrong_password_is_generic(api_client, alice):
    resp = await api_client.post("/api/auth/login", json={"email": "a@x.com", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Email or password incorrect"

    resp = await api_client.post("/api/auth/login", json={"email": "nobody@x.com", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Email or password incorrect"


@pytest.mark.asyncio
async def test_me_requires_valid_token(api_client, alice):
    resp = await api_client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["message"] == "No authentication token provided"

    resp = await api_client.get("/api/auth/me", headers=auth("garbage"))
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid authentication token"

    resp = await api_client.get("/api/auth/me", headers=auth(alice["token"]))
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["username"] == "alice"


@pytest.mark.asyncio
async def test_expired_token_is_rejected(api_client, alice):
    expired = jwt.encode(
        {"userId": alice["user"]["id"], "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    resp = await api_client.get("/api/auth/me", headers=auth(expired))
    assert resp.status_code == 401
    assert resp.json()["message"] == "Authentication token expired"


@pytest.mark.asyncio
async def test_token_for_deleted_user_is_rejected(api_client):
    token = jwt.encode(
        {"userId": "00000000-0000-0000-0000-000000000001", "exp": datetime.now(timezone.utc) + timedelta(days=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    resp = await api_client.get("/api/auth/me", headers=auth(token))
    assert resp.status_code == 401
    assert resp.json()["message"] == "User does not exist or has been deleted"


@pytest.mark.asyncio
async def test_missing_jwt_secret_is_a_server_error(api_client, alice, monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", None)
    resp = await api_client.get("/api/auth/me", headers=auth(alice["token"]))
    assert resp.status_code == 500


@pytest.mark.asyncio
async def test_logout_always_succeeds(api_client):
    resp = await api_client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["success"] is True


@pytest.mark.asyncio
async def test_optional_auth_ignores_bad_tokens(api_client, alice, bob):
    post = await api_client.post("/api/posts", json={"content": "hello"}, headers=auth(alice["token"]))
    post_id = post.json()["data"]["post"]["id"]
    await api_client.post(f"/api/posts/{post_id}/like", headers=auth(alice["token"]))
    await api_client.post("/api/users/bob/follow", headers=auth(alice["token"]))

    expired = jwt.encode(
        {"userId": alice["user"]["id"], "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    for token in ("not-a-jwt", expired):
        resp = await api_client.get("/api/posts", headers=auth(token))
        assert resp.status_code == 200
        [listed] = resp.json()["data"]["posts"]
        assert listed["likeCount"] == 1
        assert listed["isLiked"] is False

        resp = await api_client.get("/api/users/bob", headers=auth(token))
        assert resp.status_code == 200
        assert resp.json()["data"]["user"]["isFollowing"] is False
