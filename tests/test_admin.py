import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from biubiustar.api.deps import require_admin, require_role, require_super_admin
from biubiustar.core.config import settings
from biubiustar.models.post import PostModerationHistory
from biubiustar.models.user import User
from biubiustar.services.admin_service import DASHBOARD_STATS_KEY
from conftest import auth


async def pending_post(client, token, content="please review"):
    resp = await client.post("/api/posts", json={"content": content}, headers=auth(token))
    assert resp.status_code == 201
    return resp.json()["data"]["post"]


@pytest.fixture
def review_required(monkeypatch):
    monkeypatch.setattr(settings, "POST_REVIEW_REQUIRED", True)


@pytest.mark.asyncio
async def test_regular_users_are_forbidden(api_client, alice):
    for path in ("/api/admin/dashboard/stats", "/api/admin/users", "/api/admin/posts/pending"):
        resp = await api_client.get(path, headers=auth(alice["token"]))
        assert resp.status_code == 403, path
    resp = await api_client.get("/api/admin/users")
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_only_super_admin_grants_admin_role(api_client, alice, admin, super_admin):
    user_id = alice["user"]["id"]

    resp = await api_client.put(f"/api/admin/users/{user_id}", json={"role": "admin"}, headers=auth(admin["token"]))
    assert resp.status_code == 403

    resp = await api_client.put(
        f"/api/admin/users/{user_id}", json={"role": "admin"}, headers=auth(super_admin["token"])
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["role"] == "admin"

    resp = await api_client.put(f"/api/admin/users/{user_id}", json={"role": "user"}, headers=auth(admin["token"]))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_role_dependencies_check_the_callers_role():
    root = User(username="root", email="root@biubiu.io", role="super_admin")
    moderator = User(username="mod", email="mod@biubiu.io", role="admin")

    assert await require_super_admin(user=root) is root
    with pytest.raises(HTTPException) as exc:
        await require_super_admin(user=moderator)
    assert exc.value.status_code == 403

    assert await require_admin(user=moderator) is moderator
    with pytest.raises(HTTPException):
        await require_role("admin")(user=root)


@pytest.mark.asyncio
async def test_admin_updates_reject_null_for_required_fields(api_client, alice, admin):
    user_id = alice["user"]["id"]
    for field in ("role", "is_verified"):
        resp = await api_client.put(f"/api/admin/users/{user_id}", json={field: None}, headers=auth(admin["token"]))
        assert resp.status_code == 400, field
        assert resp.json()["errors"][0]["field"] == field

    event = await api_client.post(
        "/api/events",
        json={
            "title": "Launch",
            "description": "party",
            "startTime": "2099-01-01T10:00:00Z",
            "endTime": "2099-01-01T12:00:00Z",
        },
        headers=auth(alice["token"]),
    )
    event_id = event.json()["data"]["event"]["id"]
    for field in ("status", "is_featured"):
        resp = await api_client.put(f"/api/admin/events/{event_id}", json={field: None}, headers=auth(admin["token"]))
        assert resp.status_code == 400, field

    resp = await api_client.put(f"/api/admin/users/{user_id}", json={"bio": None}, headers=auth(admin["token"]))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_admin_can_verify_users_and_list_them(api_client, alice, admin):
    resp = await api_client.put(
        f"/api/admin/users/{alice['user']['id']}", json={"is_verified": True}, headers=auth(admin["token"])
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["is_verified"] is True

    resp = await api_client.get("/api/admin/users", params={"search": "a@x"}, headers=auth(admin["token"]))
    data = resp.json()["data"]
    assert [u["username"] for u in data["users"]] == ["alice"]
    assert data["pagination"] == {"page": 1, "limit": 20, "total": 1, "totalPages": 1}


@pytest.mark.asyncio
async def test_approve_pending_post_writes_one_history_row(api_client, session_maker, alice, admin, review_required):
    post = await pending_post(api_client, alice["token"])
    assert post["status"] == "pending"

    resp = await api_client.post(f"/api/admin/posts/{post['id']}/approve", headers=auth(admin["token"]))
    assert resp.status_code == 200

    detail = await api_client.get(f"/api/posts/{post['id']}")
    assert detail.json()["data"]["post"]["status"] == "published"

    async with session_maker() as session:
        rows = (await session.execute(select(PostModerationHistory))).scalars().all()
    assert len(rows) == 1
    assert rows[0].action == "approved"
    assert rows[0].previous_status == "pending"

    again = await api_client.post(f"/api/admin/posts/{post['id']}/approve", headers=auth(admin["token"]))
    assert again.status_code == 404
    assert again.json()["message"] == "Post not found or already reviewed"


@pytest.mark.asyncio
async def test_approving_non_pending_post_leaves_it_unchanged(api_client, session_maker, alice, admin):
    post = await pending_post(api_client, alice["token"], content="already live")
    assert post["status"] == "published"

    resp = await api_client.post(f"/api/admin/posts/{post['id']}/approve", headers=auth(admin["token"]))
    assert resp.status_code == 404

    async with session_maker() as session:
        count = (await session.execute(select(func.count(PostModerationHistory.id)))).scalar()
    assert count == 0


@pytest.mark.asyncio
async def test_reject_stores_reason_and_history(api_client, alice, admin, review_required):
    post = await pending_post(api_client, alice["token"])

    resp = await api_client.post(
        f"/api/admin/posts/{post['id']}/reject", json={"reason": "off topic"}, headers=auth(admin["token"])
    )
    assert resp.status_code == 200

    resp = await api_client.get(f"/api/posts/{post['id']}")
    data = resp.json()["data"]["post"]
    assert data["status"] == "rejected"
    assert data["rejection_reason"] == "off topic"

    resp = await api_client.get(f"/api/admin/posts/{post['id']}/moderation-history", headers=auth(admin["token"]))
    history = resp.json()["data"]["history"]
    assert [h["action"] for h in history] == ["rejected"]
    assert history[0]["admin"]["username"] == "admin1"


@pytest.mark.asyncio
async def test_batch_moderate_only_touches_pending_posts(api_client, alice, admin, monkeypatch):
    monkeypatch.setattr(settings, "POST_REVIEW_REQUIRED", True)
    first = await pending_post(api_client, alice["token"], "one")
    second = await pending_post(api_client, alice["token"], "two")
    monkeypatch.setattr(settings, "POST_REVIEW_REQUIRED", False)
    live = await pending_post(api_client, alice["token"], "live")

    resp = await api_client.post(
        "/api/admin/posts/batch-moderate",
        json={"postIds": [first["id"], second["id"], live["id"]], "action": "approve"},
        headers=auth(admin["token"]),
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["processed"] == 2
    assert data["skipped"] == 1
    assert set(data["postIds"]) == {first["id"], second["id"]}

    stats = await api_client.get("/api/admin/posts/moderation-stats", headers=auth(admin["token"]))
    body = stats.json()["data"]
    assert body["pending"] == 0
    assert body["published"] == 3
    assert body["todayApproved"] == 2
    assert body["todayReviewed"] == 2


@pytest.mark.asyncio
async def test_batch_moderate_validates_ids(api_client, admin):
    resp = await api_client.post(
        "/api/admin/posts/batch-moderate",
        json={"postIds": [], "action": "approve"},
        headers=auth(admin["token"]),
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_pending_queue_is_oldest_first(api_client, alice, admin, review_required):
    first = await pending_post(api_client, alice["token"], "first")
    second = await pending_post(api_client, alice["token"], "second")

    resp = await api_client.get("/api/admin/posts/pending", headers=auth(admin["token"]))
    data = resp.json()["data"]
    assert [p["id"] for p in data["posts"]] == [first["id"], second["id"]]
    assert data["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_dashboard_stats_are_cached_and_invalidated(api_client, fake_redis, alice, admin):
    post = await pending_post(api_client, alice["token"])

    resp = await api_client.get("/api/admin/dashboard/stats", headers=auth(admin["token"]))
    data = resp.json()["data"]
    assert data["totalUsers"] == 2
    assert data["totalPosts"] == 1
    assert len(data["userTrend"]) == 7
    assert data["userTrend"][-1]["count"] == 2
    assert await fake_redis.exists(DASHBOARD_STATS_KEY)

    alias = await api_client.get("/api/admin/stats", headers=auth(admin["token"]))
    assert alias.json()["data"] == data

    resp = await api_client.delete(f"/api/admin/posts/{post['id']}", headers=auth(admin["token"]))
    assert resp.status_code == 200
    assert not await fake_redis.exists(DASHBOARD_STATS_KEY)

    resp = await api_client.get("/api/admin/dashboard/stats", headers=auth(admin["token"]))
    assert resp.json()["data"]["totalPosts"] == 0


@pytest.mark.asyncio
async def test_admin_comment_and_event_management(api_client, alice, admin):
    post = await pending_post(api_client, alice["token"])
    comment = await api_client.post(
        f"/api/posts/{post['id']}/comments", json={"content": "nice"}, headers=auth(alice["token"])
    )
    comment_id = comment.json()["data"]["comment"]["id"]

    resp = await api_client.get("/api/admin/comments", headers=auth(admin["token"]))
    assert resp.json()["data"]["comments"][0]["post_content"] == "please review"
    resp = await api_client.delete(f"/api/admin/comments/{comment_id}", headers=auth(admin["token"]))
    assert resp.status_code == 200
    resp = await api_client.delete(f"/api/admin/comments/{comment_id}", headers=auth(admin["token"]))
    assert resp.status_code == 404

    event = await api_client.post(
        "/api/events",
        json={
            "title": "Launch",
            "description": "party",
            "startTime": "2099-01-01T10:00:00Z",
            "endTime": "2099-01-01T12:00:00Z",
        },
        headers=auth(alice["token"]),
    )
    event_id = event.json()["data"]["event"]["id"]
    resp = await api_client.put(
        f"/api/admin/events/{event_id}", json={"is_featured": True}, headers=auth(admin["token"])
    )
    assert resp.json()["data"]["event"]["is_featured"] is True

    resp = await api_client.get("/api/admin/events", params={"search": "launch"}, headers=auth(admin["token"]))
    assert resp.json()["data"]["pagination"]["total"] == 1

    resp = await api_client.delete(f"/api/admin/events/{event_id}", headers=auth(admin["token"]))
    assert resp.status_code == 200
