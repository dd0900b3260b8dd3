import pytest

from biubiustar.core.config import settings
from conftest import auth, register


async def create_post(client, token, **body):
    body.setdefault("content", "hello")
    resp = await client.post("/api/posts", json=body, headers=auth(token))
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]["post"]


@pytest.mark.asyncio
async def test_end_to_end_post_like_unlike(api_client):
    await register(api_client, "alice", "a@x.com")
    login = await api_client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    token = login.json()["data"]["token"]

    post = await create_post(api_client, token, content="hello")
    assert post["status"] == "published"
    assert post["author"]["username"] == "alice"

    resp = await api_client.post(f"/api/posts/{post['id']}/like", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["data"] == {"likeCount": 1, "isLiked": True}

    resp = await api_client.delete(f"/api/posts/{post['id']}/like", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["data"] == {"likeCount": 0, "isLiked": False}


@pytest.mark.asyncio
async def test_timeline_shows_only_published_posts(api_client, alice):
    published = await create_post(api_client, alice["token"], content="visible")
    await create_post(api_client, alice["token"], content="draft", status="draft")

    resp = await api_client.get("/api/posts")
    body = resp.json()["data"]
    assert [p["id"] for p in body["posts"]] == [published["id"]]
    assert body["pagination"] == {"page": 1, "limit": 20, "hasMore": False}


@pytest.mark.asyncio
async def test_review_required_stores_posts_as_pending(api_client, alice, monkeypatch):
    monkeypatch.setattr(settings, "POST_REVIEW_REQUIRED", True)
    post = await create_post(api_client, alice["token"], content="needs review")
    assert post["status"] == "pending"

    resp = await api_client.get("/api/posts")
    assert resp.json()["data"]["posts"] == []


@pytest.mark.asyncio
async def test_like_twice_is_rejected_and_unlike_is_idempotent(api_client, alice, bob):
    post = await create_post(api_client, alice["token"])

    resp = await api_client.delete(f"/api/posts/{post['id']}/like", headers=auth(bob["token"]))
    assert resp.status_code == 200

    first = await api_client.post(f"/api/posts/{post['id']}/like", headers=auth(bob["token"]))
    assert first.status_code == 200
    second = await api_client.post(f"/api/posts/{post['id']}/like", headers=auth(bob["token"]))
    assert second.status_code == 400
    assert second.json()["message"] == "Already liked"

    detail = await api_client.get(f"/api/posts/{post['id']}", headers=auth(bob["token"]))
    data = detail.json()["data"]["post"]
    assert data["likeCount"] == 1
    assert data["isLiked"] is True


@pytest.mark.asyncio
async def test_like_missing_post_is_404(api_client, alice):
    resp = await api_client.post(
        "/api/posts/00000000-0000-0000-0000-000000000000/like", headers=auth(alice["token"])
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_post_validation(api_client, alice):
    resp = await api_client.post(
        "/api/posts",
        json={"content": "", "tags": [f"t{i}" for i in range(11)], "imageUrls": ["not a url"]},
        headers=auth(alice["token"]),
    )
    assert resp.status_code == 400
    fields = {e["field"].split(".")[0] for e in resp.json()["errors"]}
    assert {"content", "tags", "imageUrls"} <= fields


@pytest.mark.asyncio
async def test_user_feed_requires_auth_and_includes_drafts(api_client, alice):
    await create_post(api_client, alice["token"], content="draft", status="draft")

    resp = await api_client.get("/api/posts", params={"type": "user"})
    assert resp.status_code == 401

    resp = await api_client.get("/api/posts", params={"type": "user"}, headers=auth(alice["token"]))
    assert [p["content"] for p in resp.json()["data"]["posts"]] == ["draft"]


@pytest.mark.asyncio
async def test_following_feed_includes_followed_users_and_self(api_client, alice, bob):
    carol = await register(api_client, "carol", "c@x.com")
    await create_post(api_client, alice["token"], content="from alice")
    await create_post(api_client, bob["token"], content="from bob")
    await create_post(api_client, carol["token"], content="from carol")
    await api_client.post("/api/users/bob/follow", headers=auth(alice["token"]))

    resp = await api_client.get("/api/posts", params={"type": "following"}, headers=auth(alice["token"]))
    contents = {p["content"] for p in resp.json()["data"]["posts"]}
    assert contents == {"from alice", "from bob"}


@pytest.mark.asyncio
async def test_comments_are_listed_oldest_first(api_client, alice, bob):
    post = await create_post(api_client, alice["token"])
    for text in ("first", "second"):
        resp = await api_client.post(
            f"/api/posts/{post['id']}/comments", json={"content": text}, headers=auth(bob["token"])
        )
        assert resp.status_code == 201

    resp = await api_client.get(f"/api/posts/{post['id']}/comments")
    comments = resp.json()["data"]["comments"]
    assert [c["content"] for c in comments] == ["first", "second"]
    assert comments[0]["author"]["username"] == "bob"

    detail = await api_client.get(f"/api/posts/{post['id']}")
    assert detail.json()["data"]["post"]["commentCount"] == 2


@pytest.mark.asyncio
async def test_only_owner_can_delete_post(api_client, alice, bob):
    post = await create_post(api_client, alice["token"])

    resp = await api_client.delete(f"/api/posts/{post['id']}", headers=auth(bob["token"]))
    assert resp.status_code == 404
    assert resp.json()["message"] == "Post not found or no permission"

    resp = await api_client.delete(f"/api/posts/{post['id']}", headers=auth(alice["token"]))
    assert resp.status_code == 200
    assert (await api_client.get(f"/api/posts/{post['id']}")).status_code == 404

    me = await api_client.get("/api/auth/me", headers=auth(alice["token"]))
    assert me.json()["data"]["user"]["post_count"] == 0


@pytest.mark.asyncio
async def test_user_posts_hide_drafts_from_others(api_client, alice, bob):
    await create_post(api_client, alice["token"], content="public")
    await create_post(api_client, alice["token"], content="draft", status="draft")

    resp = await api_client.get("/api/posts/user/alice", headers=auth(bob["token"]))
    assert [p["content"] for p in resp.json()["data"]["posts"]] == ["public"]

    resp = await api_client.get("/api/posts/user/alice", headers=auth(alice["token"]))
    assert len(resp.json()["data"]["posts"]) == 2

    resp = await api_client.get("/api/posts/user/nobody")
    assert resp.status_code == 404
