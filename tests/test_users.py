import pytest

from conftest import auth, register


@pytest.mark.asyncio
async def test_follow_updates_counters_and_is_following(api_client, alice, bob):
    resp = await api_client.post("/api/users/bob/follow", headers=auth(alice["token"]))
    assert resp.status_code == 200

    profile = await api_client.get("/api/users/bob", headers=auth(alice["token"]))
    user = profile.json()["data"]["user"]
    assert user["isFollowing"] is True
    assert user["follower_count"] == 1
    assert "email" not in user

    me = await api_client.get("/api/users/alice")
    assert me.json()["data"]["user"]["following_count"] == 1

    resp = await api_client.get("/api/users/bob/followers")
    assert [u["username"] for u in resp.json()["data"]["followers"]] == ["alice"]
    resp = await api_client.get("/api/users/alice/following")
    assert [u["username"] for u in resp.json()["data"]["following"]] == ["bob"]


@pytest.mark.asyncio
async def test_follow_rejects_self_and_duplicates(api_client, alice, bob):
    resp = await api_client.post("/api/users/alice/follow", headers=auth(alice["token"]))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Cannot follow yourself"

    await api_client.post("/api/users/bob/follow", headers=auth(alice["token"]))
    resp = await api_client.post("/api/users/bob/follow", headers=auth(alice["token"]))
    assert resp.status_code == 400
    assert resp.json()["message"] == "Already following"

    resp = await api_client.post("/api/users/nobody/follow", headers=auth(alice["token"]))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unfollow_only_adjusts_counters_when_following(api_client, alice, bob):
    resp = await api_client.delete("/api/users/bob/follow", headers=auth(alice["token"]))
    assert resp.status_code == 200
    bob_profile = await api_client.get("/api/users/bob")
    assert bob_profile.json()["data"]["user"]["follower_count"] == 0

    await api_client.post("/api/users/bob/follow", headers=auth(alice["token"]))
    await api_client.delete("/api/users/bob/follow", headers=auth(alice["token"]))
    bob_profile = await api_client.get("/api/users/bob")
    assert bob_profile.json()["data"]["user"]["follower_count"] == 0


@pytest.mark.asyncio
async def test_profile_update_is_whitelisted_and_self_only(api_client, alice, bob):
    resp = await api_client.put(
        "/api/users/profile",
        json={"displayName": "Alice A.", "bio": "hi", "website": "", "role": "admin"},
        headers=auth(alice["token"]),
    )
    assert resp.status_code == 200
    user = resp.json()["data"]["user"]
    assert user["display_name"] == "Alice A."
    assert user["website"] == ""
    assert user["role"] == "user"

    resp = await api_client.put("/api/users/profile", json={"website": "ftp:/bad"}, headers=auth(alice["token"]))
    assert resp.status_code == 400

    resp = await api_client.put("/api/users/alice", json={"bio": "hacked"}, headers=auth(bob["token"]))
    assert resp.status_code == 403

    resp = await api_client.put("/api/users/alice", json={"bio": "mine"}, headers=auth(alice["token"]))
    assert resp.json()["data"]["user"]["bio"] == "mine"


@pytest.mark.asyncio
async def test_stats_count_posts_events_follows_and_likes(api_client, alice, bob):
    post = await api_client.post("/api/posts", json={"content": "hi"}, headers=auth(alice["token"]))
    post_id = post.json()["data"]["post"]["id"]
    await api_client.post(f"/api/posts/{post_id}/like", headers=auth(bob["token"]))
    await api_client.post("/api/users/alice/follow", headers=auth(bob["token"]))

    resp = await api_client.get("/api/users/alice/stats")
    assert resp.json()["data"]["stats"] == {"posts": 1, "events": 0, "followers": 1, "following": 0, "likes": 1}


@pytest.mark.asyncio
async def test_search_matches_username_and_display_name(api_client, alice):
    await register(api_client, "charlie", "ch@x.com")
    await api_client.put("/api/users/profile", json={"displayName": "Wonderland"}, headers=auth(alice["token"]))

    resp = await api_client.get("/api/users/search/users", params={"q": "ARLI"})
    assert [u["username"] for u in resp.json()["data"]["users"]] == ["charlie"]

    resp = await api_client.get("/api/users/search/users", params={"q": "wonder"})
    assert [u["username"] for u in resp.json()["data"]["users"]] == ["alice"]

    resp = await api_client.get("/api/users/search/users")
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_user_posts_default_page_size(api_client, alice):
    for i in range(11):
        await api_client.post("/api/posts", json={"content": f"post {i}"}, headers=auth(alice["token"]))
    resp = await api_client.get("/api/users/alice/posts")
    data = resp.json()["data"]
    assert len(data["posts"]) == 10
    assert data["pagination"]["hasMore"] is True
