from datetime import datetime

import pytest
from fakeredis import FakeServer
from fakeredis.aioredis import FakeRedis
from sqlalchemy.dialects import postgresql

from biubiustar.core.cache import Cache
from biubiustar.core.config import parse_size
from biubiustar.core.rate_limit import SlidingWindowRateLimiter
from biubiustar.services.admin_service import bucket_by_day
from biubiustar.services.event_service import filter_by_tags, tags_overlap
from biubiustar.models.event import Event


def test_parse_size():
    assert parse_size("10mb") == 10 * 1024 * 1024
    assert parse_size("512KB") == 512 * 1024
    assert parse_size("100") == 100
    with pytest.raises(ValueError):
        parse_size("ten megabytes")


def test_bucket_by_day_fills_missing_days():
    today = datetime(2026, 3, 10, 15, 0)
    points = bucket_by_day(
        [datetime(2026, 3, 10, 1, 0), datetime(2026, 3, 10, 9, 0), datetime(2026, 3, 8, 23, 59)],
        today,
    )
    assert [p.date for p in points][0] == "2026-03-04"
    assert [p.date for p in points][-1] == "2026-03-10"
    assert [p.count for p in points] == [0, 0, 0, 0, 1, 0, 2]


def test_filter_by_tags_requires_overlap():
    music = Event(title="a", tags=["music", "outdoor"])
    tech = Event(title="b", tags=["tech"])
    untagged = Event(title="c", tags=[])
    assert filter_by_tags([music, tech, untagged], ["outdoor", "food"]) == [music]


def test_tags_overlap_compiles_to_jsonb_any_key():
    sql = str(tags_overlap(["music", "food"]).compile(dialect=postgresql.dialect()))
    assert "?|" in sql
    assert "JSONB" in sql


@pytest.mark.asyncio
async def test_sliding_window_limits_and_recovers():
    client = FakeRedis(server=FakeServer(), decode_responses=True)
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, prefix="t")

    assert (await limiter.hit(client, "1.2.3.4", now=1000.0)).allowed
    assert (await limiter.hit(client, "1.2.3.4", now=1010.0)).allowed
    blocked = await limiter.hit(client, "1.2.3.4", now=1020.0)
    assert not blocked.allowed
    assert blocked.retry_after == 41

    assert (await limiter.hit(client, "5.6.7.8", now=1020.0)).allowed
    assert (await limiter.hit(client, "1.2.3.4", now=1061.0)).allowed
    await client.aclose()


@pytest.mark.asyncio
async def test_cache_round_trip_and_pattern_delete():
    client = FakeRedis(server=FakeServer(), decode_responses=True)
    cache = Cache(client)

    await cache.set("stats:a", {"users": 3}, ttl=30)
    await cache.set("stats:b", [1, 2])
    assert await cache.get("stats:a") == {"users": 3}
    assert await cache.exists("stats:b")

    await cache.delete_pattern("stats:*")
    assert await cache.get("stats:a") is None
    assert not await cache.exists("stats:b")
    await client.aclose()


@pytest.mark.asyncio
async def test_root_health_and_security_headers(api_client):
    resp = await api_client.get("/")
    assert resp.status_code == 200
    assert resp.json()["endpoints"]["posts"] == "/api/posts"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"

    resp = await api_client.get("/api/health")
    body = resp.json()
    assert body["success"] is True
    assert body["uptime"] >= 0

    resp = await api_client.get("/api/health/ready")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"database": "connected", "redis": "connected"}


@pytest.mark.asyncio
async def test_unknown_route_uses_envelope(api_client):
    resp = await api_client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_oversized_body_is_rejected(api_client):
    resp = await api_client.post(
        "/api/contact",
        content=b"x" * 32,
        headers={"Content-Type": "application/json", "Content-Length": str(20 * 1024 * 1024)},
    )
    assert resp.status_code == 413
