"""Tests for the per-client token bucket and the middleware around it."""

from groupchat.core.config import settings
from groupchat.middleware.request_context import check_rate_limit, evict_stale


class TestCheckRateLimit:

    def test_burst_then_block(self):
        bucket = {}
        for _ in range(5):
            assert check_rate_limit(bucket, "1.2.3.4", 5, now=100.0) == (True, 0.0)

        allowed, retry_after = check_rate_limit(bucket, "1.2.3.4", 5, now=100.0)
        assert not allowed
        assert retry_after > 0

    def test_refills_over_time(self):
        bucket = {}
        for _ in range(60):
            check_rate_limit(bucket, "c", 60, now=0.0)
        assert not check_rate_limit(bucket, "c", 60, now=0.0)[0]
        assert check_rate_limit(bucket, "c", 60, now=1.0)[0]

    def test_clients_are_independent(self):
        bucket = {}
        check_rate_limit(bucket, "a", 1, now=0.0)
        assert not check_rate_limit(bucket, "a", 1, now=0.0)[0]
        assert check_rate_limit(bucket, "b", 1, now=0.0)[0]

    def test_zero_disables(self):
        bucket = {}
        for _ in range(100):
            assert check_rate_limit(bucket, "c", 0, now=0.0)[0]
        assert bucket == {}


class TestEvictStale:

    def test_drops_only_idle_clients(self):
        bucket = {"old": (3.0, 0.0), "fresh": (3.0, 500.0)}
        assert evict_stale(bucket, now=600.0) == 1
        assert list(bucket) == ["fresh"]


class TestMiddleware:

    def test_limits_api_routes(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 2)
        for _ in range(2):
            assert client.get("/messages", params={"groupName": "g"}).status_code == 401

        resp = client.get("/messages", params={"groupName": "g"})
        assert resp.status_code == 429
        assert resp.json()["error"] == "RATE_LIMITED"
        assert int(resp.headers["Retry-After"]) >= 1

    def test_health_is_exempt(self, client, monkeypatch):
        monkeypatch.setattr(settings, "rate_limit_per_minute", 1)
        for _ in range(5):
            assert client.get("/health").status_code == 200
