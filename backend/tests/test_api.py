"""Tests for the entity and catalog endpoints and the app-wide middleware."""

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from redis.exceptions import RedisError

from console.middleware.metrics import _normalize_path
from console.middleware.rate_limit import LoginRateLimitMiddleware
from console.middleware.security_headers import SecurityHeadersMiddleware


# ── Entities ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestEntityEndpoints:
    async def test_requires_session(self, anon_client):
        resp = await anon_client.get("/api/entities/agents")
        assert resp.status_code == 401

    async def test_branch_admin_list(self, branch_client):
        resp = await branch_client.get("/api/entities/agents")
        assert resp.status_code == 200
        assert sorted(a["id"] for a in resp.json()) == [1, 3]

    async def test_superadmin_list(self, superadmin_client):
        resp = await superadmin_client.get("/api/entities/agents")
        assert sorted(a["id"] for a in resp.json()) == [1, 2, 3, 4]

    async def test_query_filters(self, superadmin_client):
        resp = await superadmin_client.get("/api/entities/loans", params={"loan_status": "Closed"})
        assert [r["id"] for r in resp.json()] == [3]

    async def test_branch_query_cannot_widen_scope(self, branch_client):
        resp = await branch_client.get("/api/entities/premium-payments", params={"branch": 2})
        assert [r["branch"] for r in resp.json()] == [1]

    async def test_unknown_kind(self, branch_client):
        resp = await branch_client.get("/api/entities/spaceships")
        assert resp.status_code == 422

    async def test_detail_in_and_out_of_scope(self, branch_client):
        assert (await branch_client.get("/api/entities/policy-holders/1")).status_code == 200
        assert (await branch_client.get("/api/entities/policy-holders/2")).status_code == 404

    async def test_patch_in_scope(self, branch_client):
        resp = await branch_client.patch("/api/entities/claims/1", json={"status": "Approved"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "Approved"

    async def test_patch_out_of_scope(self, branch_client):
        resp = await branch_client.patch("/api/entities/claims/2", json={"status": "Approved"})
        assert resp.status_code == 404

    async def test_patch_moving_branch(self, branch_client):
        resp = await branch_client.patch("/api/entities/claims/1", json={"branch": 2})
        assert resp.status_code == 403

    async def test_create_is_stamped(self, branch_client):
        resp = await branch_client.post("/api/entities/kyc", json={"customer": 4, "document_type": "Passport"})
        assert resp.status_code == 201
        assert resp.json()["branch"] == 1

    async def test_create_for_other_branch(self, branch_client):
        resp = await branch_client.post("/api/entities/kyc", json={"customer": 5, "branch": 2})
        assert resp.status_code == 403

    async def test_branch_admin_cannot_promote_users(self, branch_client):
        resp = await branch_client.patch("/api/entities/users/4", json={"user_type": "superadmin"})
        assert resp.status_code == 403
        resp = await branch_client.post("/api/entities/users", json={"username": "evil", "user_type": "branch"})
        assert resp.status_code == 403

    async def test_customer_gets_nothing(self, anon_client):
        login = await anon_client.post("/api/auth/login", json={"username": "ram.customer",
                                                                "password": "customer-pass"})
        assert login.status_code == 200
        assert (await anon_client.get("/api/entities/agents")).json() == []
        assert (await anon_client.patch("/api/entities/agents/1", json={"status": "x"})).status_code == 403


# ── Catalog ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestCatalogEndpoints:
    async def test_branches_for_superadmin(self, superadmin_client):
        resp = await superadmin_client.get("/api/branches")
        assert resp.status_code == 200
        assert len(resp.json()) == 3

    async def test_branches_forbidden_for_branch_admin(self, branch_client):
        resp = await branch_client.get("/api/branches")
        assert resp.status_code == 403
        assert "view_all_branches" in resp.json()["detail"]

    async def test_policies_for_both(self, superadmin_client):
        assert (await superadmin_client.get("/api/policies")).status_code == 200

    async def test_policies_for_branch_admin(self, branch_client):
        assert len((await branch_client.get("/api/policies")).json()) == 2

    async def test_catalog_requires_session(self, anon_client):
        assert (await anon_client.get("/api/policies")).status_code == 401


# ── App-wide behaviour ───────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestAppMiddleware:
    async def test_health(self, anon_client):
        resp = await anon_client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    async def test_request_id_is_echoed(self, anon_client):
        resp = await anon_client.get("/api/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["x-request-id"] == "req-123"

    async def test_request_id_is_generated(self, anon_client):
        resp = await anon_client.get("/api/health")
        assert len(resp.headers["x-request-id"]) == 32

    async def test_security_headers(self, anon_client):
        resp = await anon_client.get("/api/health")
        assert resp.headers["x-content-type-options"] == "nosniff"
        assert "cache-control" not in resp.headers
        assert "strict-transport-security" not in resp.headers

    async def test_malformed_request_id_is_replaced(self, anon_client):
        resp = await anon_client.get("/api/health", headers={"X-Request-ID": "forged id; level=ERROR msg=\"owned\""})
        assert resp.headers["x-request-id"] != "forged id; level=ERROR msg=\"owned\""
        assert len(resp.headers["x-request-id"]) == 32

    async def test_session_responses_are_private(self, branch_client):
        resp = await branch_client.get("/api/auth/me")
        assert resp.headers["cache-control"] == "no-store"
        assert resp.headers["pragma"] == "no-cache"

    async def test_hsts_when_enabled(self):
        inner = FastAPI()

        @inner.get("/api/health")
        async def health():
            return {"ok": True}

        app = SecurityHeadersMiddleware(inner, hsts=True)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            resp = await client.get("/api/health")
        assert resp.headers["strict-transport-security"].startswith("max-age=")
        assert resp.headers["x-frame-options"] == "DENY"

    async def test_metrics_endpoint(self, branch_client):
        await branch_client.get("/api/screens/branches")
        resp = await branch_client.get("/metrics")
        assert resp.status_code == 200
        body = resp.text
        assert "console_logins_total" in body
        assert "http_requests_total" in body
        assert resp.headers["content-type"].startswith("text/plain")

    async def test_metrics_openmetrics_negotiation(self, anon_client):
        resp = await anon_client.get("/metrics", headers={"Accept": "application/openmetrics-text; version=1.0.0"})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/openmetrics-text")
        assert resp.text.rstrip().endswith("# EOF")

    async def test_metrics_not_in_openapi_schema(self, anon_client):
        resp = await anon_client.get("/openapi.json")
        assert "/metrics" not in resp.json()["paths"]
        assert "/api/health" in resp.json()["paths"]


class TestNormalizePath:
    def test_ids_are_collapsed(self):
        assert _normalize_path("/api/entities/agents/12") == "/api/entities/agents/{id}"

    def test_long_tokens_are_collapsed(self):
        assert _normalize_path("/api/screens/" + "x" * 40) == "/api/screens/{id}"

    def test_plain_paths_are_kept(self):
        assert _normalize_path("/api/entities/agents") == "/api/entities/agents"


# ── Login rate limiting ──────────────────────────────────────────────────────

class FakeRateLimitPipeline:
    def __init__(self, redis):
        self.redis = redis

    def zremrangebyscore(self, key, low, high):
        pass

    def zadd(self, key, mapping):
        self.redis.count += 1

    def zcard(self, key):
        pass

    def expire(self, key, seconds):
        pass

    async def execute(self):
        if self.redis.fail:
            raise RedisError("down")
        return [0, 1, self.redis.count, True]


class FakeRateLimitRedis:
    def __init__(self, fail: bool = False):
        self.count = 0
        self.fail = fail

    def pipeline(self):
        return FakeRateLimitPipeline(self)


def _limited_app(redis, limit: int = 2) -> LoginRateLimitMiddleware:
    inner = FastAPI()

    @inner.post("/api/auth/login")
    async def login():
        return {"ok": True}

    @inner.get("/api/auth/me")
    async def me():
        return {"ok": True}

    middleware = LoginRateLimitMiddleware(inner, limit=limit, enabled=True)
    middleware._redis = redis
    return middleware


@pytest.mark.asyncio
class TestLoginRateLimit:
    async def test_blocks_after_limit(self):
        app = _limited_app(FakeRateLimitRedis(), limit=2)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            first = await client.post("/api/auth/login")
            assert first.status_code == 200
            assert first.headers["x-ratelimit-remaining"] == "1"
            assert (await client.post("/api/auth/login")).status_code == 200
            blocked = await client.post("/api/auth/login")
            assert blocked.status_code == 429
            assert blocked.headers["retry-after"] == "60"

    async def test_other_paths_are_not_limited(self):
        redis = FakeRateLimitRedis()
        app = _limited_app(redis, limit=0)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            assert (await client.get("/api/auth/me")).status_code == 200
        assert redis.count == 0

    async def test_fails_open_when_redis_errors(self):
        app = _limited_app(FakeRateLimitRedis(fail=True), limit=0)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            assert (await client.post("/api/auth/login")).status_code == 200
