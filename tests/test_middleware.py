"""Tests for rate limiting, URL blocking and visitor cookies."""

import time

import pytest
from fastapi.testclient import TestClient

from eventspark.core.middleware import (
    VISITOR_COOKIE,
    RateLimiter,
    is_suspicious,
    rate_limiter,
)


class TestRateLimiter:
    """Tests for the fixed-window counter."""

    def test_allows_up_to_limit(self):
        """Test requests within the limit pass and count down."""
        limiter = RateLimiter(max_requests=3, window_seconds=60)
        assert limiter.check("ip") == (True, 2)
        assert limiter.check("ip") == (True, 1)
        assert limiter.check("ip") == (True, 0)
        assert limiter.check("ip") == (False, 0)

    def test_window_resets(self):
        """Test the count starts over after the window."""
        limiter = RateLimiter(max_requests=1, window_seconds=1)
        assert limiter.check("ip")[0]
        assert not limiter.check("ip")[0]
        time.sleep(1.1)
        assert limiter.check("ip")[0]

    def test_keys_are_independent(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        assert limiter.check("a")[0]
        assert limiter.check("b")[0]

    def test_clear_forgets_counts(self):
        limiter = RateLimiter(max_requests=1, window_seconds=60)
        limiter.check("ip")
        limiter.clear()
        assert limiter.check("ip") == (True, 0)


class TestSuspiciousPatterns:
    """Tests for URL pattern blocking."""

    @pytest.mark.parametrize(
        "url",
        [
            "/event/../../etc/passwd",
            "/discover?q=<script>alert(1)</script>",
            "/saved?next=javascript:alert(1)",
            "/saved?x=%3Cscript%3E",
            "/discover?a=onload=steal()",
            "/discover?u=data:text/html;base64,xyz",
        ],
    )
    def test_blocked(self, url):
        assert is_suspicious(url)

    @pytest.mark.parametrize("url", ["/discover", "/event/demo-event-001", "/saved?page=2"])
    def test_allowed(self, url):
        assert not is_suspicious(url)


class TestSecurityMiddleware:
    """Tests for the guards applied to real requests."""

    def test_suspicious_request_rejected(self, client: TestClient):
        """Test a script tag in the query string gets a 400."""
        response = client.get("/discover?q=<script>alert(1)</script>")
        assert response.status_code == 400
        assert response.text == "Bad Request"

    def test_request_id_header(self, client: TestClient):
        response = client.get("/health")
        assert len(response.headers["X-Request-Id"]) == 36

    def test_admin_writes_rate_limited(self, client: TestClient, monkeypatch):
        """Test non-GET admin requests beyond the limit get a 429."""
        monkeypatch.setattr(rate_limiter, "max_requests", 2)
        for remaining in ("1", "0"):
            response = client.post("/admin/login", data={"email": "x@example.com", "password": "no"})
            assert response.headers["X-RateLimit-Limit"] == "2"
            assert response.headers["X-RateLimit-Remaining"] == remaining

        response = client.post("/admin/login", data={"email": "x@example.com", "password": "no"})
        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json() == {"error": "Too many requests. Please try again later."}

    def test_reads_not_rate_limited(self, client: TestClient, monkeypatch):
        """Test GET requests and non-admin writes are not counted."""
        monkeypatch.setattr(rate_limiter, "max_requests", 1)
        for _ in range(3):
            assert client.get("/admin/login").status_code == 200
            assert client.post("/discover/reset", follow_redirects=False).status_code == 303

    def test_forwarded_for_is_the_client(self, client: TestClient, monkeypatch):
        """Test clients behind a proxy are limited separately."""
        monkeypatch.setattr(rate_limiter, "max_requests", 1)
        first = client.post("/admin/logout", headers={"X-Forwarded-For": "10.0.0.1, 10.0.0.9"}, follow_redirects=False)
        second = client.post("/admin/logout", headers={"X-Forwarded-For": "10.0.0.2"}, follow_redirects=False)
        third = client.post("/admin/logout", headers={"X-Forwarded-For": "10.0.0.1"}, follow_redirects=False)
        assert first.status_code == 303
        assert second.status_code == 303
        assert third.status_code == 429


class TestVisitorMiddleware:
    """Tests for the visitor id cookie."""

    def test_cookie_set_on_first_visit(self, client: TestClient):
        response = client.get("/health")
        visitor_id = response.cookies.get(VISITOR_COOKIE)
        assert visitor_id is not None
        assert len(visitor_id) == 32

    def test_cookie_kept_on_later_visits(self, client: TestClient):
        """Test an existing valid cookie is not replaced."""
        client.get("/health")
        response = client.get("/health")
        assert VISITOR_COOKIE not in response.cookies

    def test_invalid_cookie_replaced(self, client: TestClient):
        client.cookies.set(VISITOR_COOKIE, "not-a-valid-id")
        response = client.get("/health")
        assert len(response.cookies.get(VISITOR_COOKIE)) == 32
