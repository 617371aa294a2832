"""Request guards: admin write rate limiting, URL pattern blocking, request ids."""

import logging
import re
from urllib.parse import unquote
from uuid import uuid4

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from starlette.middleware.base import BaseHTTPMiddleware

from eventspark.core.config import settings

logger = logging.getLogger(__name__)

SUSPICIOUS_PATTERNS = [
    re.compile(r"\.\./"),  # directory traversal
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),  # inline event handlers
    re.compile(r"data:text/html", re.IGNORECASE),
]


class RateLimiter:
    """Fixed-window request counter per key, kept in the limits memory storage.

    The storage expires finished windows on its own.
    """

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.storage = MemoryStorage()
        self._strategy = FixedWindowRateLimiter(self.storage)

    @property
    def limit(self) -> RateLimitItemPerSecond:
        return RateLimitItemPerSecond(self.max_requests, self.window_seconds)

    def check(self, key: str) -> tuple[bool, int]:
        """Count a request; returns (allowed, remaining)."""
        limit = self.limit
        allowed = self._strategy.hit(limit, key)
        _, remaining = self._strategy.get_window_stats(limit, key)
        return allowed, remaining

    def clear(self) -> None:
        self.storage.reset()


rate_limiter = RateLimiter(
    max_requests=settings.rate_limit_max_requests,
    window_seconds=settings.rate_limit_window_seconds,
)


def client_key(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for", "")
    ip = forwarded_for.split(",")[0].strip()
    if not ip and request.client:
        ip = request.client.host
    return f"rate_limit:{ip or 'anonymous'}"


def is_suspicious(url: str) -> bool:
    decoded = unquote(url)
    return any(pattern.search(decoded) for pattern in SUSPICIOUS_PATTERNS)


class SecurityMiddleware(BaseHTTPMiddleware):
    """Applies the guards to every request before it reaches a route."""

    def __init__(self, app, limiter: RateLimiter = rate_limiter):
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(self, request: Request, call_next):
        rate_headers = {}
        if request.url.path.startswith("/admin") and request.method != "GET":
            allowed, remaining = self.limiter.check(client_key(request))
            rate_headers = {
                "X-RateLimit-Limit": str(self.limiter.max_requests),
                "X-RateLimit-Remaining": str(remaining),
            }
            if not allowed:
                logger.info(f"Rate limit exceeded for {client_key(request)}")
                return JSONResponse(
                    {"error": "Too many requests. Please try again later."},
                    status_code=429,
                    headers={**rate_headers, "Retry-After": str(self.limiter.window_seconds)},
                )

        url = request.url.path
        if request.url.query:
            url = f"{url}?{request.url.query}"
        if is_suspicious(url):
            logger.warning(f"Blocked suspicious request: {url}")
            return PlainTextResponse("Bad Request", status_code=400)

        response = await call_next(request)
        response.headers.update(rate_headers)
        response.headers["X-Request-Id"] = str(uuid4())
        return response


VISITOR_COOKIE = "spark_visitor"
VISITOR_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


class VisitorMiddleware(BaseHTTPMiddleware):
    """Gives every browser a visitor id cookie.

    The id scopes the visitor's deck session and saved/dismissed lists. It
    is exposed to routes as ``request.state.visitor_id``.
    """

    async def dispatch(self, request: Request, call_next):
        visitor_id = request.cookies.get(VISITOR_COOKIE)
        is_new = not visitor_id or not re.fullmatch(r"[0-9a-f]{32}", visitor_id)
        if is_new:
            visitor_id = uuid4().hex
        request.state.visitor_id = visitor_id

        response = await call_next(request)
        if is_new:
            response.set_cookie(
                VISITOR_COOKIE,
                visitor_id,
                max_age=VISITOR_COOKIE_MAX_AGE,
                httponly=True,
                samesite="lax",
            )
        return response
