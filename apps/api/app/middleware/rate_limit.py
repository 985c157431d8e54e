from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Protocol

import structlog
from fastapi import Request
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.config import settings
from app.redis_client import get_redis

logger = structlog.get_logger()


def _parse_rate(rate: str) -> tuple[int, int]:
    """
    Parse formats like:
      - "60/minute"
      - "120/hour"
      - "10/second"
    Returns: (limit, window_seconds)
    """
    raw = rate.strip().lower()
    if "/" not in raw:
        raise ValueError(f"Invalid rate format: {rate}")

    limit_str, window_str = raw.split("/", 1)
    limit = int(limit_str)

    window_str = window_str.strip()
    if window_str in {"sec", "second", "seconds"}:
        return limit, 1
    if window_str in {"min", "minute", "minutes"}:
        return limit, 60
    if window_str in {"hour", "hours"}:
        return limit, 3600
    if window_str in {"day", "days"}:
        return limit, 86400

    raise ValueError(f"Invalid rate window: {window_str}")


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    limit: int
    remaining: int
    reset: int


class RateLimiter(Protocol):
    def check(self, key: str) -> RateDecision: ...

    def allow(self, key: str) -> bool: ...


class _FixedWindow:
    def __init__(self, limit: int, window_seconds: int) -> None:
        self.limit = limit
        self.window_seconds = window_seconds

    def _bucket(self, now: float) -> tuple[int, int]:
        bucket = int(now) // self.window_seconds
        return bucket, (bucket + 1) * self.window_seconds

    def _decision(self, count: int, reset: int) -> RateDecision:
        return RateDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset=reset,
        )

    def allow(self, key: str) -> bool:
        return self.check(key).allowed


class RedisRateLimiter(_FixedWindow):
    """Fixed window counter shared by every API process through Redis."""

    def check(self, key: str) -> RateDecision:
        bucket, reset = self._bucket(time.time())
        redis_key = f"rl:{key}:{self.window_seconds}:{bucket}"
        try:
            r = get_redis()
            count = int(r.incr(redis_key))
            if count == 1:
                r.expire(redis_key, self.window_seconds)
        except RedisError:
            # Fail open if Redis is unavailable (don't take down the API)
            logger.warning("rate_limit_backend_unavailable", backend="redis")
            return RateDecision(allowed=True, limit=self.limit, remaining=self.limit, reset=reset)
        return self._decision(count, reset)


class InMemoryRateLimiter(_FixedWindow):
    """
    Per-process fixed windows kept in a bounded LRU mapping. Each key owns an
    independent (bucket, count) entry; the least recently seen key is evicted
    once max_keys is exceeded.
    """

    def __init__(self, limit: int, window_seconds: int, max_keys: int = 10000) -> None:
        super().__init__(limit, window_seconds)
        self.max_keys = max_keys
        self._entries: OrderedDict[str, tuple[int, int]] = OrderedDict()
        self._lock = threading.Lock()

    def check(self, key: str) -> RateDecision:
        bucket, reset = self._bucket(time.time())
        with self._lock:
            entry_bucket, count = self._entries.pop(key, (bucket, 0))
            if entry_bucket != bucket:
                count = 0
            count += 1
            self._entries[key] = (bucket, count)
            while len(self._entries) > self.max_keys:
                self._entries.popitem(last=False)
        return self._decision(count, reset)

    def __len__(self) -> int:
        return len(self._entries)


def build_rate_limiter() -> RateLimiter | None:
    try:
        limit, window_seconds = _parse_rate(settings.rate_limit_default)
    except ValueError:
        # Misconfigured rate => fail open
        logger.warning("rate_limit_misconfigured", rate=settings.rate_limit_default)
        return None

    if settings.rate_limit_backend == "memory":
        return InMemoryRateLimiter(limit, window_seconds, settings.rate_limit_max_keys)
    return RedisRateLimiter(limit, window_seconds)


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limiter: RateLimiter | None = None) -> None:
        super().__init__(app)
        self.limiter = limiter if limiter is not None else build_rate_limiter()

    async def dispatch(self, request: Request, call_next) -> Response:
        if not settings.rate_limit_enabled or self.limiter is None:
            return await call_next(request)

        # Don't rate-limit CORS preflight
        if request.method == "OPTIONS":
            return await call_next(request)

        path = request.url.path
        if path in set(settings.rate_limit_exempt_paths):
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"

        # Include method+path to reduce accidental cross-endpoint coupling
        decision = self.limiter.check(f"{client_ip}:{request.method}:{path}")
        now = int(time.time())

        if not decision.allowed:
            headers = {
                "X-RateLimit-Limit": str(decision.limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(decision.reset),
                "Retry-After": str(max(0, decision.reset - now)),
            }
            return JSONResponse(
                status_code=429,
                content={"detail": {"code": "RATE_LIMITED", "message": "rate limit exceeded"}},
                headers=headers,
            )

        response = await call_next(request)
        response.headers.setdefault("X-RateLimit-Limit", str(decision.limit))
        response.headers.setdefault("X-RateLimit-Remaining", str(decision.remaining))
        response.headers.setdefault("X-RateLimit-Reset", str(decision.reset))
        return response
