"""
Redis-backed sliding window rate limiter for the login endpoints.

Tracks login attempts per client IP per minute. Only the credential
endpoints are limited; when Redis is unavailable the limiter passes
requests through and logs a warning.
"""

import time
import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from console.config import settings

logger = logging.getLogger(__name__)

LIMITED_PATHS = frozenset({"/api/auth/login", "/api/auth/demo-login"})


class LoginRateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, limit: int | None = None, enabled: bool | None = None):
        super().__init__(app)
        self._redis: aioredis.Redis | None = None
        self.limit = limit if limit is not None else settings.login_rate_limit_per_minute
        self.enabled = enabled if enabled is not None else settings.rate_limit_enabled
        self.window = 60  # seconds

    async def _get_redis(self) -> aioredis.Redis | None:
        if self._redis is None:
            try:
                self._redis = aioredis.from_url(
                    settings.redis_url, decode_responses=True
                )
                await self._redis.ping()
            except (RedisError, OSError) as exc:
                logger.warning("Login rate limiter: Redis unavailable (%s), passing through", exc)
                self._redis = None
        return self._redis

    async def dispatch(self, request: Request, call_next):
        if not self.enabled or request.method != "POST" or request.url.path not in LIMITED_PATHS:
            return await call_next(request)

        r = await self._get_redis()
        if r is None:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        key = f"ratelimit:login:{client_ip}"

        try:
            pipe = r.pipeline()
            pipe.zremrangebyscore(key, 0, now - self.window)
            pipe.zadd(key, {str(now): now})
            pipe.zcard(key)
            pipe.expire(key, self.window)
            results = await pipe.execute()
            attempt_count = results[2]
        except RedisError as exc:
            logger.warning("Login rate limiter Redis error: %s", exc)
            return await call_next(request)

        if attempt_count > self.limit:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many login attempts. Please try again later."},
                headers={"Retry-After": str(self.window)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.limit - attempt_count))
        return response
