"""Rate limiting middleware — Redis-based fixed window per minute.

Learn: Each IP gets a counter key like "backstage:rl:{ip}:{bucket}:{minute}".
Minting API keys gets a stricter bucket than everything else.

Gracefully skips rate limiting if Redis is unavailable (e.g., in tests).
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from backstage.middleware.redis import get_redis

logger = structlog.get_logger()


def _bucket(request: Request) -> str:
    if request.method == "POST" and request.url.path.rstrip("/") == "/api/v1/api-keys":
        return "keys"
    return "api"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Per-IP request counter with a per-bucket limit."""

    def __init__(self, app, default_rpm: int = 100, key_rpm: int = 10):
        super().__init__(app)
        self.limits = {"api": default_rpm, "keys": key_rpm}

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        bucket = _bucket(request)
        rpm = self.limits[bucket]
        window = int(time.time() // 60)
        key = f"backstage:rl:{client_ip}:{bucket}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, 120)
        except Exception as e:
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        if count > rpm:
            return JSONResponse(
                status_code=429,
                content={"status": "error", "error": "Rate limit exceeded. Try again later."},
                headers={"Retry-After": "60"},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(rpm)
        response.headers["X-RateLimit-Remaining"] = str(max(0, rpm - count))
        return response
