"""
Bistro API — Sliding window rate limiter middleware (Redis-backed)

Token issuance (POST /jwt) needs no credentials, so it is throttled per
email. Uses sorted sets (ZADD/ZREMRANGEBYSCORE/ZCARD) for a true sliding
window.
"""
import json
import logging
import time
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest

from bistro.core.config import get_settings
from bistro.core.redis_client import get_redis, redis_key

settings = get_settings()
logger = logging.getLogger(__name__)

RATE_LIMITED_PATHS = ("/jwt", "/jwt/")


class SlidingWindowRateLimiter(BaseHTTPMiddleware):
    """
    Applies sliding-window rate limiting ONLY to POST /jwt.
    Key is the email in the request body, or the client IP when the body
    cannot be parsed.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method != "POST" or request.url.path not in RATE_LIMITED_PATHS:
            return await call_next(request)

        # Read body without consuming the stream
        body = await request.body()
        client_host = request.client.host if request.client else "unknown"
        try:
            data = json.loads(body)
            tracking_key = (data.get("email") if isinstance(data, dict) else None) or client_host
        except ValueError:
            tracking_key = client_host

        redis = get_redis()
        key = redis_key("ratelimit", "jwt", str(tracking_key).strip().lower())
        now = time.time()
        window_start = now - settings.RATE_LIMIT_WINDOW_SECONDS

        pipe = redis.pipeline()
        pipe.zremrangebyscore(key, "-inf", window_start)
        pipe.zcard(key)
        pipe.zadd(key, {str(now): now})
        pipe.expire(key, settings.RATE_LIMIT_WINDOW_SECONDS + 1)
        results = await pipe.execute()

        attempt_count = results[1]  # count before this attempt

        if attempt_count >= settings.RATE_LIMIT_MAX_ATTEMPTS:
            logger.warning("Token issuance rate limit hit for %s", tracking_key)
            return JSONResponse(
                status_code=429,
                content={
                    "detail": (
                        f"Too many token requests. Maximum {settings.RATE_LIMIT_MAX_ATTEMPTS} "
                        f"per {settings.RATE_LIMIT_WINDOW_SECONDS} seconds."
                    ),
                    "retry_after_seconds": settings.RATE_LIMIT_WINDOW_SECONDS,
                },
                headers={"Retry-After": str(settings.RATE_LIMIT_WINDOW_SECONDS)},
            )

        # Re-attach consumed body so downstream can read it
        async def receive():
            return {"type": "http.request", "body": body, "more_body": False}

        return await call_next(StarletteRequest(request.scope, receive))
