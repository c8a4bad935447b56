"""Fixed-window rate limiting middleware backed by Redis.

Key pattern: "ratelimit:{subject}:{window}" where subject is the JWT subject
when a valid bearer token is present, else the client IP (X-Forwarded-For
aware). One window is 60 seconds; the limit is RATE_LIMIT_PER_MINUTE.

Exceptions raised inside BaseHTTPMiddleware bypass the app's exception
handlers, so the 429 envelope is rendered here directly.
"""

import logging
import time

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from config.settings import settings
from src.mk_common.errors import InvalidTokenError, RateLimitError
from src.mk_common.redis_client import get_redis
from src.mk_common.response import error_response
from src.mk_gateway.auth.jwt_handler import decode_token

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_EXEMPT_PATHS = frozenset({"/health", "/docs", "/openapi.json"})


def client_subject(request: Request) -> str:
    """Return "user:<id>" for authenticated callers, otherwise "ip:<addr>"."""
    auth = request.headers.get("authorization", "")
    if auth.lower().startswith("bearer "):
        try:
            payload = decode_token(auth[7:].strip())
        except InvalidTokenError:
            payload = {}
        if payload.get("sub"):
            return f"user:{payload['sub']}"

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'unknown'}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        window = int(time.time()) // _WINDOW_SECONDS
        key = f"ratelimit:{client_subject(request)}:{window}"

        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, _WINDOW_SECONDS)

        if count > settings.RATE_LIMIT_PER_MINUTE:
            logger.warning("Rate limit exceeded: %s (%d requests)", key, count)
            err = RateLimitError()
            body = error_response(err.code, err.message, err.reason)
            return JSONResponse(
                status_code=err.http_status,
                content=body.model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS - int(time.time()) % _WINDOW_SECONDS)},
            )
        return await call_next(request)
