"""
Rate limiting configuration and utilities
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from appgen.core.config import settings

logger = logging.getLogger(__name__)

# slowapi keys application_limits under this scope; decorated routes join the
# same counter through shared_limit
API_LIMIT_SCOPE = "global"

API_LIMIT_MESSAGE = "Too many API requests"
GENERATE_LIMIT_MESSAGE = "Too many generation requests"

# application_limits are enforced by SlowAPIMiddleware on every undecorated route.
# The middleware skips decorated routes, so POST /api/generate carries both
# api_limit and its own stricter limit.
limiter = Limiter(
    key_func=get_remote_address,
    application_limits=[settings.api_rate_limit],
    storage_uri=settings.rate_limit_storage_uri,
    enabled=settings.rate_limit_enabled,
)

api_limit = limiter.shared_limit(
    settings.api_rate_limit,
    scope=API_LIMIT_SCOPE,
    error_message=API_LIMIT_MESSAGE,
)

generate_limit = limiter.limit(settings.generate_rate_limit, error_message=GENERATE_LIMIT_MESSAGE)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Sync on purpose: SlowAPIMiddleware can only call synchronous handlers."""
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {exc.detail}")

    # application limits carry no message of their own
    error = API_LIMIT_MESSAGE
    if exc.limit is not None and exc.limit.error_message:
        error = exc.detail

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": error,
            "code": "RATE_LIMIT_EXCEEDED",
            "retryAfter": "60 seconds",
        },
    )
