"""
Rate limiting for the mutating endpoints.

Reads are not limited so the grid can poll freely. Writes share a single
per-client limit, configurable through TABLEADMIN_RATE_LIMIT_WRITE.
"""

import logging
from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import Config

WRITE_LIMIT = Config.get_write_rate_limit()

limiter = Limiter(key_func=get_remote_address)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Answer a throttled request with the standard response envelope.
    """
    logging.warning(
        f"Rate limit exceeded for {get_remote_address(request)} "
        f"on {request.method} {request.url.path}: {exc.detail}"
    )
    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "message": f"Rate limit exceeded: {exc.detail}. Please try again later.",
        },
    )
    response.headers["Retry-After"] = "60"
    return response
