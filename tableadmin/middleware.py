"""
Middleware for the FastAPI application.
"""

import logging
import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all API requests with timing information.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logging.exception(
                f"Request failed: {request.method} {request.url.path} "
                f"- Time: {process_time:.4f}s "
                f"- IP: {client_ip} "
                f"- Error: {e}"
            )
            raise

        process_time = time.time() - start_time
        logging.info(
            f"Request: {request.method} {request.url.path} "
            f"- Status: {response.status_code} "
            f"- Time: {process_time:.4f}s "
            f"- IP: {client_ip}"
        )
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response
