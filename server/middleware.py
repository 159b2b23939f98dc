"""
Request timing middleware for the auth and playback routes.
"""
import logging
import time

from fastapi import Request

logger = logging.getLogger(__name__)

LOGGED_PREFIXES = ("/v1/", "/auth/", "/callback")


async def log_requests_middleware(request: Request, call_next):
    """Log method, path, status and duration of auth and player calls"""
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000

    # Query strings carry the authorization code, log the path only
    path = request.url.path
    if path.startswith(LOGGED_PREFIXES):
        logger.info(f"{request.method} {path} -> {response.status_code} ({elapsed_ms:.0f}ms)")

    response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.0f}"
    return response
