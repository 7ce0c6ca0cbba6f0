"""HTTP middleware: request logging and security headers."""

import logging
import time

from fastapi import FastAPI, Request

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def register_middleware(app: FastAPI) -> None:
    """Attach the request logger and security headers to ``app``."""

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        client = request.client.host if request.client else "-"
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s from %s -> %s (%.1fms)",
            request.method,
            request.url.path,
            client,
            response.status_code,
            duration_ms,
        )
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response
