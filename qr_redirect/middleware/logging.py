"""
Request Logging

One log line per HTTP request under the "qr_redirect" logger:

    GET /r/site-1 302 4.12ms IP:203.0.113.9 Mobile

Scans (/r/...) also carry the device class, so redirect traffic can be
followed in the logs without querying the visits table. Server errors
are logged at ERROR, everything else at INFO.
"""

import logging
import time

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from qr_redirect.core.request_context import classify_device, get_client_ip

logger = logging.getLogger("qr_redirect")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
SCAN_PREFIX = "/r/"


def configure_logging(level: str = "INFO") -> None:
    """Install the stream handler format and apply LOG_LEVEL to the service loggers."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    logger.setLevel(level.upper())


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status, latency and client IP; sets X-Process-Time."""

    async def dispatch(self, request: Request, call_next):
        client_ip = get_client_ip(request)
        start = time.perf_counter()

        response = await call_next(request)

        elapsed = time.perf_counter() - start
        line = (
            f"{request.method} {request.url.path} "
            f"{response.status_code} {elapsed * 1000:.2f}ms IP:{client_ip}"
        )
        if request.url.path.startswith(SCAN_PREFIX):
            line = f"{line} {classify_device(request.headers.get('User-Agent'))}"

        logger.log(logging.ERROR if response.status_code >= 500 else logging.INFO, line)

        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        return response


def add_logging_middleware(app: FastAPI) -> None:
    app.add_middleware(LoggingMiddleware)
