"""Request latency logging middleware."""

import logging
import re
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

SLOW_REQUEST_THRESHOLD_MS = 1000
VERY_SLOW_REQUEST_THRESHOLD_MS = 3000

QUIET_PATHS = ("/health", "/health/ready")

_UUID_PATTERN = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}", re.IGNORECASE)
_NUMERIC_SEGMENT = re.compile(r"/\d+(?=/|$)")


def normalize_path(path: str) -> str:
    """Collapse order ids and product ids so log lines group by route."""
    return _NUMERIC_SEGMENT.sub("/{id}", _UUID_PATTERN.sub("{id}", path))


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log ``METHOD path - status - ms`` for every request.

    Slow requests escalate to WARNING and ERROR; health checks log at DEBUG.
    """
    start_time = time.perf_counter()
    method = request.method
    path = request.url.path

    response = None
    try:
        response = await call_next(request)
        return response
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response else 500
        route = normalize_path(path)

        if path in QUIET_PATHS:
            logger.debug("%s %s - %s - %.2fms", method, route, status_code, latency_ms)
        elif status_code >= 500:
            logger.error("%s %s - %s - %.2fms", method, route, status_code, latency_ms)
        elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
            logger.error("VERY SLOW REQUEST: %s %s - %s - %.2fms", method, route, status_code, latency_ms)
        elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
            logger.warning("SLOW REQUEST: %s %s - %s - %.2fms", method, route, status_code, latency_ms)
        elif status_code >= 400:
            logger.warning("%s %s - %s - %.2fms", method, route, status_code, latency_ms)
        else:
            logger.info("%s %s - %s - %.2fms", method, route, status_code, latency_ms)
