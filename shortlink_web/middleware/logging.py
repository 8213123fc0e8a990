"""Access logging middleware."""

import time
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable, Optional

from shortlink.common.logging_config import get_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs one line per request with status, duration and client address.

    Server errors log at ERROR, client errors at WARNING, the rest at INFO.
    """

    def __init__(self, app, logger: Optional[logging.Logger] = None):
        super().__init__(app)
        self.logger = logger or get_logger("web.access")

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        # Set by ForwardedHeadersMiddleware, which runs inside this one
        client_ip = getattr(request.state, "client_ip", None) or "unknown"

        if response.status_code >= 500:
            level = logging.ERROR
        elif response.status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        self.logger.log(
            level,
            f"{request.method} {request.url.path} {response.status_code} "
            f"{duration_ms:.1f}ms client={client_ip}",
        )
        response.headers["X-Response-Time"] = f"{duration_ms:.1f}ms"

        return response
