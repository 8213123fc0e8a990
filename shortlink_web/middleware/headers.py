"""Forwarded headers middleware."""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable

from shortlink.common.headers import get_client_ip


class ForwardedHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to resolve the client address from X-Forwarded-For or the peer."""

    async def dispatch(self, request: Request, call_next: Callable):
        """Store the resolved client IP on request state."""
        config = getattr(request.app.state, "config", None)
        request.state.client_ip = get_client_ip(
            dict(request.headers),
            peer_host=request.client.host if request.client else None,
            trust_forwarded=getattr(config, "trust_forwarded_headers", True),
        )

        response = await call_next(request)
        return response
