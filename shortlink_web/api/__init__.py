"""JSON API for short links."""

from .routes import router as api_router, ops_router

__all__ = ["api_router", "ops_router"]
