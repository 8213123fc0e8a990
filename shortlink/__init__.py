"""Core business logic for short links."""

from .shortcode import ShortCodeGenerator
from .clicks import ClickRecorder
from .service import ShortLinkService

__all__ = ["ShortCodeGenerator", "ClickRecorder", "ShortLinkService"]
