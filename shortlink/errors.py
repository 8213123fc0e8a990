"""
Error classes for the short-link core.

Every error carries the HTTP status the web layer answers with, so the
exception handlers stay a single lookup.
"""

from typing import Optional


class ShortLinkError(Exception):
    """
    Base error class.

    Attributes:
        status_code: HTTP status code used when surfaced over HTTP
        message: Error message
    """
    status_code: int = 500
    message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        """
        Initialize error.

        Args:
            message: Error message (overrides default)
        """
        self.message = message or self.message
        super().__init__(self.message)


class ValidationError(ShortLinkError, ValueError):
    """400 Malformed URL, alias or expiry."""
    status_code = 400
    message = "Validation error"


class ConflictError(ShortLinkError):
    """409 Code or alias already taken."""
    status_code = 409
    message = "Short code already exists"


class NotFoundError(ShortLinkError):
    """404 Unknown code."""
    status_code = 404
    message = "Short code not found"


class ExpiredError(ShortLinkError):
    """410 Link is past its expiry."""
    status_code = 410
    message = "Short link has expired"


class ExhaustedError(ShortLinkError):
    """409 No free code found within the allowed attempts."""
    status_code = 409
    message = "Unable to generate a unique short code"


class StoreError(ShortLinkError):
    """500 Store I/O failure."""
    status_code = 500
    message = "Storage error"
