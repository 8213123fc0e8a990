"""Validation utilities for short links."""

from datetime import datetime, timedelta
from urllib.parse import urlparse
from typing import Optional, Tuple

from .timeutil import ensure_utc
from ..shortcode import ShortCodeGenerator


MAX_URL_LENGTH = 2048

# Path segments the HTTP app routes itself; a code equal to one would be shadowed
RESERVED_WORDS = frozenset({
    "api", "analytics", "info", "shorten", "health", "stats",
    "docs", "redoc", "openapi", "static", "favicon", "robots",
})


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str):
        return False, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
        # Non-numeric or out-of-range ports raise here
        result.port
    except ValueError as e:
        return False, f"Invalid URL format: {str(e)}"

    # Check if scheme is http or https
    if result.scheme not in ["http", "https"]:
        return False, "URL must use http or https protocol"

    # Check if netloc (domain) exists
    if not result.netloc or not result.hostname:
        return False, "URL must have a valid domain"

    return True, ""


def is_reserved(short_code: str) -> bool:
    """Check whether a code collides with a routed path segment."""
    return short_code.lower() in RESERVED_WORDS


def is_valid_short_code(short_code: str, min_length: int = 4, max_length: int = 32) -> Tuple[bool, str]:
    """Validate a requested alias.

    Args:
        short_code: The short code to validate
        min_length: Minimum length for short code
        max_length: Maximum length for short code

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"

    if len(short_code) < min_length:
        return False, f"Short code must be at least {min_length} characters"

    if len(short_code) > max_length:
        return False, f"Short code must be at most {max_length} characters"

    # Only allow alphanumeric characters, hyphens, and underscores
    if not ShortCodeGenerator.is_valid_format(short_code):
        return False, "Short code can only contain letters, numbers, hyphens, and underscores"

    if is_reserved(short_code):
        return False, f"'{short_code}' is a reserved word and cannot be used"

    return True, ""


def is_valid_expiry(
    expires_at: Optional[datetime],
    now: datetime,
    max_expiry_days: int = 0,
) -> Tuple[bool, str]:
    """Validate a requested expiry timestamp.

    Naive timestamps are interpreted as UTC.

    Args:
        expires_at: Requested expiry (None means the link never expires)
        now: Reference time
        max_expiry_days: Upper bound on how far ahead expiry may be (0 = unbounded)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if expires_at is None:
        return True, ""

    try:
        expires_at = ensure_utc(expires_at)
        now = ensure_utc(now)

        if expires_at <= now:
            return False, "Expiry must be in the future"

        if max_expiry_days and expires_at > now + timedelta(days=max_expiry_days):
            return False, f"Expiry must be at most {max_expiry_days} days ahead"
    except OverflowError:
        # UTC conversion or the bound fell outside datetime's range
        return False, "Expiry is out of range"

    return True, ""
