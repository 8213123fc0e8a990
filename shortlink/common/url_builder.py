"""Public addresses of short links."""

from typing import Dict, Optional

from .headers import build_base_url, get_forwarded_path_prefix


def join_short_url(base_url: str, short_code: str, path_prefix: str = "") -> str:
    """Join base URL, optional prefix and code with single slashes."""
    segments = [base_url.rstrip("/")]

    prefix = path_prefix.strip("/")
    if prefix:
        segments.append(prefix)

    segments.append(short_code)
    return "/".join(segments)


def build_short_url(
    short_code: str,
    headers: Dict[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
    path_prefix: str = "",
) -> str:
    """Build the short URL as seen by the client that created it.

    The host comes from proxy headers, then the request, then configuration.
    A proxy's X-Forwarded-Prefix takes precedence over the configured prefix.

    Args:
        short_code: The short code
        headers: Request headers
        fallback_base_url: Configured base URL
        request_scheme: Request scheme (http/https)
        request_host: Request Host header
        path_prefix: Configured path prefix (e.g., /s)

    Returns:
        Complete short URL
    """
    base_url = build_base_url(
        headers=headers,
        fallback_base_url=fallback_base_url,
        request_scheme=request_scheme,
        request_host=request_host,
    )
    prefix = get_forwarded_path_prefix(headers) or path_prefix
    return join_short_url(base_url, short_code, prefix)
