"""Data models for the link store."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from ..common.timeutil import ensure_utc, utc_now


@dataclass
class ShortLink:
    """Represents a short code mapped to its original URL."""

    code: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    click_count: int = 0

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the link is past its expiry.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            True if expires_at is set and not after now
        """
        if self.expires_at is None:
            return False
        return self.expires_at <= ensure_utc(now or utc_now())

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "code": self.code,
            "original_url": self.original_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "click_count": self.click_count,
        }


@dataclass
class ClickEvent:
    """A single recorded access of a short link."""

    code: str
    timestamp: datetime
    source_ip: str


@dataclass
class Analytics:
    """Click aggregate for one link, read as a single snapshot."""

    code: str
    click_count: int
    ip_addresses: List[str] = field(default_factory=list)
