"""Abstract base class for link store implementations."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any, Tuple
from datetime import datetime

from .models import ShortLink


class LinkStoreBase(ABC):
    """Abstract base class for link store operations.

    Implementations must make `record_click` a single transaction: the click
    event is appended and the link's counter incremented together, or neither
    happens.
    """

    backend_name = "base"

    def __init__(self, db_config: str):
        """Initialize store.

        Args:
            db_config: Database connection string
        """
        self.db_config = db_config

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables if table creation is enabled."""
        pass

    @abstractmethod
    async def create(
        self,
        original_url: str,
        code: str,
        expires_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> ShortLink:
        """Create a new short link.

        Args:
            original_url: The original long URL
            code: The short code to use
            expires_at: Optional expiry timestamp
            created_at: Optional creation timestamp (defaults to now)

        Returns:
            The stored link

        Raises:
            ConflictError: If the code already exists
        """
        pass

    @abstractmethod
    async def get(self, code: str) -> ShortLink:
        """Get the link for a short code.

        Raises:
            NotFoundError: If the code does not exist
        """
        pass

    @abstractmethod
    async def code_exists(self, code: str) -> bool:
        """Check if a short code already exists."""
        pass

    @abstractmethod
    async def increment_clicks(self, code: str) -> int:
        """Atomically increment the click count for a short code.

        Returns:
            The new click count

        Raises:
            NotFoundError: If the code does not exist
        """
        pass

    @abstractmethod
    async def record_click(self, code: str, source_ip: str, timestamp: datetime) -> int:
        """Append a click event and increment the click count in one transaction.

        Args:
            code: The short code that was accessed
            source_ip: Address the access came from
            timestamp: When the access happened

        Returns:
            The new click count

        Raises:
            NotFoundError: If the code does not exist
        """
        pass

    @abstractmethod
    async def get_analytics(self, code: str, limit: Optional[int] = None) -> Tuple[int, List[str]]:
        """Read click count and source IPs for a short code as one snapshot.

        Args:
            code: The short code
            limit: Optional cap on the number of IPs returned

        Returns:
            Tuple of (click_count, ip_addresses) with the most recent IP first

        Raises:
            NotFoundError: If the code does not exist
        """
        pass

    @abstractmethod
    async def list_recent(self, limit: int = 100) -> List[ShortLink]:
        """List recently created links, newest first."""
        pass

    @abstractmethod
    async def sweep_expired(self, before: datetime) -> List[str]:
        """Delete links that expired at or before a timestamp, with their clicks.

        Returns:
            Codes of the deleted links
        """
        pass

    @abstractmethod
    async def get_statistics(self) -> Dict[str, Any]:
        """Get store statistics.

        Returns:
            Dictionary with total_links, total_clicks, database
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is reachable."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass
