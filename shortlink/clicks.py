"""Click recording for short links."""

import logging
from datetime import datetime
from typing import Optional

from .common.timeutil import ensure_utc, utc_now
from .database.base import LinkStoreBase
from .database.models import ClickEvent


UNKNOWN_IP = "unknown"


class ClickRecorder:
    """Appends click events and keeps each link's counter in step with them."""

    def __init__(self, db: LinkStoreBase, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    async def record(
        self,
        code: str,
        source_ip: Optional[str],
        timestamp: Optional[datetime] = None,
    ) -> ClickEvent:
        """Record one access of a short link.

        The event append and the counter increment happen in a single store
        transaction.

        Args:
            code: The short code that was accessed
            source_ip: Client address ("unknown" when missing)
            timestamp: Access time (defaults to now, UTC)

        Returns:
            The recorded click event

        Raises:
            NotFoundError: If the code does not exist
            StoreError: If the store write fails
        """
        event = ClickEvent(
            code=code,
            timestamp=ensure_utc(timestamp) or utc_now(),
            source_ip=(source_ip or "").strip() or UNKNOWN_IP,
        )
        count = await self.db.record_click(event.code, event.source_ip, event.timestamp)
        self.logger.debug(f"Click #{count} on {code} from {event.source_ip}")
        return event
