"""Business logic service for short links."""

import logging
from typing import Optional, Dict, Any, List, Callable
from datetime import datetime, timedelta

from .shortcode import ShortCodeGenerator
from .clicks import ClickRecorder
from .database.base import LinkStoreBase
from .database.cache import RedisCache
from .database.models import Analytics, ShortLink
from .common.timeutil import ensure_utc, utc_now
from .common.validators import is_valid_url, is_valid_short_code, is_valid_expiry, is_reserved
from .errors import ConflictError, ExhaustedError, ExpiredError, NotFoundError, ValidationError


class ShortLinkService:
    """Service layer for shortening, redirecting and click analytics."""

    def __init__(
        self,
        db: LinkStoreBase,
        cache: Optional[RedisCache] = None,
        short_code_generator: Optional[ShortCodeGenerator] = None,
        click_recorder: Optional[ClickRecorder] = None,
        logger: Optional[logging.Logger] = None,
        enable_custom_codes: bool = True,
        max_collision_retries: int = 5,
        alias_min_length: int = 4,
        alias_max_length: int = 32,
        max_expiry_days: int = 3650,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize short link service.

        Args:
            db: Link store
            cache: Optional cache for redirect lookups
            short_code_generator: Optional short code generator
            click_recorder: Optional click recorder (defaults to one over db)
            logger: Optional logger
            enable_custom_codes: Whether to allow aliases
            max_collision_retries: Random code attempts before giving up
            alias_min_length: Minimum alias length
            alias_max_length: Maximum alias length
            max_expiry_days: How far ahead expiry may be set (0 = unbounded)
            clock: Returns the current UTC time
        """
        self.db = db
        self.cache = cache
        self.generator = short_code_generator or ShortCodeGenerator()
        self.logger = logger or logging.getLogger(__name__)
        self.clicks = click_recorder or ClickRecorder(db, logger=self.logger)
        self.enable_custom_codes = enable_custom_codes
        self.max_collision_retries = max_collision_retries
        self.alias_min_length = alias_min_length
        self.alias_max_length = alias_max_length
        self.max_expiry_days = max_expiry_days
        self.clock = clock or utc_now

    async def shorten(
        self,
        original_url: str,
        alias: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> ShortLink:
        """Create a new short link.

        Args:
            original_url: The original long URL
            alias: Optional requested code
            expires_at: Optional expiry (naive values are UTC)

        Returns:
            The created link

        Raises:
            ValidationError: If the URL, alias or expiry is malformed
            ConflictError: If the alias is already taken
            ExhaustedError: If no free random code was found
        """
        is_valid, error = is_valid_url(original_url)
        if not is_valid:
            raise ValidationError(f"Invalid URL: {error}")

        now = self.clock()
        is_valid, error = is_valid_expiry(expires_at, now, self.max_expiry_days)
        if not is_valid:
            raise ValidationError(f"Invalid expiry: {error}")
        expires_at = ensure_utc(expires_at)

        alias = (alias or "").strip() or None
        if alias:
            if not self.enable_custom_codes:
                raise ValidationError("Custom short codes are not enabled")

            is_valid, error = is_valid_short_code(alias, self.alias_min_length, self.alias_max_length)
            if not is_valid:
                raise ValidationError(f"Invalid alias: {error}")

            try:
                link = await self.db.create(original_url, alias, expires_at, created_at=now)
            except ConflictError:
                self.logger.warning(f"Alias already taken: {alias}")
                raise ConflictError(f"Alias '{alias}' is already taken")
        else:
            link = await self._create_with_random_code(original_url, expires_at, now)

        if self.cache:
            await self.cache.set_link(link)

        self.logger.info(f"Created short link: {link.code} -> {original_url}")
        return link

    async def resolve(self, code: str, source_ip: Optional[str] = None) -> str:
        """Resolve a short code for a redirect and record the click.

        Args:
            code: The short code to resolve
            source_ip: Client address recorded with the click

        Returns:
            The original URL

        Raises:
            NotFoundError: If the code does not exist
            ExpiredError: If the link is past its expiry
        """
        now = self.clock()

        cached = await self.cache.get_link(code) if self.cache else None
        if cached:
            self.logger.debug(f"Cache hit for {code}")
            original_url, expires_at = cached["original_url"], cached["expires_at"]
        else:
            link = await self._get_link(code)
            original_url, expires_at = link.original_url, link.expires_at
            if self.cache:
                await self.cache.set_link(link)

        if expires_at is not None and expires_at <= now:
            self.logger.info(f"Rejected expired short link: {code}")
            raise ExpiredError(f"Short link '{code}' has expired")

        try:
            await self.clicks.record(code, source_ip, now)
        except NotFoundError:
            # Swept after it was cached
            if self.cache:
                await self.cache.delete_link(code)
            self.logger.warning(f"Short code not found: {code}")
            raise

        self.logger.debug(f"Resolved {code} -> {original_url}")
        return original_url

    async def get_info(self, code: str) -> ShortLink:
        """Get a link without recording a click. Expired links are still returned."""
        return await self._get_link(code)

    async def get_analytics(self, code: str, limit: Optional[int] = None) -> Analytics:
        """Get click count and source IPs (most recent first) for a link.

        Args:
            code: The short code
            limit: Optional cap on the number of IPs returned

        Raises:
            NotFoundError: If the code does not exist
        """
        try:
            click_count, ip_addresses = await self.db.get_analytics(code, limit=limit)
        except NotFoundError:
            self.logger.warning(f"Short code not found: {code}")
            raise
        return Analytics(code=code, click_count=click_count, ip_addresses=ip_addresses)

    async def list_recent(self, limit: int = 100) -> List[ShortLink]:
        """List recently created links, newest first."""
        return await self.db.list_recent(limit)

    async def sweep_expired(self, grace: timedelta = timedelta(0)) -> int:
        """Delete links that expired more than `grace` ago, with their clicks.

        Returns:
            Number of links deleted
        """
        deleted = await self.db.sweep_expired(self.clock() - grace)

        if self.cache:
            for code in deleted:
                await self.cache.delete_link(code)

        return len(deleted)

    async def get_statistics(self) -> Dict[str, Any]:
        """Get service statistics.

        Returns:
            Dictionary with statistics
        """
        db_stats = await self.db.get_statistics()

        return {
            **db_stats,
            "cache_enabled": self.cache is not None and self.cache.enabled,
            "custom_codes_enabled": self.enable_custom_codes,
        }

    async def health_check(self) -> Dict[str, bool]:
        """Perform health check.

        Returns:
            Dictionary with health status
        """
        db_healthy = await self.db.health_check()

        cache_healthy = True
        if self.cache and self.cache.enabled:
            cache_healthy = await self.cache.ping()

        return {
            "database": db_healthy,
            "cache": cache_healthy,
            "overall": db_healthy and cache_healthy,
        }

    async def _get_link(self, code: str) -> ShortLink:
        try:
            return await self.db.get(code)
        except NotFoundError:
            self.logger.warning(f"Short code not found: {code}")
            raise

    async def _create_with_random_code(
        self,
        original_url: str,
        expires_at: Optional[datetime],
        now: datetime,
    ) -> ShortLink:
        """Store a link under a fresh random code, retrying on collision.

        The insert itself is the uniqueness check, so two concurrent requests
        can never be handed the same code.

        Raises:
            ExhaustedError: If every attempt collided
        """
        for attempt in range(1, self.max_collision_retries + 1):
            code = self.generator.generate_random()

            if is_reserved(code):
                self.logger.debug(f"Skipping reserved code on attempt {attempt}: {code}")
                continue

            try:
                link = await self.db.create(original_url, code, expires_at, created_at=now)
            except ConflictError:
                self.logger.debug(f"Code collision on attempt {attempt}: {code}")
                continue

            if attempt > 1:
                self.logger.debug(f"Generated code after {attempt} attempts: {code}")
            return link

        self.logger.error(
            f"No free short code after {self.max_collision_retries} attempts "
            f"(keyspace {self.generator.keyspace_size()})"
        )
        raise ExhaustedError(
            f"Unable to generate a unique short code after {self.max_collision_retries} attempts"
        )

    async def close(self) -> None:
        """Close service connections."""
        await self.db.close()
        if self.cache:
            await self.cache.close()
