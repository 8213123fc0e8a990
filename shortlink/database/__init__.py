"""Storage layer for short links."""

import logging
from typing import Optional
from urllib.parse import urlparse

from .base import LinkStoreBase
from .cache import RedisCache
from .models import Analytics, ClickEvent, ShortLink
from .postgres import PostgresLinkStore
from .sqlite import SQLiteLinkStore


def create_store(
    database_url: str,
    create_tables: bool = True,
    pool_max_size: int = 10,
    logger: Optional[logging.Logger] = None,
) -> LinkStoreBase:
    """Build the store matching a database URL.

    sqlite:// URLs give a file-backed SQLite store (zero configuration);
    postgres:// and postgresql:// URLs give the asyncpg-backed store.

    Raises:
        ValueError: If the URL scheme is not supported
    """
    scheme = urlparse(database_url).scheme
    if scheme == "sqlite":
        return SQLiteLinkStore(database_url, create_tables=create_tables, logger=logger)
    if scheme in ("postgres", "postgresql"):
        return PostgresLinkStore(
            database_url,
            create_tables=create_tables,
            pool_max_size=pool_max_size,
            logger=logger,
        )
    raise ValueError(f"Unsupported database URL scheme: '{scheme}'")


__all__ = [
    "LinkStoreBase",
    "SQLiteLinkStore",
    "PostgresLinkStore",
    "RedisCache",
    "ShortLink",
    "ClickEvent",
    "Analytics",
    "create_store",
]
