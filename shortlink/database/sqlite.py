"""SQLite implementation of the link store."""

import asyncio
import logging
import os
import sqlite3
import threading
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple, Callable, TypeVar
from urllib.parse import urlparse

from .base import LinkStoreBase
from .models import ShortLink
from ..common.timeutil import ensure_utc, utc_now
from ..errors import ConflictError, NotFoundError, StoreError


T = TypeVar("T")

MEMORY_PATH = ":memory:"


class SQLiteLinkStore(LinkStoreBase):
    """SQLite implementation of link store operations.

    One connection is shared by all requests and guarded by a lock; calls run
    in worker threads so the event loop is never blocked on disk I/O.
    Timestamps are stored as fixed-width ISO-8601 UTC strings, which sort
    chronologically.
    """

    backend_name = "sqlite"

    CREATE_TABLES_SQL = """
    CREATE TABLE IF NOT EXISTS short_links (
        code TEXT PRIMARY KEY,
        original_url TEXT NOT NULL,
        created_at TEXT NOT NULL,
        expires_at TEXT,
        click_count INTEGER NOT NULL DEFAULT 0 CHECK (click_count >= 0)
    );
    CREATE TABLE IF NOT EXISTS click_events (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        code TEXT NOT NULL REFERENCES short_links (code) ON DELETE CASCADE,
        clicked_at TEXT NOT NULL,
        source_ip TEXT NOT NULL
    );
    CREATE INDEX IF NOT EXISTS idx_click_events_code ON click_events (code, clicked_at, id);
    CREATE INDEX IF NOT EXISTS idx_short_links_created_at ON short_links (created_at);
    CREATE INDEX IF NOT EXISTS idx_short_links_expires_at ON short_links (expires_at);
    """

    def __init__(
        self,
        db_config: str,
        create_tables: bool = True,
        timeout_seconds: int = 30,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize SQLite store.

        Args:
            db_config: Connection string (sqlite:///relative.db, sqlite:////abs.db or sqlite:///:memory:)
            create_tables: Create tables on first connection
            timeout_seconds: How long to wait on a locked database file
            logger: Optional logger instance
        """
        super().__init__(db_config)

        self.logger = logger or logging.getLogger(__name__)
        self.path = self._parse_connection_string(db_config)
        self.timeout_seconds = timeout_seconds
        self._should_create_tables = create_tables

        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    @staticmethod
    def _parse_connection_string(db_config: str) -> str:
        """Extract the database file path from a sqlite:// URL."""
        parsed = urlparse(db_config)
        if parsed.scheme != "sqlite":
            raise ValueError(f"Not a sqlite URL: {db_config}")

        path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
        return path or MEMORY_PATH

    def _connect(self) -> sqlite3.Connection:
        """Open the shared connection on first use. Caller holds the lock."""
        if self._conn is not None:
            return self._conn

        if self.path != MEMORY_PATH:
            os.makedirs(os.path.dirname(os.path.abspath(self.path)), exist_ok=True)

        conn = sqlite3.connect(self.path, timeout=self.timeout_seconds, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        if self.path != MEMORY_PATH:
            conn.execute("PRAGMA journal_mode = WAL")

        if self._should_create_tables:
            self.logger.info(f"Creating link tables if not exist in {self.path}")
            conn.executescript(self.CREATE_TABLES_SQL)

        self.logger.debug(f"Opened SQLite database {self.path}")
        self._conn = conn
        return conn

    def _run_locked(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        with self._lock:
            try:
                return operation(self._connect())
            except sqlite3.Error as e:
                self.logger.error(f"SQLite error on {self.path}: {e}")
                raise StoreError(f"Storage error: {e}") from e

    async def _run(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self._run_locked, operation)

    @staticmethod
    def _format_ts(value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        return ensure_utc(value).isoformat(timespec="microseconds")

    @staticmethod
    def _parse_ts(value: Optional[str]) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(datetime.fromisoformat(value))

    def _row_to_link(self, row: sqlite3.Row) -> ShortLink:
        return ShortLink(
            code=row["code"],
            original_url=row["original_url"],
            created_at=self._parse_ts(row["created_at"]),
            expires_at=self._parse_ts(row["expires_at"]),
            click_count=row["click_count"],
        )

    async def initialize(self) -> None:
        """Open the database, creating tables when enabled."""
        await self._run(lambda conn: None)

    async def create(
        self,
        original_url: str,
        code: str,
        expires_at: Optional[datetime] = None,
        created_at: Optional[datetime] = None,
    ) -> ShortLink:
        link = ShortLink(
            code=code,
            original_url=original_url,
            created_at=ensure_utc(created_at) or utc_now(),
            expires_at=ensure_utc(expires_at),
            click_count=0,
        )

        def _insert(conn: sqlite3.Connection) -> ShortLink:
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO short_links (code, original_url, created_at, expires_at, click_count)
                        VALUES (?, ?, ?, ?, 0)
                        """,
                        (code, original_url, self._format_ts(link.created_at), self._format_ts(link.expires_at)),
                    )
            except sqlite3.IntegrityError:
                raise ConflictError(f"Short code '{code}' already exists")
            return link

        result = await self._run(_insert)
        self.logger.debug(f"Stored short link: {code} -> {original_url}")
        return result

    async def get(self, code: str) -> ShortLink:
        row = await self._run(
            lambda conn: conn.execute(
                "SELECT code, original_url, created_at, expires_at, click_count FROM short_links WHERE code = ?",
                (code,),
            ).fetchone()
        )
        if row is None:
            raise NotFoundError(f"Short code '{code}' not found")
        return self._row_to_link(row)

    async def code_exists(self, code: str) -> bool:
        row = await self._run(
            lambda conn: conn.execute("SELECT 1 FROM short_links WHERE code = ?", (code,)).fetchone()
        )
        return row is not None

    async def increment_clicks(self, code: str) -> int:
        def _increment(conn: sqlite3.Connection) -> int:
            with conn:
                cursor = conn.execute(
                    "UPDATE short_links SET click_count = click_count + 1 WHERE code = ?", (code,)
                )
                if cursor.rowcount == 0:
                    raise NotFoundError(f"Short code '{code}' not found")
                row = conn.execute("SELECT click_count FROM short_links WHERE code = ?", (code,)).fetchone()
            return row["click_count"]

        return await self._run(_increment)

    async def record_click(self, code: str, source_ip: str, timestamp: datetime) -> int:
        clicked_at = self._format_ts(timestamp)

        def _record(conn: sqlite3.Connection) -> int:
            # Counter and event commit together; any failure rolls both back
            with conn:
                cursor = conn.execute(
                    "UPDATE short_links SET click_count = click_count + 1 WHERE code = ?", (code,)
                )
                if cursor.rowcount == 0:
                    raise NotFoundError(f"Short code '{code}' not found")
                conn.execute(
                    "INSERT INTO click_events (code, clicked_at, source_ip) VALUES (?, ?, ?)",
                    (code, clicked_at, source_ip),
                )
                row = conn.execute("SELECT click_count FROM short_links WHERE code = ?", (code,)).fetchone()
            return row["click_count"]

        count = await self._run(_record)
        self.logger.debug(f"Recorded click for {code} from {source_ip}: {count}")
        return count

    async def get_analytics(self, code: str, limit: Optional[int] = None) -> Tuple[int, List[str]]:
        def _read(conn: sqlite3.Connection) -> Optional[Tuple[int, List[str]]]:
            row = conn.execute("SELECT click_count FROM short_links WHERE code = ?", (code,)).fetchone()
            if row is None:
                return None
            rows = conn.execute(
                """
                SELECT source_ip FROM click_events
                WHERE code = ?
                ORDER BY clicked_at DESC, id DESC
                LIMIT ?
                """,
                (code, -1 if limit is None else limit),
            ).fetchall()
            return row["click_count"], [r["source_ip"] for r in rows]

        result = await self._run(_read)
        if result is None:
            raise NotFoundError(f"Short code '{code}' not found")
        return result

    async def list_recent(self, limit: int = 100) -> List[ShortLink]:
        rows = await self._run(
            lambda conn: conn.execute(
                """
                SELECT code, original_url, created_at, expires_at, click_count
                FROM short_links
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
        )
        return [self._row_to_link(row) for row in rows]

    async def sweep_expired(self, before: datetime) -> List[str]:
        cutoff = self._format_ts(before)

        def _sweep(conn: sqlite3.Connection) -> List[str]:
            with conn:
                rows = conn.execute(
                    "SELECT code FROM short_links WHERE expires_at IS NOT NULL AND expires_at <= ?",
                    (cutoff,),
                ).fetchall()
                codes = [row["code"] for row in rows]
                conn.executemany("DELETE FROM click_events WHERE code = ?", [(c,) for c in codes])
                conn.executemany("DELETE FROM short_links WHERE code = ?", [(c,) for c in codes])
            return codes

        deleted = await self._run(_sweep)
        if deleted:
            self.logger.info(f"Swept {len(deleted)} expired links (expired before {cutoff})")
        return deleted

    async def get_statistics(self) -> Dict[str, Any]:
        def _stats(conn: sqlite3.Connection) -> Dict[str, Any]:
            row = conn.execute(
                "SELECT COUNT(*) AS total, COALESCE(SUM(click_count), 0) AS clicks FROM short_links"
            ).fetchone()
            return {
                "total_links": row["total"],
                "total_clicks": row["clicks"],
                "database": self.backend_name,
            }

        return await self._run(_stats)

    async def health_check(self) -> bool:
        try:
            await self._run(lambda conn: conn.execute("SELECT 1").fetchone())
            return True
        except StoreError as e:
            self.logger.error(f"Health check failed: {e}")
            return False

    async def close(self) -> None:
        def _close() -> None:
            with self._lock:
                if self._conn is not None:
                    self._conn.close()
                    self._conn = None
                    self.logger.debug(f"Closed SQLite database {self.path}")

        await asyncio.to_thread(_close)
