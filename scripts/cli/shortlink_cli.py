#!/usr/bin/env python3
"""
Command-line interface for the short-link service.

Usage:
    python shortlink_cli.py shorten <url> [--alias ALIAS] [--expires-at ISO_TIME]
    python shortlink_cli.py info <code>
    python shortlink_cli.py analytics <code> [--limit N]
    python shortlink_cli.py list [--limit N]
    python shortlink_cli.py sweep [--grace-days N]
    python shortlink_cli.py health
"""

import argparse
import asyncio
import json
import sys
import os
from typing import Optional, List
from datetime import datetime, timedelta

from shortlink.database import create_store
from shortlink.database.cache import RedisCache
from shortlink.errors import ShortLinkError
from shortlink.service import ShortLinkService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.common.logging_config import setup_logging


DEFAULT_DATABASE_URL = "sqlite:///./data/shortlinks.db"


def _print_json(payload: dict, error: bool = False) -> None:
    print(json.dumps(payload, indent=2, default=str), file=sys.stderr if error else sys.stdout)


class ShortLinkCLI:
    """Command-line interface for the short-link service."""

    def __init__(self, db_url: str, redis_url: Optional[str] = None, verbose: bool = False):
        """Initialize CLI."""
        self.db_url = db_url
        self.redis_url = redis_url
        self.verbose = verbose
        self.logger = setup_logging(level="DEBUG" if verbose else "WARNING")
        self.db = None
        self.cache = None
        self.service = None

    async def initialize(self):
        """Initialize store and service."""
        self.logger.info("Initializing short-link store...")

        self.db = create_store(self.db_url, logger=self.logger)
        await self.db.initialize()

        # Initialize cache (optional)
        if self.redis_url:
            self.cache = RedisCache(
                redis_url=self.redis_url,
                logger=self.logger,
            )
            await self.cache.connect()

        self.service = ShortLinkService(
            db=self.db,
            cache=self.cache,
            short_code_generator=ShortCodeGenerator(default_length=6),
            logger=self.logger,
        )

        self.logger.info("Initialization complete")

    async def cleanup(self):
        """Cleanup resources."""
        if self.service:
            await self.service.close()

    async def shorten(self, url: str, alias: Optional[str] = None, expires_at: Optional[datetime] = None):
        """Shorten a URL."""
        try:
            link = await self.service.shorten(url, alias=alias, expires_at=expires_at)
        except ShortLinkError as e:
            _print_json({"success": False, "error": e.message}, error=True)
            return 1

        _print_json({
            "success": True,
            **link.to_dict(),
            "message": f"Successfully shortened URL to: {link.code}",
        })
        return 0

    async def info(self, code: str):
        """Show a link without counting a click."""
        try:
            link = await self.service.get_info(code)
        except ShortLinkError as e:
            _print_json({"success": False, "error": e.message}, error=True)
            return 1

        _print_json({"success": True, **link.to_dict(), "expired": link.is_expired()})
        return 0

    async def analytics(self, code: str, limit: Optional[int] = None):
        """Show click analytics for a link."""
        try:
            result = await self.service.get_analytics(code, limit=limit)
        except ShortLinkError as e:
            _print_json({"success": False, "error": e.message}, error=True)
            return 1

        _print_json({
            "success": True,
            "code": result.code,
            "click_count": result.click_count,
            "ip_addresses": result.ip_addresses,
        })
        return 0

    async def list_links(self, limit: int = 100):
        """List recent links."""
        links = await self.service.list_recent(limit)

        _print_json({
            "success": True,
            "count": len(links),
            "links": [link.to_dict() for link in links],
        })
        return 0

    async def sweep(self, grace_days: float = 0):
        """Delete expired links and their clicks."""
        deleted = await self.service.sweep_expired(grace=timedelta(days=grace_days))

        _print_json({"success": True, "deleted": deleted})
        return 0

    async def health(self):
        """Check service health."""
        health_status = await self.service.health_check()
        stats = await self.service.get_statistics()

        _print_json({
            "success": True,
            "health": health_status,
            "statistics": stats,
        })

        return 0 if health_status["overall"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Short-link CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL
  %(prog)s shorten https://example.com/long/url

  # Shorten with alias and expiry
  %(prog)s shorten https://example.com/long/url --alias mylink --expires-at 2030-01-01T00:00

  # Show link info and analytics
  %(prog)s info mylink
  %(prog)s analytics mylink

  # List recent links
  %(prog)s list --limit 10

  # Delete links expired more than a week ago
  %(prog)s sweep --grace-days 7
        """
    )

    parser.add_argument(
        "--db-url",
        default=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        help=f"Store URL (default: from DATABASE_URL env or {DEFAULT_DATABASE_URL})"
    )

    parser.add_argument(
        "--redis-url",
        default=os.getenv("REDIS_URL"),
        help="Redis connection URL (optional, default: from REDIS_URL env)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--alias", help="Requested short code")
    shorten_parser.add_argument(
        "--expires-at",
        type=datetime.fromisoformat,
        help="Expiry as ISO-8601 (naive values are UTC)",
    )

    info_parser = subparsers.add_parser("info", help="Show link information")
    info_parser.add_argument("code", help="Short code to look up")

    analytics_parser = subparsers.add_parser("analytics", help="Show click analytics")
    analytics_parser.add_argument("code", help="Short code to report on")
    analytics_parser.add_argument("--limit", type=int, default=None, help="Maximum number of IPs")

    list_parser = subparsers.add_parser("list", help="List recent links")
    list_parser.add_argument("--limit", type=int, default=100, help="Maximum number to return")

    sweep_parser = subparsers.add_parser("sweep", help="Delete expired links")
    sweep_parser.add_argument("--grace-days", type=float, default=0, help="Keep links expired less than this long")

    subparsers.add_parser("health", help="Check service health")

    return parser


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    cli = ShortLinkCLI(
        db_url=args.db_url,
        redis_url=args.redis_url,
        verbose=args.verbose,
    )

    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url, args.alias, args.expires_at)
        elif args.command == "info":
            return await cli.info(args.code)
        elif args.command == "analytics":
            return await cli.analytics(args.code, args.limit)
        elif args.command == "list":
            return await cli.list_links(args.limit)
        elif args.command == "sweep":
            return await cli.sweep(args.grace_days)
        elif args.command == "health":
            return await cli.health()
        else:
            parser.print_help()
            return 1

    finally:
        await cli.cleanup()


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
