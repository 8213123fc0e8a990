#!/usr/bin/env python3
"""
Main entry point for the short-link service.

Concurrency: The server handles multiple connections simultaneously via async I/O
(FastAPI + asyncpg connection pool or thread-offloaded SQLite + redis.asyncio).
Set WORKERS > 1 for multi-process scaling across CPU cores; that needs
PostgreSQL, since each worker opens its own store.

Usage:
    python app.py

Environment variables:
    DATABASE_URL - Store URL (sqlite:///./data/shortlinks.db or postgresql://...)
    CREATE_TABLES - Create tables on startup (default true)
    REDIS_URL - Redis connection URL (optional)
    BASE_URL - Base URL for short links
    PORT - Port to listen on
    WORKERS - Number of uvicorn worker processes (default 1)
    LOG_LEVEL - Logging level
"""

import signal
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from config import load_config
from shortlink.database import create_store
from shortlink.database.cache import RedisCache
from shortlink.service import ShortLinkService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.common.logging_config import setup_logging
from shortlink_web import create_app


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown."""
    config = app.state.config
    logger = app.state.logger

    logger.info("Starting short-link service...")

    db = create_store(
        config.database_url,
        create_tables=config.create_tables,
        pool_max_size=config.db_pool_max_size,
        logger=logger,
    )
    logger.info(f"Opening {db.backend_name} store")
    await db.initialize()

    # Initialize cache (optional)
    if config.redis_url:
        logger.info(f"Connecting to Redis at {config.redis_url}")
        cache = RedisCache(
            redis_url=config.redis_url,
            ttl_seconds=config.cache_ttl_seconds,
            logger=logger,
        )
        await cache.connect()
    else:
        logger.info("Redis caching disabled")
        cache = None

    service = ShortLinkService(
        db=db,
        cache=cache,
        short_code_generator=ShortCodeGenerator(default_length=config.short_code_length),
        logger=logger,
        enable_custom_codes=config.enable_custom_codes,
        max_collision_retries=config.max_collision_retries,
        alias_min_length=config.alias_min_length,
        alias_max_length=config.alias_max_length,
        max_expiry_days=config.max_expiry_days,
    )

    app.state.db = db
    app.state.cache = cache
    app.state.service = service

    logger.info("Service started successfully")

    yield

    logger.info("Shutting down short-link service...")
    await service.close()
    logger.info("Service stopped")


def build_app(config, logger) -> FastAPI:
    """Create the app with instances supplied by the lifespan."""
    app = create_app(
        db_instance=None,  # Set in lifespan
        cache_instance=None,
        service_instance=None,
        config=config,
    )

    app.state.config = config
    app.state.logger = logger

    app.router.lifespan_context = lifespan
    return app


def create_application() -> FastAPI:
    """Application factory for uvicorn worker processes.

    Each worker imports this module, so configuration and logging are set up
    per process.
    """
    config = load_config()
    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )
    return build_app(config, logger)


def main():
    """Main entry point."""
    config = load_config()

    logger = setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        json_format=config.log_json,
    )

    logger.info("Short-link service")
    logger.info(f"Configuration: {config.model_dump(exclude={'database_url', 'redis_url'})}")

    if config.workers > 1:
        # uvicorn only spawns worker processes for an import string
        logger.info(f"Starting {config.workers} workers on {config.host}:{config.port}")
        uvicorn.run(
            "app:create_application",
            factory=True,
            host=config.host,
            port=config.port,
            workers=config.workers,
            log_level=config.log_level.lower(),
            access_log=True,
        )
        return

    app = build_app(config, logger)

    uvicorn_config = uvicorn.Config(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
        access_log=True,
    )

    server = uvicorn.Server(uvicorn_config)

    # Setup signal handlers for graceful shutdown
    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.should_exit = True

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        logger.info(f"Starting server on {config.host}:{config.port}")
        server.run()
    except OSError as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
