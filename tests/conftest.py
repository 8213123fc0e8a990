"""Pytest configuration and fixtures."""

import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport

from config import Config
from shortlink.database.sqlite import SQLiteLinkStore
from shortlink.service import ShortLinkService
from shortlink.shortcode import ShortCodeGenerator
from shortlink.common.logging_config import setup_logging
from shortlink_web import create_app


class MutableClock:
    """Clock whose current time tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path}/links.db"


@pytest.fixture
async def test_db(db_url, logger) -> AsyncGenerator[SQLiteLinkStore, None]:
    """Create test database instance."""
    db = SQLiteLinkStore(db_config=db_url, logger=logger)
    await db.initialize()

    yield db

    await db.close()


@pytest.fixture
def short_code_generator():
    """Create short code generator."""
    return ShortCodeGenerator(default_length=6)


@pytest.fixture
def clock():
    return MutableClock(datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
async def service(test_db, short_code_generator, logger) -> ShortLinkService:
    """Create service instance."""
    return ShortLinkService(
        db=test_db,
        cache=None,  # No cache for tests
        short_code_generator=short_code_generator,
        logger=logger,
    )


@pytest.fixture
async def clocked_service(test_db, short_code_generator, logger, clock) -> ShortLinkService:
    """Service whose notion of now is controlled by the clock fixture."""
    return ShortLinkService(
        db=test_db,
        cache=None,
        short_code_generator=short_code_generator,
        logger=logger,
        clock=clock,
    )


@pytest.fixture
def test_config(db_url) -> Config:
    return Config(
        database_url=db_url,
        base_url="http://testserver",
        redis_url=None,
    )


@pytest.fixture
async def app(test_db, service, test_config):
    """Create test FastAPI app."""
    return create_app(
        db_instance=test_db,
        cache_instance=None,
        service_instance=service,
        config=test_config,
    )


@pytest.fixture
async def client(app):
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]
