"""Tests for API endpoints."""

import pytest
from datetime import datetime, timedelta, timezone
from httpx import AsyncClient, ASGITransport

from shortlink.shortcode import ShortCodeGenerator
from shortlink_web import create_app
from config import Config


@pytest.fixture
async def clocked_client(test_db, clocked_service, test_config):
    """Client for an app whose service runs on the test clock."""
    app = create_app(
        db_instance=test_db,
        cache_instance=None,
        service_instance=clocked_service,
        config=test_config,
    )
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


async def shorten(client, url, **extra):
    response = await client.post("/shorten", json={"originalUrl": url, **extra})
    assert response.status_code == 200, response.text
    return response.json()


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.asyncio
class TestShortenEndpoint:
    """Test POST /shorten."""

    async def test_shorten_url(self, client, sample_urls):
        response = await client.post("/shorten", json={"originalUrl": sample_urls[0]})

        assert response.status_code == 200
        data = response.json()
        assert set(data) == {"url", "shortUrl", "originalUrl", "createdAt", "expiresAt"}
        assert len(data["url"]) == 6
        assert data["originalUrl"] == sample_urls[0]
        assert data["shortUrl"] == f"http://testserver/{data['url']}"
        assert data["expiresAt"] is None
        assert parse_ts(data["createdAt"]).tzinfo is not None

    async def test_shorten_with_alias(self, client, sample_urls):
        data = await shorten(client, sample_urls[0], alias="test123")

        assert data["url"] == "test123"
        assert data["shortUrl"] == "http://testserver/test123"

    async def test_empty_alias_is_ignored(self, client, sample_urls):
        data = await shorten(client, sample_urls[0], alias="", expiresAt="")

        assert len(data["url"]) == 6
        assert data["expiresAt"] is None

    async def test_shorten_with_expiry(self, client, sample_urls):
        expires_at = datetime.now(timezone.utc).replace(microsecond=0) + timedelta(days=7)

        data = await shorten(client, sample_urls[0], expiresAt=expires_at.isoformat())

        assert parse_ts(data["expiresAt"]) == expires_at

    async def test_naive_expiry_is_utc(self, clocked_client, sample_urls):
        data = await shorten(clocked_client, sample_urls[0], expiresAt="2030-03-30T23:59")

        assert parse_ts(data["expiresAt"]) == datetime(2030, 3, 30, 23, 59, tzinfo=timezone.utc)

    async def test_shorten_behind_proxy(self, client, sample_urls):
        response = await client.post(
            "/shorten",
            json={"originalUrl": sample_urls[0], "alias": "proxied"},
            headers={
                "X-Forwarded-Proto": "https",
                "X-Forwarded-Host": "sho.rt",
                "X-Forwarded-Prefix": "/s",
            },
        )

        assert response.json()["shortUrl"] == "https://sho.rt/s/proxied"

    @pytest.mark.parametrize("payload", [
        {"originalUrl": "not-a-url"},
        {"originalUrl": "ftp://example.com/file"},
        {"originalUrl": ""},
        {},
        {"originalUrl": "https://example.com", "alias": "bad alias"},
        {"originalUrl": "https://example.com", "alias": "api"},
        {"originalUrl": "https://example.com", "expiresAt": "2000-01-01T00:00:00Z"},
        {"originalUrl": "https://example.com", "expiresAt": "tomorrow"},
        {"originalUrl": "https://example.com", "expiresAt": "9999-12-31T23:00:00-05:00"},
        {"originalUrl": "http://example.com:99999/"},
    ])
    async def test_shorten_rejects_bad_input(self, client, payload):
        response = await client.post("/shorten", json=payload)

        assert response.status_code == 400
        assert set(response.json()) == {"error"}
        assert response.json()["error"]

    async def test_shorten_duplicate_alias(self, client, sample_urls):
        await shorten(client, sample_urls[0], alias="duplicate123")

        response = await client.post(
            "/shorten",
            json={"originalUrl": sample_urls[1], "alias": "duplicate123"},
        )

        assert response.status_code == 409
        assert "already taken" in response.json()["error"]

    async def test_shorten_exhausted(self, client, app, sample_urls):
        class FixedGenerator(ShortCodeGenerator):
            def generate_random(self, length=None):
                return "fixed1"

        app.state.service.generator = FixedGenerator()
        await shorten(client, sample_urls[0])

        response = await client.post("/shorten", json={"originalUrl": sample_urls[1]})

        assert response.status_code == 409
        assert "unique short code" in response.json()["error"]


@pytest.mark.asyncio
class TestRedirectEndpoint:
    """Test GET /{code}."""

    async def test_redirect(self, client, sample_urls):
        data = await shorten(client, sample_urls[1])

        response = await client.get(f"/{data['url']}")

        assert response.status_code == 302
        assert response.headers["location"] == sample_urls[1]

    async def test_redirect_not_found(self, client):
        response = await client.get("/nonexistent")

        assert response.status_code == 404
        assert response.json() == {"error": "Short code 'nonexistent' not found"}

    async def test_redirect_expired(self, clocked_client, clock, sample_urls):
        expires_at = clock.now + timedelta(minutes=10)
        data = await shorten(clocked_client, sample_urls[0], expiresAt=expires_at.isoformat())

        assert (await clocked_client.get(f"/{data['url']}")).status_code == 302

        clock.advance(minutes=10)
        response = await clocked_client.get(f"/{data['url']}")

        assert response.status_code == 410
        assert "expired" in response.json()["error"]

        # Info still answers for an expired link
        info = await clocked_client.get(f"/info/{data['url']}")
        assert info.status_code == 200
        assert info.json()["clickCount"] == 1

    async def test_redirect_records_forwarded_ip(self, client, sample_urls):
        data = await shorten(client, sample_urls[0])

        await client.get(f"/{data['url']}", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})
        await client.get(f"/{data['url']}")

        analytics = (await client.get(f"/analytics/{data['url']}")).json()
        # ASGITransport reports the peer as 127.0.0.1
        assert analytics == {"clickCount": 2, "ipAddresses": ["127.0.0.1", "203.0.113.9"]}

    async def test_forwarded_ip_ignored_when_untrusted(self, test_db, service, db_url, sample_urls):
        config = Config(database_url=db_url, trust_forwarded_headers=False)
        app = create_app(db_instance=test_db, cache_instance=None, service_instance=service, config=config)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
            data = await shorten(client, sample_urls[0])
            await client.get(f"/{data['url']}", headers={"X-Forwarded-For": "203.0.113.9"})
            analytics = (await client.get(f"/analytics/{data['url']}")).json()

        assert analytics["ipAddresses"] == ["127.0.0.1"]


@pytest.mark.asyncio
class TestInfoAndAnalyticsEndpoints:
    """Test GET /info/{code} and GET /analytics/{code}."""

    async def test_get_info(self, client, sample_urls):
        data = await shorten(client, sample_urls[0])

        response = await client.get(f"/info/{data['url']}")

        assert response.status_code == 200
        info = response.json()
        assert info["originalUrl"] == sample_urls[0]
        assert info["clickCount"] == 0
        assert info["createdAt"] == data["createdAt"]
        assert info["expiresAt"] is None

    async def test_info_has_no_side_effect(self, client, sample_urls):
        data = await shorten(client, sample_urls[0])

        for _ in range(3):
            await client.get(f"/info/{data['url']}")

        assert (await client.get(f"/analytics/{data['url']}")).json()["clickCount"] == 0

    async def test_click_count_matches_redirects(self, client, sample_urls):
        data = await shorten(client, sample_urls[0])

        for _ in range(4):
            await client.get(f"/{data['url']}")

        info = (await client.get(f"/info/{data['url']}")).json()
        analytics = (await client.get(f"/analytics/{data['url']}")).json()
        assert info["clickCount"] == 4
        assert analytics["clickCount"] == 4
        assert len(analytics["ipAddresses"]) == 4

    async def test_info_not_found(self, client):
        response = await client.get("/info/nonexistent")

        assert response.status_code == 404
        assert "error" in response.json()

    async def test_analytics_not_found(self, client):
        response = await client.get("/analytics/nonexistent")

        assert response.status_code == 404
        assert "error" in response.json()


@pytest.mark.asyncio
class TestOperationalEndpoints:
    """Test /api routes."""

    async def test_health_check(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert "timestamp" in data

    async def test_statistics(self, client, sample_urls):
        data = await shorten(client, sample_urls[0])
        await client.get(f"/{data['url']}")

        response = await client.get("/api/stats")

        assert response.status_code == 200
        assert response.json() == {
            "totalLinks": 1,
            "totalClicks": 1,
            "database": "sqlite",
            "cacheEnabled": False,
            "customCodesEnabled": True,
        }

    async def test_list_links(self, client, sample_urls):
        for url in sample_urls:
            await shorten(client, url)

        response = await client.get("/api/links", params={"limit": 2})

        assert response.status_code == 200
        assert len(response.json()) == 2
        assert {"code", "originalUrl", "createdAt", "expiresAt", "clickCount"} == set(response.json()[0])

    async def test_list_links_bad_limit(self, client):
        response = await client.get("/api/links", params={"limit": 0})

        assert response.status_code == 400
        assert "error" in response.json()

    async def test_unexpected_error_is_json(self, app, monkeypatch):
        async def broken_get_info(code):
            raise RuntimeError("boom")

        monkeypatch.setattr(app.state.service, "get_info", broken_get_info)
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
            response = await ac.get("/info/abc123")

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}

    async def test_unknown_api_path(self, client):
        response = await client.get("/api/nothing/here")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    async def test_response_time_header(self, client):
        response = await client.get("/api/health")

        assert response.headers["x-response-time"].endswith("ms")

    async def test_openapi_docs(self, client):
        response = await client.get("/api/openapi.json")

        assert response.status_code == 200
        assert "/shorten" in response.json()["paths"]

    async def test_cors_preflight(self, client):
        response = await client.options(
            "/shorten",
            headers={
                "Origin": "http://frontend.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers
