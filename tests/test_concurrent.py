"""Tests that the server handles many concurrent requests correctly.

The app is async (FastAPI + thread-offloaded SQLite or asyncpg pool) and can
be run with multiple uvicorn workers. These tests assert that simultaneous
requests succeed and that no click is lost.
"""

import asyncio
import pytest


def assert_all_ok(responses, expected_status=200):
    for i, r in enumerate(responses):
        if isinstance(r, Exception):
            pytest.fail(f"Request {i} raised: {r}")
        assert r.status_code == expected_status, f"Request {i}: status {r.status_code} body={r.text}"


@pytest.mark.asyncio
class TestConcurrentConnections:
    """Prove the server handles many simultaneous requests."""

    async def test_concurrent_health_requests(self, client):
        """Many concurrent GET /api/health requests all succeed."""
        concurrency = 50
        tasks = [client.get("/api/health") for _ in range(concurrency)]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        assert_all_ok(responses)
        for r in responses:
            assert r.json()["status"] == "healthy"

    async def test_concurrent_shorten_requests(self, client):
        """Many concurrent POST /shorten with different URLs; all succeed and codes are unique."""
        concurrency = 30
        urls = [f"https://example.com/page_{i}" for i in range(concurrency)]
        tasks = [
            client.post("/shorten", json={"originalUrl": url})
            for url in urls
        ]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        assert_all_ok(responses)
        short_codes = []
        for i, r in enumerate(responses):
            data = r.json()
            assert data["originalUrl"] == urls[i]
            short_codes.append(data["url"])

        assert len(short_codes) == len(set(short_codes)), "All codes must be unique under concurrency"

    async def test_concurrent_same_alias(self, client):
        """Exactly one of many racing requests for the same alias wins."""
        tasks = [
            client.post("/shorten", json={"originalUrl": f"https://example.com/{i}", "alias": "contested"})
            for i in range(10)
        ]
        responses = await asyncio.gather(*tasks)

        statuses = sorted(r.status_code for r in responses)
        assert statuses == [200] + [409] * 9

        winner = next(r for r in responses if r.status_code == 200).json()
        info = (await client.get("/info/contested")).json()
        assert info["originalUrl"] == winner["originalUrl"]

    async def test_concurrent_redirects_count_every_click(self, client):
        """N simultaneous redirects leave the counter and the event log at exactly N."""
        create_resp = await client.post(
            "/shorten",
            json={"originalUrl": "https://example.com/redirect-target"},
        )
        assert create_resp.status_code == 200
        short_code = create_resp.json()["url"]

        concurrency = 40
        tasks = [
            client.get(f"/{short_code}", headers={"X-Forwarded-For": f"10.0.0.{i}"})
            for i in range(concurrency)
        ]
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        assert_all_ok(responses, expected_status=302)
        for r in responses:
            assert r.headers.get("location") == "https://example.com/redirect-target"

        info = (await client.get(f"/info/{short_code}")).json()
        analytics = (await client.get(f"/analytics/{short_code}")).json()
        assert info["clickCount"] == concurrency
        assert analytics["clickCount"] == concurrency
        assert sorted(analytics["ipAddresses"]) == sorted(f"10.0.0.{i}" for i in range(concurrency))

    async def test_concurrent_mixed_reads_and_clicks(self, client):
        """Reads interleaved with clicks always see a consistent snapshot."""
        create_resp = await client.post(
            "/shorten",
            json={"originalUrl": "https://example.com/concurrent-target"},
        )
        short_code = create_resp.json()["url"]

        tasks = (
            [client.get(f"/{short_code}") for _ in range(20)]
            + [client.get(f"/analytics/{short_code}") for _ in range(20)]
        )
        responses = await asyncio.gather(*tasks, return_exceptions=True)

        assert_all_ok(responses[:20], expected_status=302)
        assert_all_ok(responses[20:])
        for r in responses[20:]:
            data = r.json()
            assert data["clickCount"] == len(data["ipAddresses"])
