"""Tests for the command-line interface."""

import json
import pytest

from scripts.cli.shortlink_cli import main


async def run_cli(capsys, db_url, *args):
    code = await main(["--db-url", db_url, *args])
    captured = capsys.readouterr()
    return code, captured


@pytest.mark.asyncio
class TestCLI:

    async def test_shorten_info_analytics(self, capsys, db_url):
        code, out = await run_cli(capsys, db_url, "shorten", "https://example.com/cli", "--alias", "clilink")
        assert code == 0
        created = json.loads(out.out)
        assert created["success"] is True
        assert created["code"] == "clilink"

        code, out = await run_cli(capsys, db_url, "info", "clilink")
        assert code == 0
        info = json.loads(out.out)
        assert info["original_url"] == "https://example.com/cli"
        assert info["expired"] is False

        code, out = await run_cli(capsys, db_url, "analytics", "clilink")
        assert code == 0
        assert json.loads(out.out)["click_count"] == 0

    async def test_shorten_with_expiry(self, capsys, db_url):
        code, out = await run_cli(
            capsys, db_url, "shorten", "https://example.com/exp", "--expires-at", "2031-01-01T00:00"
        )

        assert code == 0
        assert json.loads(out.out)["expires_at"] == "2031-01-01T00:00:00+00:00"

    async def test_invalid_url(self, capsys, db_url):
        code, out = await run_cli(capsys, db_url, "shorten", "not-a-url")

        assert code == 1
        assert "Invalid URL" in json.loads(out.err)["error"]

    async def test_info_missing(self, capsys, db_url):
        code, out = await run_cli(capsys, db_url, "info", "nothere")

        assert code == 1
        assert json.loads(out.err)["success"] is False

    async def test_list_and_sweep(self, capsys, db_url):
        await run_cli(capsys, db_url, "shorten", "https://example.com/one")
        await run_cli(capsys, db_url, "shorten", "https://example.com/two")

        code, out = await run_cli(capsys, db_url, "list", "--limit", "5")
        assert code == 0
        assert json.loads(out.out)["count"] == 2

        code, out = await run_cli(capsys, db_url, "sweep")
        assert code == 0
        assert json.loads(out.out)["deleted"] == 0

    async def test_health(self, capsys, db_url):
        code, out = await run_cli(capsys, db_url, "health")

        assert code == 0
        data = json.loads(out.out)
        assert data["health"]["overall"] is True
        assert data["statistics"]["database"] == "sqlite"

    async def test_no_command(self, capsys, db_url):
        code, _ = await run_cli(capsys, db_url)

        assert code == 1
