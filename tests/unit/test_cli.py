"""
Unit tests for the ``python -m uacloudlib`` entry point.

Tests:
- Argument parsing per subcommand
- run_command output and exit codes
- main() error handling (bad config, connection failure)
"""

import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from uacloudlib.__main__ import DEFAULT_CONFIG, main, parse_args, run_command
from uacloudlib.core.exceptions import ConnectionPoolError
from uacloudlib.models import (
    Category,
    NamespaceDescriptor,
    NodesetSearchResult,
    NodesetSummary,
)


@pytest.fixture
def catalog() -> MagicMock:
    catalog = MagicMock()
    catalog.__aenter__ = AsyncMock(return_value=catalog)
    catalog.__aexit__ = AsyncMock(return_value=None)
    catalog.namespaces = AsyncMock(
        return_value=[NamespaceDescriptor(nodeset=NodesetSummary(1), title="Machine Tools")]
    )
    catalog.nodesets = AsyncMock(return_value=[NodesetSummary(1, version="1.0")])
    catalog.categories = AsyncMock(return_value=[Category("Manufacturing")])
    catalog.organisations = AsyncMock(return_value=[])
    catalog.find_nodesets = AsyncMock(return_value=[NodesetSearchResult(2, title="Robotics")])
    catalog.delete_nodeset = AsyncMock(return_value=True)
    catalog.download_nodeset = AsyncMock(return_value="<UANodeSet/>")
    return catalog


class TestParseArgs:
    """Argument parsing."""

    def test_namespaces_defaults(self):
        args = parse_args(["namespaces"])
        assert args.command == "namespaces"
        assert args.limit is None
        assert args.offset == 0
        assert args.where is None
        assert args.order_by is None
        assert args.config == DEFAULT_CONFIG
        assert args.log_level == "WARNING"

    def test_namespaces_options(self):
        args = parse_args(
            ["--config", "x.yaml", "namespaces", "--limit", "5", "--offset", "10",
             "--where", "[]", "--order-by", "title"]
        )
        assert args.config == Path("x.yaml")
        assert (args.limit, args.offset, args.where, args.order_by) == (5, 10, "[]", "title")

    def test_search_keywords(self):
        assert parse_args(["search", "robot", "machine.*"]).keywords == ["robot", "machine.*"]

    def test_delete_requires_int(self):
        with pytest.raises(SystemExit):
            parse_args(["delete", "abc"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            parse_args(["--log-level", "TRACE", "nodesets"])


class TestRunCommand:
    """Command dispatch, JSON output and exit codes."""

    async def test_namespaces(self, catalog, capsys):
        args = parse_args(["namespaces", "--limit", "5", "--order-by", "title"])
        assert await run_command(catalog, args) == 0
        catalog.namespaces.assert_awaited_once_with(5, 0, None, "title")
        output = json.loads(capsys.readouterr().out)
        assert output[0]["title"] == "Machine Tools"
        assert output[0]["nodeset"]["identifier"] == 1

    async def test_nodesets(self, catalog, capsys):
        assert await run_command(catalog, parse_args(["nodesets"])) == 0
        assert json.loads(capsys.readouterr().out)[0]["version"] == "1.0"

    async def test_categories(self, catalog, capsys):
        args = parse_args(["categories", "--limit", "3"])
        assert await run_command(catalog, args) == 0
        catalog.categories.assert_awaited_once_with(3, None, None)
        assert json.loads(capsys.readouterr().out) == [
            {"name": "Manufacturing", "description": "", "iconUrl": None}
        ]

    async def test_organisations(self, catalog, capsys):
        assert await run_command(catalog, parse_args(["organisations"])) == 0
        assert json.loads(capsys.readouterr().out) == []

    async def test_search(self, catalog, capsys):
        assert await run_command(catalog, parse_args(["search", "robot"])) == 0
        catalog.find_nodesets.assert_awaited_once_with(["robot"])
        assert json.loads(capsys.readouterr().out)[0]["identifier"] == 2

    async def test_delete(self, catalog, capsys):
        assert await run_command(catalog, parse_args(["delete", "7"])) == 0
        assert json.loads(capsys.readouterr().out) == {"nodesetId": 7, "deleted": True}

    async def test_delete_partial_failure(self, catalog):
        catalog.delete_nodeset.return_value = False
        assert await run_command(catalog, parse_args(["delete", "7"])) == 1

    async def test_download(self, catalog, capsys):
        assert await run_command(catalog, parse_args(["download", "7"])) == 0
        assert capsys.readouterr().out == "<UANodeSet/>"

    async def test_download_missing(self, catalog, capsys):
        catalog.download_nodeset.return_value = ""
        assert await run_command(catalog, parse_args(["download", "7"])) == 1
        assert capsys.readouterr().out == ""


class TestMain:
    """main() orchestration."""

    async def test_success(self, catalog, tmp_path):
        with (
            patch("uacloudlib.__main__.setup_logging"),
            patch("uacloudlib.__main__.NodesetCatalog") as catalog_cls,
        ):
            catalog_cls.from_yaml.return_value = catalog
            code = await main(["--config", str(tmp_path / "c.yaml"), "nodesets"])
        assert code == 0
        catalog.__aenter__.assert_awaited_once()
        catalog.__aexit__.assert_awaited_once()

    async def test_missing_config(self, tmp_path):
        with patch("uacloudlib.__main__.setup_logging"):
            assert await main(["--config", str(tmp_path / "missing.yaml"), "nodesets"]) == 1

    async def test_invalid_config(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("query:\n  default_limit: -1\n")
        with patch("uacloudlib.__main__.setup_logging"):
            assert await main(["--config", str(path), "nodesets"]) == 1

    async def test_connection_failure(self, catalog, tmp_path):
        catalog.__aenter__.side_effect = ConnectionPoolError("refused")
        with (
            patch("uacloudlib.__main__.setup_logging"),
            patch("uacloudlib.__main__.NodesetCatalog") as catalog_cls,
        ):
            catalog_cls.from_yaml.return_value = catalog
            assert await main(["nodesets"]) == 1

    async def test_unreachable_database_times_out(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text(
            "pool:\n"
            "  retry:\n"
            "    max_attempts: 1\n"
            "    initial_delay: 0.0\n"
            "    max_delay: 0.0\n"
            "storage:\n"
            f"  root: {tmp_path}\n"
        )
        with (
            patch("uacloudlib.__main__.setup_logging"),
            patch(
                "uacloudlib.core.pool.asyncpg.create_pool",
                new_callable=AsyncMock,
                side_effect=TimeoutError(),
            ),
        ):
            assert await main(["--config", str(path), "nodesets"]) == 1
