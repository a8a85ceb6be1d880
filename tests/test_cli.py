"""End-to-end tests for the tcgcsv CLI using Typer's CliRunner.

The fake API transport is injected through ``obj`` so that commands never
touch the network; the cache lives in a per-test temporary directory.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from conftest import load_fixture
from tcgcsv import __version__
from tcgcsv.app import app, main
from tcgcsv.cache import FileCache
from tcgcsv.config import load_global_config
from tcgcsv.exceptions import InvalidUsageError, NotFoundError


@pytest.fixture()
def invoke(cli_runner, api, cache_dir: Path):
    """Run the CLI against the fake API with an isolated cache directory."""

    def _invoke(*args: str, input: str | None = None):
        return cli_runner.invoke(
            app,
            ["--cache-dir", str(cache_dir), *args],
            obj={"transport": api.transport()},
            input=input,
        )

    return _invoke


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"tcgcsv {__version__}" in result.output

    def test_help_lists_commands(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("categories", "groups", "products", "prices", "search", "card", "cache"):
            assert name in result.output

    def test_no_cache_skips_disk(self, invoke, api, cache_dir: Path) -> None:
        invoke("--no-cache", "categories")
        invoke("--no-cache", "categories")
        assert api.calls["/tcgplayer/categories"] == 2
        assert not any(cache_dir.glob("*.json"))


# ---------------------------------------------------------------------------
# Catalog commands
# ---------------------------------------------------------------------------


class TestCatalogCommands:
    def test_categories_json(self, invoke) -> None:
        result = invoke("--json", "categories")
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert records[2] == {"ID": "3", "Name": "Pokemon", "Display Name": "Pokemon"}

    def test_categories_cached_between_runs(self, invoke, api) -> None:
        invoke("categories")
        invoke("categories")
        assert api.calls["/tcgplayer/categories"] == 1

    def test_groups_by_name(self, invoke) -> None:
        result = invoke("--plain", "groups", "pokemon")
        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().splitlines()
        assert lines[0] == "ID\tName\tAbbreviation\tPublished"
        assert lines[1] == "3170\tSWSH12: Silver Tempest\tSIT\t2022-11-11"

    def test_products_with_rarity(self, invoke) -> None:
        result = invoke("--json", "products", "3", "Silver Tempest", "--rarity", "ultra")
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert [r["Name"] for r in records] == ["Lugia V"]
        assert records[0]["Number"] == "138/195"

    def test_prices(self, invoke) -> None:
        result = invoke("--json", "prices", "Pokemon", "3170")
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert len(records) == 4
        assert records[0]["Market"] == "20.99"
        assert records[1]["Direct Low"] == "-"

    def test_search(self, invoke) -> None:
        result = invoke("--json", "search", "lugia", "--category", "Pokemon", "--prices")
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert [(r["Name"], r["Market"]) for r in records] == [
            ("Lugia VSTAR (Secret)", "20.99"),
            ("Lugia V", "3.75"),
        ]

    def test_card(self, invoke) -> None:
        result = invoke("--json", "card", "Lugia V", "-c", "Pokemon", "-g", "Silver Tempest")
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert records == [
            {
                "Variant": "Holofoil",
                "Low": "15.00",
                "Mid": "22.50",
                "High": "45.00",
                "Market": "20.99",
                "Direct Low": "18.50",
            }
        ]

    def test_top(self, invoke) -> None:
        result = invoke("--json", "top", "Pokemon", "Silver Tempest", "-n", "2")
        assert result.exit_code == 0, result.output
        records = json.loads(result.stdout)
        assert [r["Rank"] for r in records] == ["1", "2"]
        assert records[0]["Name"] == "Lugia VSTAR (Secret)"

    def test_prefetch(self, invoke, api) -> None:
        result = invoke("--json", "--quiet", "prefetch", "Pokemon", "-g", "Silver Tempest")
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"category": "Pokemon", "groups_cached": 1}
        assert api.calls["/tcgplayer/3/3170/prices"] == 1


class TestCatalogErrors:
    def test_unknown_category_raises_not_found(self, invoke) -> None:
        result = invoke("groups", "Digimon")
        assert isinstance(result.exception, NotFoundError)

    def test_unknown_card(self, invoke) -> None:
        result = invoke("card", "Mew", "-c", "3", "-g", "3170")
        assert isinstance(result.exception, NotFoundError)
        assert "Card not found: Mew" in str(result.exception)

    def test_missing_required_option(self, invoke) -> None:
        result = invoke("search", "lugia")
        assert result.exit_code == 2

    def test_main_maps_errors_to_exit_codes(
        self, cache_dir: Path, monkeypatch: pytest.MonkeyPatch, capsys
    ) -> None:
        # Categories are static, so the lookup is served from disk.
        FileCache(cache_dir).write("/tcgplayer/categories", load_fixture("categories.json"))
        monkeypatch.setattr("tcgcsv.app._setup_signal_handlers", lambda: None)
        monkeypatch.setattr(
            sys, "argv", ["tcgcsv", "--no-color", "--cache-dir", str(cache_dir), "groups", "Digimon"]
        )
        with pytest.raises(SystemExit) as exc_info:
            main()
        assert exc_info.value.code == NotFoundError.exit_code
        assert "Category not found: Digimon" in capsys.readouterr().err

    def test_invalid_usage_exit_code(self) -> None:
        assert InvalidUsageError.exit_code == 2


# ---------------------------------------------------------------------------
# Cache commands
# ---------------------------------------------------------------------------


class TestCacheCommands:
    def test_stats(self, invoke) -> None:
        invoke("prefetch", "Pokemon", "-g", "3170")
        result = invoke("--json", "cache", "stats")
        assert result.exit_code == 0, result.output
        stats = json.loads(result.stdout)
        # categories, groups, products, prices
        assert stats["count"] == 4
        assert stats["volatile_entries"] == 1
        assert stats["static_entries"] == 3

    def test_list(self, invoke) -> None:
        invoke("categories")
        result = invoke("--json", "cache", "list")
        records = json.loads(result.stdout)
        assert [r["Path"] for r in records] == ["/tcgplayer/categories"]
        assert records[0]["Class"] == "static"

    def test_clear_prices_only(self, invoke, cache_dir: Path) -> None:
        invoke("prices", "3", "3170")
        invoke("products", "3", "3170")
        result = invoke("cache", "clear", "--prices-only")
        assert result.exit_code == 0, result.output
        assert FileCache(cache_dir).count() == 1

    def test_clear_all_with_force(self, invoke, cache_dir: Path) -> None:
        invoke("categories")
        result = invoke("--force", "cache", "clear")
        assert result.exit_code == 0, result.output
        assert FileCache(cache_dir).count() == 0

    def test_clear_all_declined(self, invoke, cache_dir: Path) -> None:
        invoke("categories")
        result = invoke("cache", "clear", input="n\n")
        assert result.exit_code == 0
        assert FileCache(cache_dir).count() == 1

    def test_cache_disabled(self, invoke) -> None:
        result = invoke("--no-cache", "cache", "stats")
        assert result.exit_code == 0
        assert "Caching is disabled" in result.output


# ---------------------------------------------------------------------------
# Config commands
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_set_and_show(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "cache.price_ttl_seconds", "3600"])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.price_ttl_seconds == 3600

        result = cli_runner.invoke(app, ["--json", "--quiet", "config", "show"])
        assert json.loads(result.stdout)["cache"]["price_ttl_seconds"] == 3600

    def test_set_optional_directory(self, cli_runner, tmp_path: Path) -> None:
        target = str(tmp_path / "elsewhere")
        result = cli_runner.invoke(app, ["config", "set", "cache.directory", target])
        assert result.exit_code == 0, result.output
        assert load_global_config().cache.directory == target

    def test_set_float(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "request.timeout", "12.5"])
        assert result.exit_code == 0, result.output
        assert load_global_config().request.timeout == 12.5

    def test_set_unknown_key(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "cache.nope", "1"])
        assert result.exit_code == 2

    def test_set_invalid_value(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "cache.price_ttl_seconds", "-5"])
        assert result.exit_code == 2

    def test_reset(self, cli_runner) -> None:
        cli_runner.invoke(app, ["config", "set", "request.max_retries", "3"])
        result = cli_runner.invoke(app, ["--force", "config", "reset"])
        assert result.exit_code == 0, result.output
        assert load_global_config().request.max_retries == 0

    def test_config_file_feeds_commands(self, cli_runner, api, tmp_path: Path) -> None:
        configured = tmp_path / "configured-cache"
        cli_runner.invoke(app, ["config", "set", "cache.directory", str(configured)])
        result = cli_runner.invoke(app, ["categories"], obj={"transport": api.transport()})
        assert result.exit_code == 0, result.output
        assert FileCache(configured).count() == 1

    def test_configured_format_is_default(self, cli_runner, api) -> None:
        result = cli_runner.invoke(app, ["config", "set", "output.format", "json"])
        assert result.exit_code == 0, result.output

        result = cli_runner.invoke(app, ["--quiet", "categories"], obj={"transport": api.transport()})
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)[2]["Name"] == "Pokemon"

    def test_flag_overrides_configured_format(self, cli_runner, api) -> None:
        cli_runner.invoke(app, ["config", "set", "output.format", "json"])
        result = cli_runner.invoke(app, ["--plain", "categories"], obj={"transport": api.transport()})
        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines()[0] == "ID\tName\tDisplay Name"

    def test_set_unknown_format_rejected(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set", "output.format", "yaml"])
        assert result.exit_code == 2
        assert load_global_config().output.format == "auto"

    def test_reset_repairs_broken_config_file(self, cli_runner, isolated_home: Path) -> None:
        path = isolated_home / ".tcg_csv" / "config.json"
        path.parent.mkdir(parents=True)
        path.write_text("{broken")
        result = cli_runner.invoke(app, ["--force", "config", "reset"])
        assert result.exit_code == 0, result.output
        assert load_global_config().output.format == "auto"
