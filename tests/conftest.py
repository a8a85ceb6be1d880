"""Shared test fixtures for tcgcsv.

Provides a fake TCGCSV API backed by the JSON payloads in
``tests/fixtures``, clients wired to it through :class:`httpx.MockTransport`,
an isolated home directory so that tests never touch a real
``~/.tcg_csv``, and output-state management for CLI tests.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Iterator

import httpx
import pytest

from tcgcsv.client import HttpTransport, TcgCsvClient
from tcgcsv.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"
BASE_URL = "https://tcgcsv.test"

CATEGORIES = "/tcgplayer/categories"
POKEMON_GROUPS = "/tcgplayer/3/groups"
SIT_PRODUCTS = "/tcgplayer/3/3170/products"
SIT_PRICES = "/tcgplayer/3/3170/prices"
BASE_SET_PRODUCTS = "/tcgplayer/3/604/products"
BASE_SET_PRICES = "/tcgplayer/3/604/prices"


def load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


def empty_results() -> dict[str, Any]:
    return {"totalItems": 0, "success": True, "errors": [], "results": []}


# ---------------------------------------------------------------------------
# Fake API
# ---------------------------------------------------------------------------


class FakeApi:
    """In-memory stand-in for tcgcsv.com.

    Serves ``routes`` (path -> JSON payload), answers 404 for anything
    else, and counts how often each path was requested so that tests can
    tell cache hits from network fetches.
    """

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = dict(routes)
        self.calls: Counter[str] = Counter()
        self.failures: dict[str, int] = {}

    def fail(self, path: str, status_code: int) -> None:
        """Make *path* answer with *status_code* from now on."""
        self.failures[path] = status_code

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls[path] += 1
        if path in self.failures:
            return httpx.Response(self.failures[path], text="upstream failure")
        if path not in self.routes:
            return httpx.Response(404, json={"success": False, "errors": ["Not found"]})
        return httpx.Response(200, json=self.routes[path])

    def transport(self) -> HttpTransport:
        http_client = httpx.Client(
            base_url=BASE_URL, transport=httpx.MockTransport(self.handler)
        )
        return HttpTransport(base_url=BASE_URL, http_client=http_client)

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())


@pytest.fixture
def api() -> FakeApi:
    """Fake API serving Pokemon / Silver Tempest fixture data."""
    return FakeApi(
        {
            CATEGORIES: load_fixture("categories.json"),
            POKEMON_GROUPS: load_fixture("groups.json"),
            SIT_PRODUCTS: load_fixture("products.json"),
            SIT_PRICES: load_fixture("prices.json"),
            BASE_SET_PRODUCTS: empty_results(),
            BASE_SET_PRICES: empty_results(),
        }
    )


@pytest.fixture
def transport(api: FakeApi) -> Iterator[HttpTransport]:
    t = api.transport()
    yield t
    t.close()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def client(cache_dir: Path, transport: HttpTransport) -> TcgCsvClient:
    """Caching client talking to the fake API."""
    return TcgCsvClient(cache_dir=cache_dir, transport=transport)


@pytest.fixture
def uncached_client(transport: HttpTransport) -> TcgCsvClient:
    return TcgCsvClient(cache=False, transport=transport)


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``~`` at a temporary directory and clear ``TCG_CSV_*`` variables.

    Returns:
        The temporary home directory.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for var in [
        "TCG_CSV_CACHE_DIR",
        "TCG_CSV_PRICE_TTL",
        "TCG_CSV_NO_CACHE",
        "TCG_CSV_BASE_URL",
    ]:
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture(autouse=True)
def _reset_globals_between_tests() -> Iterator[None]:
    """Reset the global OutputManager and default client after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").
    """
    yield
    reset_output()

    import tcgcsv

    tcgcsv.reset_client()

    # CLI tests install a RichHandler bound to the runner's streams.
    logger = logging.getLogger("tcgcsv")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> Iterator[OutputManager]:
    """Install a quiet PLAIN-format output manager."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
