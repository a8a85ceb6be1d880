"""Tests for the httpx-backed HttpTransport."""

from __future__ import annotations

import httpx
import pytest

from tcgcsv.client import HttpTransport

BASE_URL = "https://tcgcsv.test"


def _transport(handler, max_retries: int = 0) -> HttpTransport:
    http_client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return HttpTransport(base_url=BASE_URL, max_retries=max_retries, http_client=http_client)


@pytest.fixture(autouse=True)
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record retry delays instead of sleeping."""
    recorded: list[float] = []
    monkeypatch.setattr("tcgcsv.client.transport.time.sleep", recorded.append)
    return recorded


class TestFetch:
    def test_returns_response_for_path(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"results": []})

        with _transport(handler) as transport:
            response = transport.fetch("/tcgplayer/categories")
        assert response.status_code == 200
        assert response.json() == {"results": []}
        assert seen == ["https://tcgcsv.test/tcgplayer/categories"]

    def test_non_2xx_is_returned_not_raised(self) -> None:
        transport = _transport(lambda request: httpx.Response(404))
        assert transport.fetch("/tcgplayer/999/groups").status_code == 404

    def test_base_url_trailing_slash_stripped(self) -> None:
        assert HttpTransport(base_url="https://tcgcsv.com/").base_url == "https://tcgcsv.com"

    def test_close_is_idempotent(self) -> None:
        transport = _transport(lambda request: httpx.Response(200, json={}))
        transport.close()
        transport.close()


class TestRetries:
    def test_no_retry_by_default(self, sleeps: list[float]) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(503)

        response = _transport(handler).fetch("/tcgplayer/categories")
        assert response.status_code == 503
        assert len(calls) == 1
        assert sleeps == []

    def test_retries_server_errors_with_backoff(self, sleeps: list[float]) -> None:
        statuses = iter([503, 502, 200])

        def handler(request: httpx.Request) -> httpx.Response:
            status = next(statuses)
            return httpx.Response(status, json={"results": []} if status == 200 else None)

        response = _transport(handler, max_retries=3).fetch("/tcgplayer/categories")
        assert response.status_code == 200
        assert sleeps == [1, 2]

    def test_returns_last_server_error_when_retries_exhausted(self, sleeps: list[float]) -> None:
        response = _transport(lambda request: httpx.Response(500), max_retries=2).fetch("/x")
        assert response.status_code == 500
        assert sleeps == [1, 2]

    def test_client_errors_are_not_retried(self, sleeps: list[float]) -> None:
        response = _transport(lambda request: httpx.Response(404), max_retries=3).fetch("/x")
        assert response.status_code == 404
        assert sleeps == []

    def test_retries_connection_errors(self, sleeps: list[float]) -> None:
        attempts: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={})

        response = _transport(handler, max_retries=1).fetch("/x")
        assert response.status_code == 200
        assert sleeps == [1]

    def test_reraises_connection_error_when_retries_exhausted(self, sleeps: list[float]) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(httpx.ConnectError):
            _transport(handler, max_retries=1).fetch("/x")
        assert sleeps == [1]
