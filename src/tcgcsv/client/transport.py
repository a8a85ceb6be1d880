"""HTTP transport for the TCGCSV API.

:class:`HttpTransport` is the only component that talks to the network.
It knows nothing about caching or status codes: :meth:`HttpTransport.fetch`
returns whatever :class:`httpx.Response` the server sent and raises
:class:`httpx.HTTPError` subclasses for network-level failures. Mapping
responses to :class:`~tcgcsv.exceptions.NotFoundError` and
:class:`~tcgcsv.exceptions.ApiError` is done by
:class:`~tcgcsv.client.fetcher.FetchCoordinator`.

Timeouts are enforced here by ``httpx`` and are independent of the cache.
"""

from __future__ import annotations

import logging
import time
from typing import Optional, Protocol

import httpx

from tcgcsv import __version__
from tcgcsv.models import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can GET a resource path from the API."""

    def fetch(self, path: str) -> httpx.Response:
        """Return the server's response for *path*.

        Raises:
            httpx.HTTPError: On network or timeout failures.
        """
        ...


class HttpTransport:
    """Blocking transport backed by :class:`httpx.Client`.

    The underlying client is created lazily on the first request and closed
    by :meth:`close` (or on leaving a ``with`` block).

    Args:
        base_url: API root, e.g. ``https://tcgcsv.com``.
        timeout: Per-request timeout in seconds.
        max_retries: Extra attempts for 5xx responses and network errors,
            with exponential delay (1 s, 2 s, 4 s, ...). ``0`` sends
            exactly one request.
        http_client: Pre-built client to use instead of creating one, e.g.
            an ``httpx.Client(transport=httpx.MockTransport(...))`` in
            tests. It is closed by :meth:`close` as well.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 0,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_retries = max_retries
        self._client = http_client

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def fetch(self, path: str) -> httpx.Response:
        """GET *path* relative to the base URL.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times. After the last attempt the final response is
        returned (even when it is a 5xx) or the last network error is
        re-raised.
        """
        client = self._ensure_client()
        for attempt in range(self._max_retries + 1):
            try:
                logger.debug("GET %s%s", self._base_url, path)
                response = client.get(path)
            except httpx.TransportError as exc:
                if attempt >= self._max_retries:
                    raise
                delay = 2 ** attempt
                logger.debug(
                    "Connection error: %s, retrying in %ss (attempt %d/%d)",
                    exc, delay, attempt + 1, self._max_retries,
                )
                time.sleep(delay)
                continue

            if response.status_code >= 500 and attempt < self._max_retries:
                delay = 2 ** attempt  # 1, 2, 4, ...
                logger.debug(
                    "Server error %d, retrying in %ss (attempt %d/%d)",
                    response.status_code, delay, attempt + 1, self._max_retries,
                )
                time.sleep(delay)
                continue

            return response

        raise AssertionError("unreachable")  # pragma: no cover

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout,
                follow_redirects=True,
                headers={
                    "Accept": "application/json",
                    "User-Agent": f"tcgcsv-python/{__version__}",
                },
            )
        return self._client
