"""Cache-aware resource retrieval.

:class:`FetchCoordinator` is the single entry point through which every
API resource is loaded. It consults the :class:`~tcgcsv.cache.FileCache`,
falls back to the transport on a miss or an expired price entry, and writes
successful responses back into the cache.

Failure handling:

- HTTP 404 raises :class:`~tcgcsv.exceptions.NotFoundError`.
- Any other non-2xx status, a body that is not JSON, or a network error
  raises :class:`~tcgcsv.exceptions.ApiError`.
- Cache I/O failures raise :class:`~tcgcsv.exceptions.StorageError`. There
  is no silent fallback to uncached fetching.

Failed fetches and bodies rejected by the caller's ``parse`` hook are never
cached, and nothing is retried here (see
:class:`~tcgcsv.client.transport.HttpTransport` for opt-in retries).
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from tcgcsv.cache import FileCache
from tcgcsv.client.transport import Transport
from tcgcsv.exceptions import ApiError, NotFoundError

logger = logging.getLogger(__name__)


class FetchCoordinator:
    """Resolve resource paths through the cache and the transport.

    Args:
        transport: Collaborator that performs the HTTP GET.
        cache: The response cache, or ``None`` to disable caching. When
            disabled every :meth:`get` goes to the transport and the clear
            operations do nothing.

    Example::

        coordinator = FetchCoordinator(HttpTransport(), FileCache())
        data = coordinator.get("/tcgplayer/categories")
    """

    def __init__(self, transport: Transport, cache: Optional[FileCache] = None) -> None:
        self._transport = transport
        self._cache = cache

    @property
    def cache(self) -> Optional[FileCache]:
        return self._cache

    @property
    def caching_enabled(self) -> bool:
        return self._cache is not None

    def get(self, path: str, parse: Optional[Callable[[Any], Any]] = None) -> Any:
        """Return the decoded JSON body for *path*.

        When *parse* is given it receives the body and its result is
        returned instead. A fresh body is only written to the cache once
        *parse* accepts it, and a cached body that *parse* rejects with
        :class:`~tcgcsv.exceptions.ApiError` is evicted.

        Raises:
            NotFoundError: If the API answers 404.
            ApiError: On any other failed fetch, or when *parse* rejects
                the body.
            StorageError: If the cache cannot be read or written.
        """
        if self._cache is None:
            return _apply(parse, self._fetch(path))

        if self._cache.contains(path):
            payload = self._cache.read(path)
            # The entry can vanish between the two calls if another
            # process clears the cache; treat that as a miss.
            if payload is not None:
                logger.debug("Cache hit: %s", path)
                try:
                    return _apply(parse, payload)
                except ApiError:
                    logger.warning("Evicting unusable cache entry: %s", path)
                    self._cache.delete(path)
                    raise

        logger.debug("Cache miss: %s", path)
        payload = self._fetch(path)
        result = _apply(parse, payload)
        self._cache.write(path, payload)
        return result

    def clear_all(self) -> None:
        """Remove every cached entry. No-op when caching is disabled."""
        if self._cache is not None:
            self._cache.clear_all()

    def clear_volatile(self) -> int:
        """Remove cached price entries, returning how many were removed."""
        if self._cache is None:
            return 0
        return self._cache.clear_volatile()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _fetch(self, path: str) -> Any:
        try:
            response = self._transport.fetch(path)
        except httpx.HTTPError as exc:
            raise ApiError(f"API request failed ({exc}): {path}", path=path) from exc

        status = response.status_code
        if status == 404:
            raise NotFoundError(f"Resource not found: {path}", path=path)
        if not (200 <= status < 300):
            raise ApiError(
                f"API request failed ({status}): {path}", path=path, status_code=status
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"API returned malformed JSON for {path}: {exc}",
                path=path,
                status_code=status,
            ) from exc


def _apply(parse: Optional[Callable[[Any], Any]], payload: Any) -> Any:
    return payload if parse is None else parse(payload)
