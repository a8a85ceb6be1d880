"""HTTP client module for tcgcsv.

Three layers, each usable on its own:

- :class:`HttpTransport` -- blocking GET requests over :mod:`httpx`.
- :class:`FetchCoordinator` -- cache-then-network retrieval of raw JSON
  payloads with error mapping.
- :class:`TcgCsvClient` -- the typed catalog API built on the two above.

Example::

    from tcgcsv.client import TcgCsvClient

    with TcgCsvClient(cache_dir="/tmp/tcg") as client:
        for category in client.categories():
            print(category.id, category.display_name)
"""

from tcgcsv.client.catalog import TcgCsvClient
from tcgcsv.client.fetcher import FetchCoordinator
from tcgcsv.client.transport import HttpTransport, Transport

__all__ = ["FetchCoordinator", "HttpTransport", "TcgCsvClient", "Transport"]
