"""Disk-based response caching for tcgcsv.

This package provides :class:`FileCache`, the persistent store behind
:class:`~tcgcsv.client.FetchCoordinator`. Responses are stored as JSON
files named by the SHA-256 of their resource path. Category, group, and
product data never expires; price data expires after a configurable TTL
(24 hours by default). See :mod:`tcgcsv.cache.policy` for the rules.

The cache is controlled by the ``cache`` section of the configuration
(:class:`~tcgcsv.models.CacheConfig`).
"""

from tcgcsv.cache.policy import classify, is_volatile
from tcgcsv.cache.store import FileCache

__all__ = ["FileCache", "classify", "is_volatile"]
