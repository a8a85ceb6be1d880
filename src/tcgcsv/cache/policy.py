"""Expiration policy for cached API responses.

Catalog data (categories, groups, products) is treated as immutable and is
cached forever. Price data changes daily and is only served from the cache
while it is younger than the price TTL.

A path is *volatile* if and only if it contains the substring ``/prices``
anywhere, not only as a suffix. The class is always recomputed from the
path string; it is never stored.
"""

from __future__ import annotations

from typing import Optional

from tcgcsv.models import DEFAULT_PRICE_TTL, ResourceClass

PRICE_SEGMENT = "/prices"

__all__ = [
    "DEFAULT_PRICE_TTL",
    "PRICE_SEGMENT",
    "classify",
    "is_expired",
    "is_volatile",
    "ttl_for",
]


def is_volatile(path: str) -> bool:
    """Return True for price paths."""
    return PRICE_SEGMENT in path


def classify(path: str) -> ResourceClass:
    """Return the :class:`~tcgcsv.models.ResourceClass` of *path*."""
    return ResourceClass.VOLATILE if is_volatile(path) else ResourceClass.STATIC


def ttl_for(path: str, price_ttl: int) -> Optional[int]:
    """Return the TTL in seconds for *path*, or ``None`` for no expiry."""
    return price_ttl if is_volatile(path) else None


def is_expired(age: float, ttl: Optional[int]) -> bool:
    """An entry expires once its age is strictly greater than its TTL."""
    if ttl is None:
        return False
    return age > ttl
