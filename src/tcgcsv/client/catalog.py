"""Typed client for the TCGCSV catalog.

:class:`TcgCsvClient` turns the four TCGCSV endpoints into typed models
and adds the lookups most callers need on top of them:

================================  ==========================================
Endpoint                          Client method
================================  ==========================================
``/tcgplayer/categories``         :meth:`~TcgCsvClient.categories`
``/tcgplayer/{cat}/groups``       :meth:`~TcgCsvClient.groups`
``/tcgplayer/{cat}/{grp}/products`` :meth:`~TcgCsvClient.products`
``/tcgplayer/{cat}/{grp}/prices``   :meth:`~TcgCsvClient.prices`
================================  ==========================================

Every request goes through a :class:`~tcgcsv.client.fetcher.FetchCoordinator`,
so categories, groups, and products are downloaded once and prices at most
once per price TTL.

Example::

    from tcgcsv import TcgCsvClient

    with TcgCsvClient(price_ttl=3600) as client:
        pokemon = client.category("Pokemon")
        card = client.find_card("Lugia VSTAR", category=pokemon.id, group="Silver Tempest")
        print(card.market_price())
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, TypeVar

from pydantic import ValidationError

from tcgcsv.cache import FileCache
from tcgcsv.cache.policy import DEFAULT_PRICE_TTL
from tcgcsv.client.fetcher import FetchCoordinator
from tcgcsv.client.transport import HttpTransport, Transport
from tcgcsv.exceptions import ApiError, NotFoundError
from tcgcsv.models import (
    DEFAULT_BASE_URL,
    Category,
    GlobalConfig,
    Group,
    Price,
    Product,
    _CatalogEntity,
)
from tcgcsv.product_search import Search

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=_CatalogEntity)


def categories_path() -> str:
    return "/tcgplayer/categories"


def groups_path(category_id: int) -> str:
    return f"/tcgplayer/{category_id}/groups"


def products_path(category_id: int, group_id: int) -> str:
    return f"/tcgplayer/{category_id}/{group_id}/products"


def prices_path(category_id: int, group_id: int) -> str:
    return f"/tcgplayer/{category_id}/{group_id}/prices"


class TcgCsvClient:
    """Catalog client with transparent on-disk caching.

    Args:
        cache: Enable the response cache. When ``False`` nothing is read
            from or written to disk.
        cache_dir: Cache directory (defaults to ``~/.tcg_csv/cache``).
        price_ttl: Seconds before cached prices are re-fetched
            (defaults to 24 hours).
        base_url: API root URL.
        timeout: Request timeout in seconds.
        max_retries: Retries for 5xx and network errors.
        transport: Custom transport, used instead of building an
            :class:`~tcgcsv.client.transport.HttpTransport`. The client
            does not close transports it did not create.

    Raises:
        StorageError: If caching is enabled and the cache directory cannot
            be created.
    """

    def __init__(
        self,
        cache: bool = True,
        cache_dir: str | Path | None = None,
        price_ttl: Optional[int] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        max_retries: int = 0,
        transport: Optional[Transport] = None,
    ) -> None:
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpTransport(
            base_url=base_url, timeout=timeout, max_retries=max_retries
        )
        file_cache: Optional[FileCache] = None
        if cache:
            file_cache = FileCache(
                cache_dir,
                price_ttl=price_ttl if price_ttl is not None else DEFAULT_PRICE_TTL,
            )
        self._fetcher = FetchCoordinator(self._transport, file_cache)

    @classmethod
    def from_config(
        cls, config: GlobalConfig, transport: Optional[Transport] = None
    ) -> TcgCsvClient:
        """Build a client from a resolved :class:`~tcgcsv.models.GlobalConfig`."""
        return cls(
            cache=config.cache.enabled,
            cache_dir=config.cache.directory,
            price_ttl=config.cache.price_ttl_seconds,
            base_url=config.request.base_url,
            timeout=config.request.timeout,
            max_retries=config.request.max_retries,
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> TcgCsvClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the HTTP connection pool if this client created it."""
        if self._owns_transport and isinstance(self._transport, HttpTransport):
            self._transport.close()

    # ------------------------------------------------------------------ #
    # Cache access
    # ------------------------------------------------------------------ #

    @property
    def cache(self) -> Optional[FileCache]:
        """The underlying :class:`~tcgcsv.cache.FileCache`, or ``None``."""
        return self._fetcher.cache

    @property
    def caching_enabled(self) -> bool:
        return self._fetcher.caching_enabled

    @property
    def fetcher(self) -> FetchCoordinator:
        return self._fetcher

    def clear_cache(self) -> None:
        """Wipe the entire cache (static data and prices)."""
        self._fetcher.clear_all()

    def clear_prices(self) -> int:
        """Wipe cached prices only, keeping categories, groups, and products."""
        return self._fetcher.clear_volatile()

    # ------------------------------------------------------------------ #
    # Categories and groups
    # ------------------------------------------------------------------ #

    def categories(self) -> list[Category]:
        """Fetch every trading card game category."""
        return self._results(categories_path(), Category)

    def category(self, name_or_id: int | str) -> Optional[Category]:
        """Find a category by ID, or by name / display name.

        Names match case-insensitively, preferring an exact match over a
        substring match. Returns ``None`` when nothing matches.
        """
        categories = self.categories()
        if isinstance(name_or_id, int):
            return next((c for c in categories if c.id == name_or_id), None)

        pattern = str(name_or_id).lower()
        for c in categories:
            if c.name.lower() == pattern or (c.display_name or "").lower() == pattern:
                return c
        for c in categories:
            if pattern in c.name.lower() or pattern in (c.display_name or "").lower():
                return c
        return None

    def groups(self, category_id: int) -> list[Group]:
        """Fetch every group (set) in a category."""
        return self._results(groups_path(category_id), Group)

    def group(self, category_id: int, name_or_id: int | str) -> Optional[Group]:
        """Find a group in a category by ID or by (partial) name."""
        groups = self.groups(category_id)
        if isinstance(name_or_id, int):
            return next((g for g in groups if g.id == name_or_id), None)

        pattern = str(name_or_id).lower()
        exact = next((g for g in groups if g.name.lower() == pattern), None)
        if exact is not None:
            return exact
        return next((g for g in groups if pattern in g.name.lower()), None)

    def resolve_category_id(self, category: int | str) -> int:
        """Return *category* if it is an ID, else the ID of the named category.

        Raises:
            NotFoundError: If no category matches the name.
        """
        if isinstance(category, int):
            return category
        found = self.category(category)
        if found is None:
            raise NotFoundError(f"Category not found: {category}")
        return found.id

    def resolve_group_id(self, category_id: int, group: int | str) -> int:
        """Return *group* if it is an ID, else the ID of the named group.

        Raises:
            NotFoundError: If no group in the category matches the name.
        """
        if isinstance(group, int):
            return group
        found = self.group(category_id, group)
        if found is None:
            raise NotFoundError(f"Group not found: {group}")
        return found.id

    # ------------------------------------------------------------------ #
    # Products and prices
    # ------------------------------------------------------------------ #

    def products(self, category_id: int, group_id: int) -> list[Product]:
        """Fetch every product (cards, packs, boxes) in a group."""
        return self._results(products_path(category_id, group_id), Product)

    def prices(self, category_id: int, group_id: int) -> list[Price]:
        """Fetch every price record in a group."""
        return self._results(prices_path(category_id, group_id), Price)

    def products_with_prices(self, category_id: int, group_id: int) -> list[Product]:
        """Fetch products and attach each one's price variants."""
        products = self.products(category_id, group_id)
        by_product: dict[int, list[Price]] = {}
        for price in self.prices(category_id, group_id):
            by_product.setdefault(price.product_id, []).append(price)
        for product in products:
            product.prices = by_product.get(product.id, [])
        return products

    # ------------------------------------------------------------------ #
    # Search and lookups
    # ------------------------------------------------------------------ #

    def search(self, query: str, **filters: Any) -> list[Product]:
        """Search products by name.

        Example::

            client.search("Charizard", category="Pokemon")
            client.search("Lugia", category=3, group="Silver Tempest",
                          include_prices=True, min_price=10.0)

        See :class:`~tcgcsv.product_search.Search` for the accepted filters.
        """
        return Search(self, query, **filters).results()

    def find_card(
        self, name: str, *, category: int | str, group: int | str
    ) -> Optional[Product]:
        """Return the first product whose name contains *name*, with prices."""
        pattern = name.lower()
        for product in self._products_for(category, group):
            if pattern in product.name.lower():
                return product
        return None

    def find_cards(
        self, name: str, *, category: int | str, group: int | str
    ) -> list[Product]:
        """Return all products whose name contains *name*, with prices."""
        pattern = name.lower()
        return [p for p in self._products_for(category, group) if pattern in p.name.lower()]

    def card_price(
        self, name: str, *, category: int | str, group: int | str
    ) -> dict[str, dict[str, Optional[float]]]:
        """Return :meth:`Product.price_summary` for the first matching card.

        Raises:
            NotFoundError: If no card matches *name*.
        """
        card = self.find_card(name, category=category, group=group)
        if card is None:
            raise NotFoundError(f"Card not found: {name}")
        return card.price_summary()

    def top_cards(
        self,
        category_id: int,
        group_id: int,
        limit: int = 10,
        sub_type: Optional[str] = None,
    ) -> list[Product]:
        """Return the *limit* products with the highest market price.

        When *sub_type* is given only that variant's price is considered.
        Products without any price data are left out.
        """
        items = [p for p in self.products_with_prices(category_id, group_id) if p.prices]

        def best_price(product: Product) -> float:
            candidates = product.prices
            if sub_type is not None:
                candidates = [p for p in candidates if p.matches_sub_type(sub_type)]
            return max((p.market_price for p in candidates if p.market_price is not None), default=0)

        items.sort(key=best_price, reverse=True)
        return items[:limit]

    def by_rarity(self, category_id: int, group_id: int, rarity: str) -> list[Product]:
        """Return products whose rarity contains *rarity* (case-insensitive)."""
        pattern = rarity.lower()
        return [
            p
            for p in self.products(category_id, group_id)
            if p.rarity is not None and pattern in p.rarity.lower()
        ]

    def prefetch(
        self, category: int | str, groups: Optional[list[int | str]] = None
    ) -> dict[str, Any]:
        """Download products and prices for a whole category into the cache.

        Args:
            category: Category ID or name.
            groups: Restrict to these group IDs / names. Names that do not
                match a group are skipped.

        Returns:
            ``{"category": <name>, "groups_cached": <count>}``

        Raises:
            NotFoundError: If the category does not exist.
        """
        cat = self.category(category)
        if cat is None:
            raise NotFoundError(f"Category not found: {category}")

        if groups is None:
            targets = self.groups(cat.id)
        else:
            targets = [g for g in (self.group(cat.id, name) for name in groups) if g is not None]

        for grp in targets:
            logger.debug("Prefetching %s / %s", cat.name, grp.name)
            self.products(cat.id, grp.id)
            self.prices(cat.id, grp.id)

        return {"category": cat.name, "groups_cached": len(targets)}

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _products_for(self, category: int | str, group: int | str) -> list[Product]:
        category_id = self.resolve_category_id(category)
        group_id = self.resolve_group_id(category_id, group)
        return self.products_with_prices(category_id, group_id)

    def _results(self, path: str, model: type[_E]) -> list[_E]:
        def parse(data: Any) -> list[_E]:
            records = data.get("results") if isinstance(data, dict) else None
            if not isinstance(records, list):
                raise ApiError(
                    f"Unexpected response shape for {path}: missing 'results'", path=path
                )
            try:
                return [model.model_validate(record).bind(self) for record in records]
            except ValidationError as exc:
                raise ApiError(
                    f"Malformed {model.__name__} record in {path}: {exc}", path=path
                ) from exc

        return self._fetcher.get(path, parse=parse)
