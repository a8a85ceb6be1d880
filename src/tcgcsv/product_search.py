"""Product search across the groups of a category.

A :class:`Search` resolves its category and (optional) group, loads the
matching products through the client, and keeps the ones that pass every
filter:

- **name** -- the product name contains the query (case-insensitive);
- **rarity** -- the ``Rarity`` extended field contains the filter;
- **price** -- the first variant's market price is known and lies within
  ``[min_price, max_price]``.

Prices are only fetched when ``include_prices`` is set or a price bound is
given. Searching every group of a large category issues one products
request per group, so the first search is slow and later ones are served
from the cache.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from tcgcsv.exceptions import InvalidUsageError
from tcgcsv.models import Product

if TYPE_CHECKING:
    from tcgcsv.client.catalog import TcgCsvClient


class Search:
    """A single product search.

    Args:
        client: Client used to load categories, groups, and products.
        query: Substring to look for in product names.
        category: Category ID or name. Required.
        group: Group ID or name; all groups of the category when ``None``.
        include_prices: Attach prices to the returned products.
        rarity: Rarity substring filter.
        min_price: Lowest acceptable market price.
        max_price: Highest acceptable market price.
    """

    def __init__(
        self,
        client: TcgCsvClient,
        query: str,
        category: int | str | None = None,
        group: int | str | None = None,
        include_prices: bool = False,
        rarity: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> None:
        self._client = client
        self._query = query.lower()
        self._category = category
        self._group = group
        self._include_prices = include_prices
        self._rarity = rarity.lower() if rarity else None
        self._min_price = min_price
        self._max_price = max_price

    @property
    def _needs_prices(self) -> bool:
        return self._include_prices or self._min_price is not None or self._max_price is not None

    def results(self) -> list[Product]:
        """Run the search and return matching products.

        Raises:
            InvalidUsageError: If no category was given.
            NotFoundError: If the category or group name does not resolve.
        """
        if self._category is None:
            raise InvalidUsageError("category is required for search")

        category_id = self._client.resolve_category_id(self._category)
        products: list[Product] = []
        for group_id in self._group_ids(category_id):
            if self._needs_prices:
                products.extend(self._client.products_with_prices(category_id, group_id))
            else:
                products.extend(self._client.products(category_id, group_id))
        return [p for p in products if self._matches(p)]

    def _group_ids(self, category_id: int) -> list[int]:
        if self._group is None:
            return [g.id for g in self._client.groups(category_id)]
        return [self._client.resolve_group_id(category_id, self._group)]

    def _matches(self, product: Product) -> bool:
        return (
            self._matches_name(product)
            and self._matches_rarity(product)
            and self._matches_price(product)
        )

    def _matches_name(self, product: Product) -> bool:
        return self._query in product.name.lower()

    def _matches_rarity(self, product: Product) -> bool:
        if self._rarity is None:
            return True
        return product.rarity is not None and self._rarity in product.rarity.lower()

    def _matches_price(self, product: Product) -> bool:
        if self._min_price is None and self._max_price is None:
            return True
        price = product.market_price()
        if price is None:
            return False
        if self._min_price is not None and price < self._min_price:
            return False
        if self._max_price is not None and price > self._max_price:
            return False
        return True
