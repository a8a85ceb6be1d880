"""Canonical Pydantic models shared across all tcgcsv modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Configuration models** -- serialised as JSON in ``~/.tcg_csv/config.json``:
    :class:`CacheConfig`, :class:`RequestConfig`, :class:`OutputConfig`,
    and :class:`GlobalConfig`.

**Cache diagnostics** -- produced by :class:`~tcgcsv.cache.FileCache`:
    :class:`ResourceClass` and :class:`CacheEntryInfo`.

**Catalog entities** -- built from the API's ``results`` arrays:
    :class:`Category`, :class:`Group`, :class:`Product`, and :class:`Price`.
    The API uses camelCase keys; every entity declares the camelCase name
    as a field alias and also accepts the snake_case field name.

Catalog entities produced by :class:`~tcgcsv.client.TcgCsvClient` keep a
private reference to that client so that navigation helpers such as
:meth:`Category.groups` or :meth:`Product.fetch_prices` can issue further
requests. Entities validated directly from a dict are unbound.
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)

from tcgcsv.exceptions import TcgCsvError

if TYPE_CHECKING:
    from tcgcsv.client.catalog import TcgCsvClient


DEFAULT_BASE_URL = "https://tcgcsv.com"
DEFAULT_PRICE_TTL = 86_400  # prices change daily


# --- Configuration ---


class CacheConfig(BaseModel):
    """On-disk response cache settings stored in :class:`GlobalConfig`."""

    enabled: bool = Field(default=True, description="Enable response caching")
    directory: Optional[str] = Field(
        default=None,
        description="Cache directory (defaults to ~/.tcg_csv/cache)",
    )
    price_ttl_seconds: int = Field(
        default=DEFAULT_PRICE_TTL,
        ge=0,
        description="Seconds before cached price data is considered stale",
    )


class RequestConfig(BaseModel):
    """HTTP request settings for the TCGCSV API."""

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API root URL")
    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(
        default=0,
        ge=0,
        description="Retries for 5xx and network errors (0 disables retrying)",
    )


class OutputConfig(BaseModel):
    """Default output settings for the CLI."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto",
        description="Output format used when neither --json nor --plain is given",
    )


class GlobalConfig(BaseModel):
    """Top-level configuration persisted by :func:`~tcgcsv.config.save_global_config`.

    Fields here have the lowest precedence; environment variables and CLI
    flags are layered on top by :func:`~tcgcsv.config.resolve_config`.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Cache diagnostics ---


class ResourceClass(str, enum.Enum):
    """Caching class of a resource path.

    ``STATIC`` entries (categories, groups, products) never expire by age.
    ``VOLATILE`` entries (prices) expire after the configured price TTL.
    """

    STATIC = "static"
    VOLATILE = "volatile"


class CacheEntryInfo(BaseModel):
    """Diagnostic snapshot of a single cached entry."""

    path: str
    age: float = Field(description="Seconds since the entry was written")
    size: int = Field(description="Size of the payload file in bytes")
    resource_class: ResourceClass


# --- Catalog entities ---


class _CatalogEntity(BaseModel):
    """Shared configuration and client binding for catalog entities."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    _client: Any = PrivateAttr(default=None)

    def bind(self, client: TcgCsvClient) -> Any:
        """Attach *client* for navigation helpers and return ``self``."""
        self._client = client
        return self

    def _require_client(self) -> TcgCsvClient:
        if self._client is None:
            raise TcgCsvError(
                f"No client available for {type(self).__name__} navigation"
            )
        return self._client


class Category(_CatalogEntity):
    """A trading card game (e.g. Pokemon, Magic: The Gathering)."""

    id: int = Field(alias="categoryId")
    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    seo_name: Optional[str] = Field(default=None, alias="seoCategoryName")
    description: Optional[str] = Field(default=None, alias="categoryDescription")
    sealed_label: Optional[str] = Field(default=None, alias="sealedLabel")
    non_sealed_label: Optional[str] = Field(default=None, alias="nonSealedLabel")
    condition_guide_url: Optional[str] = Field(default=None, alias="conditionGuideUrl")
    scannable: Optional[bool] = Field(default=None, alias="isScannable")
    popularity: Optional[int] = None
    direct: Optional[bool] = Field(default=None, alias="isDirect")
    modified_on: Optional[str] = Field(default=None, alias="modifiedOn")

    @model_validator(mode="after")
    def _default_display_name(self) -> Category:
        if not self.display_name:
            self.display_name = self.name
        return self

    def groups(self) -> list[Group]:
        """Fetch all groups (sets) in this category."""
        return self._require_client().groups(self.id)

    def group(self, name_or_id: int | str) -> Optional[Group]:
        """Find a group in this category by ID or name."""
        return self._require_client().group(self.id, name_or_id)

    def search(self, query: str, **filters: Any) -> list[Product]:
        """Search products in this category. See :class:`~tcgcsv.product_search.Search`."""
        return self._require_client().search(query, category=self.id, **filters)

    def __str__(self) -> str:
        return self.display_name or self.name


class Group(_CatalogEntity):
    """A set or expansion within a category."""

    id: int = Field(alias="groupId")
    name: str
    abbreviation: Optional[str] = None
    supplemental: Optional[bool] = Field(default=None, alias="isSupplemental")
    published_on: Optional[str] = Field(default=None, alias="publishedOn")
    modified_on: Optional[str] = Field(default=None, alias="modifiedOn")
    category_id: Optional[int] = Field(default=None, alias="categoryId")

    def products(self) -> list[Product]:
        """Fetch all products (cards, packs, boxes) in this group."""
        return self._require_client().products(self.category_id, self.id)

    def prices(self) -> list[Price]:
        """Fetch all prices for this group."""
        return self._require_client().prices(self.category_id, self.id)

    def products_with_prices(self) -> list[Product]:
        """Fetch products with their prices attached."""
        return self._require_client().products_with_prices(self.category_id, self.id)

    def top_cards(self, limit: int = 10, sub_type: Optional[str] = None) -> list[Product]:
        """Return the *limit* most expensive products in this group."""
        return self._require_client().top_cards(
            self.category_id, self.id, limit=limit, sub_type=sub_type
        )

    def by_rarity(self, rarity: str) -> list[Product]:
        """Return products whose rarity contains *rarity* (case-insensitive)."""
        return self._require_client().by_rarity(self.category_id, self.id, rarity)

    def find_card(self, name: str) -> Optional[Product]:
        """Return the first product whose name contains *name*, with prices loaded."""
        pattern = name.lower()
        for product in self.products_with_prices():
            if pattern in product.name.lower():
                return product
        return None

    def find_cards(self, name: str) -> list[Product]:
        """Return every product whose name contains *name*, with prices loaded."""
        pattern = name.lower()
        return [p for p in self.products_with_prices() if pattern in p.name.lower()]

    def search(self, query: str, **filters: Any) -> list[Product]:
        """Search products in this group. See :class:`~tcgcsv.product_search.Search`."""
        return self._require_client().search(
            query, category=self.category_id, group=self.id, **filters
        )

    def __str__(self) -> str:
        return self.name


class Price(_CatalogEntity):
    """Market pricing for one product variant (e.g. ``Holofoil``)."""

    product_id: int = Field(alias="productId")
    low_price: Optional[float] = Field(default=None, alias="lowPrice")
    mid_price: Optional[float] = Field(default=None, alias="midPrice")
    high_price: Optional[float] = Field(default=None, alias="highPrice")
    market_price: Optional[float] = Field(default=None, alias="marketPrice")
    direct_low_price: Optional[float] = Field(default=None, alias="directLowPrice")
    sub_type_name: Optional[str] = Field(default=None, alias="subTypeName")

    @property
    def spread(self) -> Optional[float]:
        """Difference between high and low price, or ``None`` if either is missing."""
        if self.high_price is None or self.low_price is None:
            return None
        return round(self.high_price - self.low_price, 2)

    @property
    def has_market_price(self) -> bool:
        return self.market_price is not None

    @property
    def is_direct(self) -> bool:
        return self.direct_low_price is not None

    def matches_sub_type(self, sub_type: str) -> bool:
        return (self.sub_type_name or "").lower() == sub_type.lower()

    def __str__(self) -> str:
        amount = self.market_price or self.mid_price or 0
        return f"${amount:.2f} ({self.sub_type_name})"


class Product(_CatalogEntity):
    """A catalog item (single card, booster pack, box) within a group.

    Game-specific attributes arrive in the API's ``extendedData`` list of
    ``{"name": ..., "value": ...}`` records and are exposed as a plain
    ``dict[str, str]`` in :attr:`extended_data`. Well-known keys have named
    properties (:attr:`rarity`, :attr:`hp`, :attr:`card_type`, ...); any
    other key is available through item access::

        product["Rarity"]        # same as product.rarity
        product["Flavor Text"]   # None if the game has no such field

    :attr:`prices` is empty until populated by
    :meth:`~tcgcsv.client.TcgCsvClient.products_with_prices` or
    :meth:`fetch_prices`.
    """

    id: int = Field(alias="productId")
    name: str
    clean_name: Optional[str] = Field(default=None, alias="cleanName")
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    category_id: Optional[int] = Field(default=None, alias="categoryId")
    group_id: Optional[int] = Field(default=None, alias="groupId")
    url: Optional[str] = None
    modified_on: Optional[str] = Field(default=None, alias="modifiedOn")
    image_count: Optional[int] = Field(default=None, alias="imageCount")
    presale_info: Optional[dict[str, Any]] = Field(default=None, alias="presaleInfo")
    extended_data: dict[str, str] = Field(default_factory=dict, alias="extendedData")
    prices: list[Price] = Field(default_factory=list, exclude=True)

    @field_validator("extended_data", mode="before")
    @classmethod
    def _parse_extended_data(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, list):
            parsed: dict[str, str] = {}
            for entry in value:
                if not isinstance(entry, dict) or entry.get("name") is None:
                    continue
                raw = entry.get("value")
                parsed[str(entry["name"])] = "" if raw is None else str(raw)
            return parsed
        return value

    # -- Extended data ---------------------------------------------------

    def __getitem__(self, field_name: str) -> Optional[str]:
        return self.extended_data.get(field_name)

    @property
    def extended_fields(self) -> list[str]:
        """Names of all extended data fields present on this product."""
        return list(self.extended_data)

    @property
    def rarity(self) -> Optional[str]:
        return self.extended_data.get("Rarity")

    @property
    def number(self) -> Optional[str]:
        return self.extended_data.get("Number")

    @property
    def card_type(self) -> Optional[str]:
        return self.extended_data.get("Card Type")

    @property
    def hp(self) -> Optional[str]:
        return self.extended_data.get("HP")

    @property
    def stage(self) -> Optional[str]:
        return self.extended_data.get("Stage")

    @property
    def card_text(self) -> Optional[str]:
        return self.extended_data.get("CardText")

    @property
    def attack_1(self) -> Optional[str]:
        return self.extended_data.get("Attack 1")

    @property
    def attack_2(self) -> Optional[str]:
        return self.extended_data.get("Attack 2")

    @property
    def attack_3(self) -> Optional[str]:
        return self.extended_data.get("Attack 3")

    @property
    def weakness(self) -> Optional[str]:
        return self.extended_data.get("Weakness")

    @property
    def resistance(self) -> Optional[str]:
        return self.extended_data.get("Resistance")

    @property
    def retreat_cost(self) -> Optional[str]:
        return self.extended_data.get("RetreatCost")

    @property
    def upc(self) -> Optional[str]:
        return self.extended_data.get("UPC")

    @property
    def description(self) -> Optional[str]:
        return self.extended_data.get("Description")

    @property
    def is_presale(self) -> bool:
        return bool(self.presale_info and self.presale_info.get("isPresale"))

    # -- Prices ----------------------------------------------------------

    @property
    def prices_loaded(self) -> bool:
        return bool(self.prices)

    def fetch_prices(self) -> Product:
        """Load this product's prices from its group if not already loaded.

        Fetches the whole group's price list (served from the cache when
        fresh) and keeps the entries for this product.

        Returns:
            ``self``, for chaining.

        Raises:
            TcgCsvError: If the product is not bound to a client.
        """
        if self.prices:
            return self
        client = self._require_client()
        group_prices = client.prices(self.category_id, self.group_id)
        self.prices = [p for p in group_prices if p.product_id == self.id]
        return self

    def price_summary(self) -> dict[str, dict[str, Optional[float]]]:
        """Return every price variant keyed by sub-type name.

        Example::

            {"Holofoil": {"low": 15.0, "mid": 22.5, "high": 45.0,
                          "market": 20.99, "direct_low": 18.5}}
        """
        if not self.prices_loaded:
            self.fetch_prices()
        return {
            (p.sub_type_name or ""): {
                "low": p.low_price,
                "mid": p.mid_price,
                "high": p.high_price,
                "market": p.market_price,
                "direct_low": p.direct_low_price,
            }
            for p in self.prices
        }

    def market_price(self, sub_type: Optional[str] = None) -> Optional[float]:
        """Market price for *sub_type*, or for the first variant when omitted."""
        price = self._price_for(sub_type)
        return price.market_price if price else None

    def low_price(self, sub_type: Optional[str] = None) -> Optional[float]:
        price = self._price_for(sub_type)
        return price.low_price if price else None

    def mid_price(self, sub_type: Optional[str] = None) -> Optional[float]:
        price = self._price_for(sub_type)
        return price.mid_price if price else None

    def high_price(self, sub_type: Optional[str] = None) -> Optional[float]:
        price = self._price_for(sub_type)
        return price.high_price if price else None

    @property
    def price_variants(self) -> list[str]:
        """Sub-type names with price data, e.g. ``["Normal", "Holofoil"]``."""
        return [p.sub_type_name for p in self.prices if p.sub_type_name is not None]

    def _price_for(self, sub_type: Optional[str]) -> Optional[Price]:
        if sub_type is None:
            return self.prices[0] if self.prices else None
        for price in self.prices:
            if price.matches_sub_type(sub_type):
                return price
        return None

    def __str__(self) -> str:
        return self.name
