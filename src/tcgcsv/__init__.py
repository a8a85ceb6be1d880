"""tcgcsv -- Python client for the TCGCSV trading card game data API.

Retrieves the TCGplayer catalog mirrored at https://tcgcsv.com
(categories, groups/sets, products, prices) and caches responses on disk
under ``~/.tcg_csv/cache``. Catalog data is cached forever; prices are
re-fetched after 24 hours by default.

Typical use creates an explicit client::

    from tcgcsv import TcgCsvClient

    client = TcgCsvClient()
    lugia = client.find_card("Lugia VSTAR", category="Pokemon", group="Silver Tempest")

For quick scripts, module-level shortcuts share one lazily created client
configured from ``~/.tcg_csv/config.json`` and ``TCG_CSV_*`` environment
variables::

    import tcgcsv

    tcgcsv.card_price("Charizard", category="Pokemon", group="Base Set")

Modules:
    app: Typer application and CLI entry point.
    cache: On-disk response cache.
    client: Transport, fetch coordinator, and catalog client.
    config: Config file, paths, and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    models: Pydantic models for configuration and catalog entities.
    output: stdout/stderr formatting system with Rich support.
    product_search: Product search filters.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

__version__ = "0.3.0"

if TYPE_CHECKING:
    from tcgcsv.client.catalog import TcgCsvClient
    from tcgcsv.models import Category, Group, Price, Product

__all__ = [
    "TcgCsvClient",
    "__version__",
    "card_price",
    "categories",
    "category",
    "find_card",
    "find_cards",
    "get_client",
    "groups",
    "prefetch",
    "prices",
    "products",
    "reset_client",
    "search",
    "set_client",
]


def __getattr__(name: str) -> Any:
    if name == "TcgCsvClient":
        from tcgcsv.client.catalog import TcgCsvClient

        return TcgCsvClient
    raise AttributeError(f"module 'tcgcsv' has no attribute {name!r}")


# ------------------------------------------------------------------ #
# Shared default client
# ------------------------------------------------------------------ #

_client: Optional[TcgCsvClient] = None


def get_client() -> TcgCsvClient:
    """Return the shared client, creating it from the resolved config on first use."""
    global _client
    if _client is None:
        from tcgcsv.client.catalog import TcgCsvClient
        from tcgcsv.config import resolve_config

        _client = TcgCsvClient.from_config(resolve_config())
    return _client


def set_client(client: TcgCsvClient) -> None:
    """Install *client* as the shared client used by the module-level shortcuts."""
    global _client
    _client = client


def reset_client() -> None:
    """Close and forget the shared client; the next shortcut call creates a new one."""
    global _client
    if _client is not None:
        _client.close()
    _client = None


# ------------------------------------------------------------------ #
# Module-level shortcuts
# ------------------------------------------------------------------ #


def categories() -> list[Category]:
    return get_client().categories()


def category(name_or_id: int | str) -> Optional[Category]:
    return get_client().category(name_or_id)


def groups(category_id: int) -> list[Group]:
    return get_client().groups(category_id)


def products(category_id: int, group_id: int) -> list[Product]:
    return get_client().products(category_id, group_id)


def prices(category_id: int, group_id: int) -> list[Price]:
    return get_client().prices(category_id, group_id)


def search(query: str, **filters: Any) -> list[Product]:
    return get_client().search(query, **filters)


def find_card(name: str, **kwargs: Any) -> Optional[Product]:
    return get_client().find_card(name, **kwargs)


def find_cards(name: str, **kwargs: Any) -> list[Product]:
    return get_client().find_cards(name, **kwargs)


def card_price(name: str, **kwargs: Any) -> dict[str, dict[str, Optional[float]]]:
    return get_client().card_price(name, **kwargs)


def prefetch(category_name_or_id: int | str, **kwargs: Any) -> dict[str, Any]:
    return get_client().prefetch(category_name_or_id, **kwargs)
