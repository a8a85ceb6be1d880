"""Catalog commands -- browse categories, groups, products, and prices.

Every command builds a :class:`~tcgcsv.client.TcgCsvClient` from the
resolved configuration (see :func:`~tcgcsv.commands.open_client`), so the
global ``--no-cache``, ``--cache-dir`` and ``--price-ttl`` flags apply.

Category and group arguments accept either a numeric ID or a name;
names match case-insensitively, exact first and then by substring.
"""

from __future__ import annotations

from typing import Optional

import typer

from tcgcsv.commands import format_price, id_or_name, open_client
from tcgcsv.output import format_response, print_table, success


def categories_command(ctx: typer.Context) -> None:
    """List every trading card game category.

    Example::

        tcgcsv categories
        tcgcsv --json categories
    """
    with open_client(ctx) as client:
        rows = [
            [str(c.id), c.name, c.display_name or ""]
            for c in client.categories()
        ]
    print_table(["ID", "Name", "Display Name"], rows, title="Categories")


def groups_command(
    ctx: typer.Context,
    category: str = typer.Argument(help="Category ID or name."),
) -> None:
    """List the groups (sets) of a category.

    Example::

        tcgcsv groups Pokemon
        tcgcsv groups 3
    """
    with open_client(ctx) as client:
        category_id = client.resolve_category_id(id_or_name(category))
        rows = [
            [str(g.id), g.name, g.abbreviation or "", (g.published_on or "")[:10]]
            for g in client.groups(category_id)
        ]
    print_table(["ID", "Name", "Abbreviation", "Published"], rows, title="Groups")


def products_command(
    ctx: typer.Context,
    category: str = typer.Argument(help="Category ID or name."),
    group: str = typer.Argument(help="Group ID or name."),
    rarity: Optional[str] = typer.Option(None, "--rarity", help="Rarity substring filter."),
) -> None:
    """List the products of a group.

    Example::

        tcgcsv products Pokemon "Silver Tempest"
        tcgcsv products 3 3170 --rarity "secret"
    """
    with open_client(ctx) as client:
        category_id = client.resolve_category_id(id_or_name(category))
        group_id = client.resolve_group_id(category_id, id_or_name(group))
        if rarity:
            products = client.by_rarity(category_id, group_id, rarity)
        else:
            products = client.products(category_id, group_id)
    rows = [[str(p.id), p.name, p.rarity or "", p.number or ""] for p in products]
    print_table(["ID", "Name", "Rarity", "Number"], rows, title="Products")


def prices_command(
    ctx: typer.Context,
    category: str = typer.Argument(help="Category ID or name."),
    group: str = typer.Argument(help="Group ID or name."),
) -> None:
    """List the price records of a group, one row per product variant."""
    with open_client(ctx) as client:
        category_id = client.resolve_category_id(id_or_name(category))
        group_id = client.resolve_group_id(category_id, id_or_name(group))
        prices = client.prices(category_id, group_id)
    rows = [
        [
            str(p.product_id),
            p.sub_type_name or "",
            format_price(p.low_price),
            format_price(p.mid_price),
            format_price(p.high_price),
            format_price(p.market_price),
            format_price(p.direct_low_price),
        ]
        for p in prices
    ]
    print_table(
        ["Product ID", "Variant", "Low", "Mid", "High", "Market", "Direct Low"],
        rows,
        title="Prices",
    )


def search_command(
    ctx: typer.Context,
    query: str = typer.Argument(help="Text to look for in product names."),
    category: str = typer.Option(..., "--category", "-c", help="Category ID or name."),
    group: Optional[str] = typer.Option(
        None, "--group", "-g", help="Group ID or name (default: every group)."
    ),
    rarity: Optional[str] = typer.Option(None, "--rarity", help="Rarity substring filter."),
    min_price: Optional[float] = typer.Option(None, "--min-price", help="Lowest market price."),
    max_price: Optional[float] = typer.Option(None, "--max-price", help="Highest market price."),
    with_prices: bool = typer.Option(False, "--prices", help="Include market prices."),
) -> None:
    """Search products by name within a category.

    Example::

        tcgcsv search Lugia --category Pokemon --group "Silver Tempest"
        tcgcsv search Charizard -c 3 --min-price 100
    """
    with open_client(ctx) as client:
        results = client.search(
            query,
            category=id_or_name(category),
            group=id_or_name(group) if group is not None else None,
            include_prices=with_prices,
            rarity=rarity,
            min_price=min_price,
            max_price=max_price,
        )
    show_prices = with_prices or min_price is not None or max_price is not None
    headers = ["ID", "Name", "Rarity"]
    if show_prices:
        headers.append("Market")
    rows = []
    for p in results:
        row = [str(p.id), p.name, p.rarity or ""]
        if show_prices:
            row.append(format_price(p.market_price()))
        rows.append(row)
    print_table(headers, rows, title=f"Search: {query}")


def card_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Card name (substring match)."),
    category: str = typer.Option(..., "--category", "-c", help="Category ID or name."),
    group: str = typer.Option(..., "--group", "-g", help="Group ID or name."),
) -> None:
    """Show every price variant of a card.

    Example::

        tcgcsv card "Lugia VSTAR" -c Pokemon -g "Silver Tempest"
    """
    with open_client(ctx) as client:
        summary = client.card_price(name, category=id_or_name(category), group=id_or_name(group))
    rows = [
        [
            variant,
            format_price(values["low"]),
            format_price(values["mid"]),
            format_price(values["high"]),
            format_price(values["market"]),
            format_price(values["direct_low"]),
        ]
        for variant, values in summary.items()
    ]
    print_table(["Variant", "Low", "Mid", "High", "Market", "Direct Low"], rows, title=name)


def top_command(
    ctx: typer.Context,
    category: str = typer.Argument(help="Category ID or name."),
    group: str = typer.Argument(help="Group ID or name."),
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Number of cards to show."),
    sub_type: Optional[str] = typer.Option(
        None, "--sub-type", help="Only rank by this variant (e.g. Holofoil)."
    ),
) -> None:
    """Show the most valuable products of a group by market price."""
    with open_client(ctx) as client:
        category_id = client.resolve_category_id(id_or_name(category))
        group_id = client.resolve_group_id(category_id, id_or_name(group))
        top = client.top_cards(category_id, group_id, limit=limit, sub_type=sub_type)
    rows = [
        [str(rank), p.name, p.rarity or "", format_price(p.market_price(sub_type))]
        for rank, p in enumerate(top, start=1)
    ]
    print_table(["Rank", "Name", "Rarity", "Market"], rows, title="Top cards")


def prefetch_command(
    ctx: typer.Context,
    category: str = typer.Argument(help="Category ID or name."),
    groups: Optional[list[str]] = typer.Option(
        None, "--group", "-g", help="Only these groups (repeatable)."
    ),
) -> None:
    """Download products and prices of a category into the cache.

    Example::

        tcgcsv prefetch Pokemon --group "Silver Tempest" --group "Base Set"
    """
    with open_client(ctx) as client:
        result = client.prefetch(
            id_or_name(category),
            groups=[id_or_name(g) for g in groups] if groups else None,
        )
    success(f"Cached {result['groups_cached']} group(s) for {result['category']}.")
    format_response(result)
