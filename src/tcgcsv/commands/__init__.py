"""Built-in CLI commands and the helpers they share."""

from __future__ import annotations

from typing import Optional

import typer

from tcgcsv.client import TcgCsvClient
from tcgcsv.config import resolve_config


def open_client(ctx: typer.Context) -> TcgCsvClient:
    """Build a :class:`~tcgcsv.client.TcgCsvClient` from config and CLI flags.

    Reads ``cache_dir``, ``no_cache`` and ``price_ttl`` from ``ctx.obj``
    (set by :func:`~tcgcsv.app.main_callback`). An optional ``transport``
    entry in ``ctx.obj`` replaces the HTTP transport.
    """
    obj = ctx.obj or {}
    config = resolve_config(
        cli_cache_dir=obj.get("cache_dir"),
        cli_no_cache=obj.get("no_cache", False),
        cli_price_ttl=obj.get("price_ttl"),
    )
    return TcgCsvClient.from_config(config, transport=obj.get("transport"))


def id_or_name(value: str) -> int | str:
    """Treat an all-digit argument as an ID, anything else as a name."""
    value = value.strip()
    return int(value) if value.isdigit() else value


def format_price(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.2f}"
