"""Cache commands -- inspect and clear the on-disk response cache.

Provides the ``tcgcsv cache`` sub-command group. The cache location and
price TTL follow the same precedence as every other command (CLI flag,
``TCG_CSV_*`` environment variable, config file, default).
"""

from __future__ import annotations

import typer

from tcgcsv.cache import FileCache
from tcgcsv.commands import open_client
from tcgcsv.output import format_response, info, print_table, success, warning


cache_app = typer.Typer(no_args_is_help=True)


def _open_cache(ctx: typer.Context) -> FileCache:
    with open_client(ctx) as client:
        cache = client.cache
    if cache is None:
        warning("Caching is disabled; nothing to inspect.")
        raise typer.Exit()
    return cache


def _format_age(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Show entry counts and disk usage of the cache.

    Example::

        tcgcsv cache stats
        tcgcsv --json cache stats
    """
    cache = _open_cache(ctx)
    format_response(cache.stats())


@cache_app.command("list")
def cache_list(ctx: typer.Context) -> None:
    """List every cached resource with its age and size."""
    cache = _open_cache(ctx)
    entries = sorted(cache.list_entries(), key=lambda e: e.path)
    rows = [
        [e.path, e.resource_class.value, _format_age(e.age), str(e.size)]
        for e in entries
    ]
    print_table(["Path", "Class", "Age", "Size"], rows, title="Cache entries")


@cache_app.command("clear")
def cache_clear(
    ctx: typer.Context,
    prices_only: bool = typer.Option(
        False, "--prices-only", help="Only remove cached prices."
    ),
) -> None:
    """Delete cached responses.

    Without ``--prices-only`` every entry is removed and the whole catalog
    will be downloaded again on next use, so confirmation is asked unless
    ``--force`` is active.

    Example::

        tcgcsv cache clear --prices-only
        tcgcsv --force cache clear
    """
    cache = _open_cache(ctx)
    if prices_only:
        removed = cache.clear_volatile()
        success(f"Removed {removed} cached price entr{'y' if removed == 1 else 'ies'}.")
        return

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm(f"Delete all {cache.count()} cached entries?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    cache.clear_all()
    success(f"Cleared cache at {cache.directory}.")
