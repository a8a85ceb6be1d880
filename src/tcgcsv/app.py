"""Typer application and CLI entry point for tcgcsv.

This module wires together the top-level Typer application: the catalog
commands (``categories``, ``groups``, ``products``, ``prices``, ``search``,
``card``, ``top``, ``prefetch``) and the ``cache`` and ``config``
sub-command groups.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs a SIGINT handler, invokes the Typer app,
and turns :class:`~tcgcsv.exceptions.TcgCsvError` into an error line and
the matching exit code.

See Also:
    :mod:`tcgcsv.config`: Configuration resolution for the cache flags.
    :mod:`tcgcsv.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
from typing import TYPE_CHECKING, Any, Optional

import typer

from tcgcsv import __version__
from tcgcsv.exit_codes import EXIT_GENERIC_FAILURE

if TYPE_CHECKING:
    from tcgcsv.output import OutputFormat

app = typer.Typer(
    name="tcgcsv",
    help="Browse TCGplayer categories, sets, cards, and prices from tcgcsv.com.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _configured_format() -> OutputFormat:
    """Output format from ``output.format`` in the config file."""
    from tcgcsv.config import load_global_config
    from tcgcsv.exceptions import ConfigError
    from tcgcsv.output import OutputFormat

    try:
        return OutputFormat(load_global_config().output.format)
    except ConfigError:
        # A broken file is reported by the command that resolves the
        # config; `config reset` must still be able to run.
        return OutputFormat.AUTO


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"tcgcsv {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmations."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the on-disk cache."),
    cache_dir: Optional[str] = typer.Option(
        None, "--cache-dir", help="Cache directory (default: ~/.tcg_csv/cache)."
    ),
    price_ttl: Optional[int] = typer.Option(
        None, "--price-ttl", help="Seconds before cached prices are re-fetched."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~tcgcsv.output.OutputManager` and the
    ``tcgcsv`` logger from CLI flags (``output.format`` from the config file
    applies when neither ``--json`` nor ``--plain`` is given), and stores the
    cache options in the Typer context so that sub-commands can build a
    client via :func:`~tcgcsv.commands.open_client`. Values already present in
    ``ctx.obj`` (e.g. a transport injected by tests) are kept.
    """
    from tcgcsv.output import OutputFormat, OutputManager, configure_logging, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = _configured_format()

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    configure_logging(output)

    ctx.ensure_object(dict)
    ctx.obj["force"] = force
    ctx.obj["no_cache"] = no_cache
    ctx.obj["cache_dir"] = cache_dir
    ctx.obj["price_ttl"] = price_ttl


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from tcgcsv.commands.cache import cache_app  # noqa: E402
from tcgcsv.commands.catalog import (  # noqa: E402
    card_command,
    categories_command,
    groups_command,
    prefetch_command,
    prices_command,
    products_command,
    search_command,
    top_command,
)
from tcgcsv.commands.config import config_app  # noqa: E402

app.command("categories")(categories_command)
app.command("groups")(groups_command)
app.command("products")(products_command)
app.command("prices")(prices_command)
app.command("search")(search_command)
app.command("card")(card_command)
app.command("top")(top_command)
app.command("prefetch")(prefetch_command)
app.add_typer(cache_app, name="cache", help="Inspect and clear the response cache.")
app.add_typer(config_app, name="config", help="Configuration management.")


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``tcgcsv`` console script.

    Unhandled :class:`~tcgcsv.exceptions.TcgCsvError` instances cause a
    clean exit with the error's ``exit_code``. Anything else is reported
    as an unexpected error with a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from tcgcsv.exceptions import TcgCsvError
        from tcgcsv.output import error

        if isinstance(exc, TcgCsvError):
            error(str(exc))
            sys.exit(exc.exit_code)
        error(f"Unexpected error: {exc!r}")
        sys.exit(EXIT_GENERIC_FAILURE)
