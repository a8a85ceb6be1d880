"""Terminal output for the ``tcgcsv`` command.

Data and diagnostics never share a stream:

* stdout carries results only (catalog tables, prices, cache stats,
  configuration) so it can be piped into ``jq``, ``cut`` or a spreadsheet.
* stderr carries everything addressed to the person at the keyboard:
  status lines, warnings, errors and ``--verbose`` log records.

Rendering depends on the resolved :class:`OutputFormat`. Interactive
terminals get Rich tables; pipes get tab-separated text unless ``--json``
is given. ``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` switch colour off
(see https://clig.dev/).

Commands call the module-level helpers (:func:`print_table`,
:func:`format_response`, :func:`success` and friends), which delegate to
the :class:`OutputManager` installed by :func:`~tcgcsv.app.main_callback`.
Library modules never print; they log, and :func:`configure_logging`
points the ``tcgcsv`` logger at stderr.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """How results are written to stdout.

    ``AUTO`` becomes ``RICH`` on a colour-capable TTY and ``PLAIN``
    everywhere else.
    """

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Owns the stdout and stderr consoles and the user's display flags.

    Args:
        format: Requested format; ``AUTO`` is resolved on construction.
        no_color: Strip colour and markup from both streams.
        quiet: Drop ``info`` and ``success`` messages. Warnings and errors
            are always shown.
        verbose: Let debug log records through (see
            :func:`configure_logging`).
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose

        if format == OutputFormat.AUTO:
            interactive = _is_tty() and not self._no_color
            format = OutputFormat.RICH if interactive else OutputFormat.PLAIN
        self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format == OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        return self._stderr

    # ------------------------------------------------------------------ #
    # stdout
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows of cell strings to stdout.

        JSON mode emits one object per row keyed by header; plain mode emits
        a header line followed by tab-separated rows. *title* is only shown
        by the Rich table.
        """
        if self._format == OutputFormat.JSON:
            payload = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(payload, indent=2, ensure_ascii=False))
            return

        if self._format == OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self.print_data("\t".join(line))
            return

        table = Table(title=title, header_style="bold cyan")
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def format_response(self, data: Any) -> None:
        """Write a structured value (mapping, list, model or scalar) to stdout.

        Pydantic models are dumped in JSON mode first. Outside JSON mode,
        nested mappings are shown with dotted keys, the same keys
        ``tcgcsv config set`` accepts.
        """
        data = _dump(data)
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps(data, indent=2, ensure_ascii=False, default=str))
        elif isinstance(data, dict):
            self._print_mapping(_flatten(data))
        elif isinstance(data, list):
            self._print_sequence(data)
        else:
            self.print_data(str(data))

    def _print_mapping(self, flat: dict[str, Any]) -> None:
        if self._format == OutputFormat.PLAIN:
            for key, value in flat.items():
                self.print_data(f"{key}\t{_cell(value)}")
            return
        table = Table(show_header=False, box=None, pad_edge=False)
        table.add_column(style="bold cyan")
        table.add_column()
        for key, value in flat.items():
            table.add_row(key, _cell(value))
        self._stdout.print(table)

    def _print_sequence(self, items: list[Any]) -> None:
        if self._format == OutputFormat.PLAIN:
            for item in items:
                values = item.values() if isinstance(item, dict) else [item]
                self.print_data("\t".join(_cell(v) for v in values))
            return
        text = json.dumps(items, indent=2, ensure_ascii=False, default=str)
        self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))

    # ------------------------------------------------------------------ #
    # stderr
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        if not self._quiet:
            self._notify(message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._notify(message, style="green")

    def warning(self, message: str) -> None:
        self._notify(message, label="Warning", style="yellow")

    def error(self, message: str) -> None:
        self._notify(message, label="Error", style="bold red")

    def _notify(self, message: str, label: str = "", style: str = "") -> None:
        if self._no_color:
            prefix = f"{label}: " if label else ""
            print(f"{prefix}{message}", file=sys.stderr, flush=True)
        elif label:
            self._stderr.print(f"[{style}]{label}:[/{style}] {message}")
        elif style:
            self._stderr.print(f"[{style}]{message}[/{style}]")
        else:
            self._stderr.print(message)


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """True when ``NO_COLOR`` is set to anything or ``TERM`` is ``dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return data


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            flat.update(_flatten(value, prefix=f"{name}."))
        else:
            flat[name] = value
    return flat


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def configure_logging(output: OutputManager) -> None:
    """Route ``tcgcsv`` log records to stderr.

    Debug records (cache hits, misses, evictions, requests) are shown with
    ``--verbose``; otherwise only warnings and errors are. Replaces any
    handler installed by an earlier call.
    """
    logger = logging.getLogger("tcgcsv")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    handler = RichHandler(
        console=output.stderr_console,
        show_path=False,
        markup=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.WARNING)
    logger.propagate = False


# ------------------------------------------------------------------ #
# Process-wide instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (used between tests)."""
    global _output
    _output = None


def format_response(data: Any) -> None:
    get_output().format_response(data)


def print_table(
    headers: list[str],
    rows: list[list[str]],
    title: Optional[str] = None,
) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def error(message: str) -> None:
    get_output().error(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)
