"""Config commands -- view and modify ``~/.tcg_csv/config.json``.

Provides the ``tcgcsv config`` sub-command group. The file holds the
lowest-precedence defaults (:class:`~tcgcsv.models.GlobalConfig`);
``TCG_CSV_*`` environment variables and CLI flags still override it.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError

from tcgcsv.exit_codes import EXIT_INVALID_USAGE
from tcgcsv.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    effective: bool = typer.Option(
        False, "--effective", help="Apply environment overrides before showing."
    ),
) -> None:
    """Show the current configuration.

    Example::

        tcgcsv config show
        tcgcsv --json config show --effective
    """
    from tcgcsv.config import get_base_dir, load_global_config, resolve_config

    config = resolve_config() if effective else load_global_config()
    info(f"Config directory: {get_base_dir()}")
    format_response(config)


def _coerce(key: str, current: Any, value: str) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes", "on")
    if isinstance(current, int):
        try:
            return int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    if isinstance(current, float):
        try:
            return float(value)
        except ValueError:
            error(f"Expected number for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    if current is None and value.lower() in ("", "none", "null"):
        return None
    return value


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'cache.price_ttl_seconds')."
    ),
    value: str = typer.Argument(help="Value to set ('none' clears an optional key)."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the field's current value and the
    result is validated before it is written.

    Example::

        tcgcsv config set cache.price_ttl_seconds 3600
        tcgcsv config set cache.directory /data/tcg-cache
        tcgcsv config set request.max_retries 3
    """
    from tcgcsv.config import load_global_config, save_global_config
    from tcgcsv.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    coerced = _coerce(key, target[final_key], value)
    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.
    """
    from tcgcsv.config import save_global_config
    from tcgcsv.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
