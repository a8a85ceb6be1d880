"""Configuration management with atomic writes and precedence resolution.

This module handles all persistent configuration for tcgcsv:

* **Directory layout** -- everything lives under ``~/.tcg_csv/``: the
  config file at ``~/.tcg_csv/config.json`` and the response cache at
  ``~/.tcg_csv/cache/``. The cache location is fixed so that existing
  caches written by other TCGCSV clients are picked up unchanged.
* **Global config** -- a single :class:`~tcgcsv.models.GlobalConfig`
  JSON file storing cache, request, and output defaults.
* **Layering** -- :func:`resolve_config` overlays CLI flags and
  ``TCG_CSV_*`` environment variables on top of the config file to give the
  settings one command runs with.

Files are replaced in one rename, never rewritten in place
(:func:`atomic_write`). The response cache relies on the same helper so
that a concurrent reader never observes a half-written payload.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from tcgcsv.exceptions import ConfigError
from tcgcsv.models import GlobalConfig

_APP_DIRNAME = ".tcg_csv"
_CONFIG_FILENAME = "config.json"

ENV_CACHE_DIR = "TCG_CSV_CACHE_DIR"
ENV_PRICE_TTL = "TCG_CSV_PRICE_TTL"
ENV_NO_CACHE = "TCG_CSV_NO_CACHE"
ENV_BASE_URL = "TCG_CSV_BASE_URL"

_TRUTHY = {"1", "true", "yes", "on"}


# --- Paths ---


def get_base_dir() -> Path:
    """Return ``~/.tcg_csv`` without creating it."""
    return Path.home() / _APP_DIRNAME


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    Returns:
        Absolute path to ``~/.tcg_csv`` (guaranteed to exist).
    """
    path = get_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_cache_dir() -> Path:
    """Return the default cache directory, ``~/.tcg_csv/cache``.

    The directory is not created here; :class:`~tcgcsv.cache.FileCache`
    creates it when it is first opened.
    """
    return get_base_dir() / "cache"


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* so readers see either the old or new bytes.

    The payload goes to a hidden sibling (``.<name>.<random>.tmp``) on the
    same filesystem, is fsynced, then renamed over *path*. If anything
    fails, including ``KeyboardInterrupt``, the sibling is removed and
    *path* is left as it was.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(handle.name)
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_base_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from ``~/.tcg_csv/config.json``.

    Returns:
        The deserialised :class:`~tcgcsv.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Write *config* to ``~/.tcg_csv/config.json``.

    Args:
        config: The configuration to save.
    """
    get_config_dir()
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer number of seconds, got: {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got: {value}")
    return value


def resolve_config(
    cli_cache_dir: Optional[str] = None,
    cli_no_cache: bool = False,
    cli_price_ttl: Optional[int] = None,
) -> GlobalConfig:
    """Build the effective configuration for one invocation.

    Precedence (high to low):
        1. CLI flags (``cli_cache_dir``, ``cli_no_cache``, ``cli_price_ttl``)
        2. Environment variables (``TCG_CSV_CACHE_DIR``,
           ``TCG_CSV_PRICE_TTL``, ``TCG_CSV_NO_CACHE``, ``TCG_CSV_BASE_URL``)
        3. User config (``~/.tcg_csv/config.json``)
        4. Defaults

    Returns:
        The effective :class:`~tcgcsv.models.GlobalConfig`.

    Raises:
        ConfigError: If the config file is invalid or an environment
            variable holds a value of the wrong type.
    """
    # 4 + 3. Defaults filled in by the model
    config = load_global_config()

    # 2. Environment
    env_dir = os.environ.get(ENV_CACHE_DIR)
    if env_dir:
        config.cache.directory = env_dir
    env_ttl = _env_int(ENV_PRICE_TTL)
    if env_ttl is not None:
        config.cache.price_ttl_seconds = env_ttl
    if os.environ.get(ENV_NO_CACHE, "").strip().lower() in _TRUTHY:
        config.cache.enabled = False
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        config.request.base_url = env_base_url

    # 1. CLI flags
    if cli_cache_dir is not None:
        config.cache.directory = cli_cache_dir
    if cli_price_ttl is not None:
        if cli_price_ttl < 0:
            raise ConfigError(f"--price-ttl must not be negative, got: {cli_price_ttl}")
        config.cache.price_ttl_seconds = cli_price_ttl
    if cli_no_cache:
        config.cache.enabled = False

    return config
