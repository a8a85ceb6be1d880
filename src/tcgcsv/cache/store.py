"""Disk-backed cache for TCGCSV API responses.

Each cached resource occupies two files in the cache directory::

    <sha256(path)>.json        the decoded response, re-encoded as compact JSON
    <sha256(path)>.json.meta   the original resource path, e.g. /tcgplayer/3/groups

The hash gives every path a filesystem-safe, deterministic name. The
metadata file lets :meth:`FileCache.clear_volatile` and
:meth:`FileCache.list_entries` classify entries without reversing the hash.
The modification time of the data file is the only record of when an entry
was stored; no timestamp is written inside either file.

Both files are written to a temporary name in the cache directory and
renamed into place, so a concurrent reader sees either the previous
payload or the new one. There is no locking: two processes that miss on
the same path both fetch it and the last rename wins.

See Also:
    :mod:`tcgcsv.cache.policy` -- the static/volatile classification and
    TTL rules applied by :meth:`FileCache.contains`.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Optional

from tcgcsv.cache.policy import DEFAULT_PRICE_TTL, classify, is_expired, is_volatile, ttl_for
from tcgcsv.config import atomic_write, default_cache_dir
from tcgcsv.exceptions import CacheCorruptionError, StorageError
from tcgcsv.models import CacheEntryInfo, ResourceClass

logger = logging.getLogger(__name__)

DATA_SUFFIX = ".json"
META_SUFFIX = ".meta"


class FileCache:
    """Content-addressed JSON cache with a per-resource-class TTL.

    Static entries never expire. Volatile (price) entries expire once they
    are older than *price_ttl* seconds and are deleted the next time
    :meth:`contains` looks at them; nothing is evicted in the background.

    Args:
        directory: Cache root. Defaults to ``~/.tcg_csv/cache``. Created if
            missing.
        price_ttl: Maximum age in seconds of a usable price entry.
        clock: Returns the current wall-clock time as a POSIX timestamp.
            Entry age is ``clock() - mtime`` of the data file.

    Raises:
        StorageError: If the cache directory cannot be created.

    Example::

        cache = FileCache("/tmp/tcg-cache", price_ttl=3600)
        cache.write("/tcgplayer/categories", {"results": []})
        if cache.contains("/tcgplayer/categories"):
            data = cache.read("/tcgplayer/categories")
    """

    def __init__(
        self,
        directory: str | Path | None = None,
        price_ttl: int = DEFAULT_PRICE_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._dir = Path(directory).expanduser() if directory is not None else default_cache_dir()
        self._price_ttl = price_ttl
        self._clock = clock
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create cache directory {self._dir}: {exc}") from exc

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def price_ttl(self) -> int:
        return self._price_ttl

    # ------------------------------------------------------------------ #
    # Entry operations
    # ------------------------------------------------------------------ #

    def contains(self, path: str) -> bool:
        """Return whether a usable entry exists for *path*.

        Freshness is evaluated first; a stale entry is then evicted.

        Postcondition: when this returns ``False`` for a path whose entry
        had expired, both the data and the metadata file have been deleted,
        so a following :meth:`read` returns ``None``.

        Raises:
            StorageError: If the entry cannot be inspected or deleted.
        """
        age = self._age(path)
        if age is None:
            return False
        if not is_expired(age, ttl_for(path, self._price_ttl)):
            return True
        logger.debug("Cache entry expired after %.0fs: %s", age, path)
        self._evict(path)
        return False

    def read(self, path: str) -> Any:
        """Return the stored payload for *path*, or ``None`` if there is none.

        Freshness is not checked; callers use :meth:`contains` first.

        Raises:
            CacheCorruptionError: If the stored file is not valid JSON.
            StorageError: If the file exists but cannot be read.
        """
        data_file = self._data_file(path)
        try:
            raw = data_file.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Failed to read cache entry for {path}: {exc}", path=path) from exc
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise CacheCorruptionError(
                f"Corrupt cache entry for {path} at {data_file}: {exc}", path=path
            ) from exc

    def write(self, path: str, payload: Any) -> None:
        """Store *payload* under *path*, replacing any existing entry.

        Raises:
            StorageError: If either file cannot be written.
        """
        data = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
        try:
            atomic_write(self._data_file(path), data)
            atomic_write(self._meta_file(path), path)
        except OSError as exc:
            raise StorageError(f"Failed to write cache entry for {path}: {exc}", path=path) from exc
        logger.debug("Cached %s (%d bytes)", path, len(data))

    def delete(self, path: str) -> None:
        """Remove the entry for *path*. Missing entries are ignored."""
        self._evict(path)

    # ------------------------------------------------------------------ #
    # Bulk invalidation
    # ------------------------------------------------------------------ #

    def clear_all(self) -> None:
        """Delete every entry and metadata record in the cache directory.

        Only cache files are removed; the directory itself and any
        unrelated files in it are kept.
        """
        files = (
            self._glob(f"*{DATA_SUFFIX}")
            + self._glob(f"*{DATA_SUFFIX}{META_SUFFIX}")
            + self._glob(".*.tmp")
        )
        for file in files:
            self._unlink(file)
        logger.debug("Cleared %d cache files from %s", len(files), self._dir)

    def clear_volatile(self) -> int:
        """Delete every price entry, keeping static entries.

        Returns:
            The number of entries removed.
        """
        removed = 0
        for meta_file in self._glob(f"*{DATA_SUFFIX}{META_SUFFIX}"):
            logical = self._read_meta(meta_file)
            if logical is None or not is_volatile(logical):
                continue
            self._unlink(meta_file.with_suffix(""))
            self._unlink(meta_file)
            removed += 1
        logger.debug("Cleared %d price entries from %s", removed, self._dir)
        return removed

    # ------------------------------------------------------------------ #
    # Diagnostics
    # ------------------------------------------------------------------ #

    def count(self) -> int:
        """Number of stored entries."""
        return len(self._glob(f"*{DATA_SUFFIX}"))

    def total_size(self) -> int:
        """Total size in bytes of all entry files (payloads and metadata)."""
        total = 0
        for file in self._glob(f"*{DATA_SUFFIX}") + self._glob(f"*{DATA_SUFFIX}{META_SUFFIX}"):
            try:
                total += file.stat().st_size
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"Cannot stat cache file {file}: {exc}") from exc
        return total

    def list_entries(self) -> list[CacheEntryInfo]:
        """Snapshot of every stored entry, in no particular order.

        An entry whose metadata file is missing is reported under its
        hashed file stem.
        """
        now = self._clock()
        entries: list[CacheEntryInfo] = []
        for data_file in self._glob(f"*{DATA_SUFFIX}"):
            try:
                st = data_file.stat()
            except FileNotFoundError:
                continue
            except OSError as exc:
                raise StorageError(f"Cannot stat cache file {data_file}: {exc}") from exc
            meta_file = data_file.with_name(data_file.name + META_SUFFIX)
            logical = self._read_meta(meta_file) or data_file.stem
            entries.append(
                CacheEntryInfo(
                    path=logical,
                    age=max(0.0, now - st.st_mtime),
                    size=st.st_size,
                    resource_class=classify(logical),
                )
            )
        return entries

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``directory``, ``count``, ``size`` (bytes),
            ``price_ttl`` (seconds), ``static_entries`` and
            ``volatile_entries``.
        """
        entries = self.list_entries()
        volatile = sum(1 for e in entries if e.resource_class is ResourceClass.VOLATILE)
        return {
            "directory": str(self._dir),
            "count": len(entries),
            "size": self.total_size(),
            "price_ttl": self._price_ttl,
            "static_entries": len(entries) - volatile,
            "volatile_entries": volatile,
        }

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _key(self, path: str) -> str:
        return hashlib.sha256(path.encode("utf-8")).hexdigest()

    def _data_file(self, path: str) -> Path:
        return self._dir / f"{self._key(path)}{DATA_SUFFIX}"

    def _meta_file(self, path: str) -> Path:
        return self._dir / f"{self._key(path)}{DATA_SUFFIX}{META_SUFFIX}"

    def _age(self, path: str) -> Optional[float]:
        """Seconds since *path* was written, or ``None`` if it is not cached."""
        try:
            mtime = self._data_file(path).stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot inspect cache entry for {path}: {exc}", path=path) from exc
        return self._clock() - mtime

    def _evict(self, path: str) -> None:
        self._unlink(self._data_file(path), path)
        self._unlink(self._meta_file(path), path)

    def _unlink(self, file: Path, path: Optional[str] = None) -> None:
        try:
            file.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to delete cache file {file}: {exc}", path=path) from exc

    def _read_meta(self, meta_file: Path) -> Optional[str]:
        try:
            return meta_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"Cannot read cache metadata {meta_file}: {exc}") from exc

    def _glob(self, pattern: str) -> list[Path]:
        try:
            return [p for p in self._dir.glob(pattern) if p.is_file()]
        except OSError as exc:
            raise StorageError(f"Cannot list cache directory {self._dir}: {exc}") from exc
