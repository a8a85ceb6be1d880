"""Exception hierarchy for tcgcsv.

All exceptions inherit from :class:`TcgCsvError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`tcgcsv.exit_codes`.
The CLI entry point :func:`tcgcsv.app.main` catches ``TcgCsvError`` and
exits with the appropriate code. Library callers catch the specific
subclasses they care about.

Subclass hierarchy::

    TcgCsvError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- NotFoundError          (exit 4)
    +-- ApiError               (exit 5)
    +-- StorageError           (exit 6)
    |   +-- CacheCorruptionError
    +-- ConfigError            (exit 1)

None of these outcomes is ever written to the response cache.
"""

from __future__ import annotations

from typing import Optional

from tcgcsv.exit_codes import (
    EXIT_API_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_STORAGE_ERROR,
)


class TcgCsvError(Exception):
    """Base exception for all tcgcsv errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`tcgcsv.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(TcgCsvError):
    """Raised for invalid arguments, e.g. a search without a category."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(TcgCsvError):
    """Raised when a resource does not exist upstream (HTTP 404).

    Also raised when a category, group, or card name cannot be resolved,
    in which case :attr:`path` is ``None``.

    Args:
        message: Error description.
        path: The resource path that returned 404, if any.
    """

    exit_code = EXIT_NOT_FOUND

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ApiError(TcgCsvError):
    """Raised for any other upstream failure.

    Covers non-2xx / non-404 status codes, response bodies that are not
    valid JSON, and network-level failures (in which case
    :attr:`status_code` is ``None``).

    Args:
        message: Error description.
        path: The resource path being fetched.
        status_code: HTTP status code, when a response was received.
    """

    exit_code = EXIT_API_ERROR

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class StorageError(TcgCsvError):
    """Raised when the cache directory cannot be read, written, or cleaned.

    The originating :class:`OSError` is chained as ``__cause__``.

    Args:
        message: Error description.
        path: The logical resource path involved, if any.
    """

    exit_code = EXIT_STORAGE_ERROR

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class CacheCorruptionError(StorageError):
    """Raised when a cached payload exists on disk but is not valid JSON."""


class ConfigError(TcgCsvError):
    """Raised for configuration problems (invalid JSON, bad values, bad env vars)."""

    exit_code = EXIT_GENERIC_FAILURE
