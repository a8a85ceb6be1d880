"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~tcgcsv.exceptions.TcgCsvError` subclass.
Shell scripts wrapping the ``tcgcsv`` command can inspect the exit code to
tell a missing resource apart from an unreachable API or a broken cache
directory without parsing stderr.

Example::

    $ tcgcsv groups 999
    $ echo $?
    4   # EXIT_NOT_FOUND -- the category does not exist upstream
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404, or no matching name)."""

EXIT_API_ERROR = 5
"""The remote API failed (non-2xx status, malformed body, or network error)."""

EXIT_STORAGE_ERROR = 6
"""The on-disk cache could not be read or written."""
