"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~authhook.exceptions.AuthHookError` subclass.
Shell wrappers can inspect the exit code to tell a rejected credential from
a misconfigured registry without parsing stderr.

Example::

    $ authhook call billing-api GET /invoices
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- token could not be acquired or was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authentication failed: token acquisition failed or the server rejected it."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CONFIG_ERROR = 7
"""The credential registry or a credential source is misconfigured."""
