"""Exception hierarchy for authhook.

All exceptions inherit from :class:`AuthHookError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`authhook.exit_codes`.
The CLI entry point in :func:`authhook.app.main` catches ``AuthHookError``
and exits with the appropriate code.

Subclass hierarchy::

    AuthHookError (exit 1)
    +-- InvalidUsageError                 (exit 2)
    +-- AuthError                         (exit 3)
    |   +-- TokenAcquisitionError         (exit 3)
    +-- NotFoundError                     (exit 4)
    +-- ServerError                       (exit 5)
    +-- ConnectionError_                  (exit 6)
    +-- ConfigError                       (exit 7)
        +-- UnsupportedCredentialKindError
        +-- AmbiguousCredentialError

A destination without a registered credential is not an error: the
dispatcher leaves such requests untouched.
"""

from __future__ import annotations

from authhook.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class AuthHookError(Exception):
    """Base exception for all authhook errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AuthHookError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(AuthHookError):
    """Raised when the remote API rejects the request's credentials (HTTP 401/403)."""

    exit_code = EXIT_AUTH_FAILURE


class TokenAcquisitionError(AuthError):
    """Raised inside a pre-send callback when a token cannot be acquired.

    The identity provider was unreachable, rejected the credential, or
    returned an unusable response. The send attempt fails and the request
    never leaves the process; the dispatcher stays usable for later sends.

    Args:
        message: Human-readable error description.
        destination: Name of the destination whose token was requested.
    """

    def __init__(self, message: str, destination: str | None = None):
        super().__init__(message)
        self.destination = destination


class NotFoundError(AuthHookError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(AuthHookError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(AuthHookError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(AuthHookError):
    """Raised for configuration problems (bad registry file, unresolvable credential source)."""

    exit_code = EXIT_CONFIG_ERROR


class UnsupportedCredentialKindError(ConfigError):
    """Raised at dispatch time for a credential descriptor no strategy handles.

    Args:
        kind: Name of the offending descriptor type.
    """

    def __init__(self, kind: str):
        super().__init__(
            f"Unhandled credential type '{kind}' encountered in authentication handler."
        )
        self.kind = kind


class AmbiguousCredentialError(ConfigError):
    """Raised in strict mode when a destination resolves to several credentials.

    Args:
        destination: The destination name.
        count: How many credentials were resolved.
    """

    def __init__(self, destination: str, count: int):
        super().__init__(
            f"Destination '{destination}' has {count} credentials registered; "
            "expected at most one."
        )
        self.destination = destination
        self.count = count
