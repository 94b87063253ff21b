"""Auth manager -- the explicit set of authentication handlers.

The :class:`AuthManager` holds the handlers an application uses, fixed at
construction time. :meth:`~AuthManager.authenticate` runs every handler
whose :attr:`~authhook.auth.base.AuthenticationHandler.client_type`
accepts the request, in the order they were given.

For most use cases, call :func:`create_default_manager` with a credential
resolver to get a manager with the HTTP client handler installed.

See Also:
    :class:`~authhook.auth.dispatcher.HttpClientAuthenticationHandler`
    :class:`~authhook.client.AsyncClient` -- calls :meth:`AuthManager.authenticate`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, Optional, Union

from authhook.auth.base import AuthenticationHandler
from authhook.models import ServiceReference

if TYPE_CHECKING:
    from authhook.auth.confidential_client import ConfidentialClientFactory
    from authhook.protocols import CredentialResolver

logger = logging.getLogger(__name__)


class AuthManager:
    """Immutable, ordered collection of authentication handlers.

    Example::

        manager = AuthManager([HttpClientAuthenticationHandler(registry)])
        request = manager.authenticate("billing-api", request)
    """

    def __init__(self, handlers: Iterable[AuthenticationHandler] = ()) -> None:
        self._handlers: tuple[AuthenticationHandler, ...] = tuple(handlers)

    @property
    def handlers(self) -> tuple[AuthenticationHandler, ...]:
        """All handlers, in application order."""
        return self._handlers

    def handlers_for(self, request: Any) -> list[AuthenticationHandler]:
        """Return the handlers that accept *request*."""
        return [handler for handler in self._handlers if handler.accepts(request)]

    def authenticate(self, destination: Union[str, ServiceReference], request: Any) -> Any:
        """Apply every matching handler to *request* for *destination*.

        Returns:
            The request returned by the last matching handler, or *request*
            itself when no handler accepts its type.

        Raises:
            ConfigError: Propagated from a handler that cannot deal with the
                destination's credential configuration.
        """
        handlers = self.handlers_for(request)
        if not handlers:
            logger.debug(
                "No authentication handler accepts %s", type(request).__name__
            )
            return request
        for handler in handlers:
            request = handler.handle(destination, request)
        return request

    def client_types(self) -> list[str]:
        """Return the names of the request types with at least one handler."""
        return sorted({handler.client_type.__name__ for handler in self._handlers})


def create_default_manager(
    resolver: CredentialResolver,
    strict: bool = False,
    confidential_clients: Optional[ConfidentialClientFactory] = None,
) -> AuthManager:
    """Create an :class:`AuthManager` with the built-in HTTP client handler.

    Args:
        resolver: Credential lookup for destinations.
        strict: Fail on destinations with several credentials instead of
            warning.
        confidential_clients: Shared confidential client factory.

    Returns:
        A manager holding one
        :class:`~authhook.auth.dispatcher.HttpClientAuthenticationHandler`.
    """
    from authhook.auth.dispatcher import HttpClientAuthenticationHandler

    return AuthManager(
        [
            HttpClientAuthenticationHandler(
                resolver,
                confidential_clients=confidential_clients,
                strict=strict,
            )
        ]
    )
