"""Abstract base class for authentication handlers.

An authentication handler prepares one kind of client request for sending:
given the request's destination it decides whether and how the request is
authenticated, and registers whatever deferred work that needs on the
request. Handlers never send requests and never perform I/O themselves.

Each handler declares the request type it accepts through
:attr:`AuthenticationHandler.client_type`; the
:class:`~authhook.auth.manager.AuthManager` uses it to pick the handlers
for a given request.

See Also:
    :class:`~authhook.auth.dispatcher.HttpClientAuthenticationHandler`
    for the handler attached to :class:`~authhook.client.OutboundRequest`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Union

from authhook.models import ServiceReference


class AuthenticationHandler(ABC):
    """Base class every authentication handler extends.

    Subclasses provide:

    1. :attr:`client_type` -- the request class the handler accepts.
    2. :meth:`handle` -- attaches authentication to a request bound for a
       destination and returns the same request.
    """

    @property
    @abstractmethod
    def client_type(self) -> type:
        """Return the request class this handler accepts."""
        ...

    @abstractmethod
    def handle(self, destination: Union[str, ServiceReference], request: Any) -> Any:
        """Attach authentication for *destination* to *request*.

        Args:
            destination: The logical service the request is bound to.
            request: A request of type :attr:`client_type`.

        Returns:
            The same *request*, possibly carrying new pre-send callbacks.

        Raises:
            ConfigError: If the destination's credential configuration
                cannot be handled.
        """
        ...

    def accepts(self, request: Any) -> bool:
        """Return ``True`` if *request* is an instance of :attr:`client_type`."""
        return isinstance(request, self.client_type)
