"""Request authentication for authhook.

The package resolves the credential registered for a request's destination
and registers a pre-send callback that acquires a token and sets the
authorization header when the request is sent.

The main entry points are:

- :class:`ServiceRegistry` -- destination to credential lookup.
- :class:`HttpClientAuthenticationHandler` -- the dispatcher for
  :class:`~authhook.client.OutboundRequest`.
- :class:`AuthManager` / :func:`create_default_manager` -- the explicit
  set of handlers an application authenticates requests with.
- :class:`ConfidentialClientFactory` -- shared client-credentials token
  caches.

Typical usage::

    from authhook.auth import create_default_manager, load_registry

    manager = create_default_manager(load_registry())
    request = manager.authenticate("billing-api", request)
"""

from authhook.auth.base import AuthenticationHandler
from authhook.auth.registry import ServiceRegistry, load_registry
from authhook.auth.manager import AuthManager, create_default_manager
from authhook.auth.confidential_client import (
    ConfidentialClientApplication,
    ConfidentialClientFactory,
)
from authhook.auth.dispatcher import HttpClientAuthenticationHandler

__all__ = [
    "AuthManager",
    "AuthenticationHandler",
    "ConfidentialClientApplication",
    "ConfidentialClientFactory",
    "HttpClientAuthenticationHandler",
    "ServiceRegistry",
    "create_default_manager",
    "load_registry",
]
