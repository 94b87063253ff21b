"""Authentication dispatcher for :class:`~authhook.client.OutboundRequest`.

:class:`HttpClientAuthenticationHandler` resolves the credential registered
for a request's destination and registers the matching acquisition strategy
as a pre-send callback. It does no I/O and never waits: tokens are acquired
later, when the HTTP client sends the request.

Resolution outcomes:

* no credential -- the request is returned untouched;
* one credential -- exactly one callback is registered;
* several credentials -- a warning is logged and the first one (in
  resolver order) is used, or :class:`AmbiguousCredentialError` is raised
  in strict mode;
* a credential of an unknown kind -- :class:`UnsupportedCredentialKindError`
  is raised before the request is touched.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, Optional, Union

from authhook.auth.base import AuthenticationHandler
from authhook.auth.confidential_client import ConfidentialClientFactory
from authhook.auth.registry import destination_name
from authhook.auth.strategies import (
    client_secret_strategy,
    function_key_strategy,
    service_token_strategy,
    user_token_strategy,
)
from authhook.client.request import BeforeSendCallback, OutboundRequest
from authhook.exceptions import AmbiguousCredentialError, UnsupportedCredentialKindError
from authhook.models import (
    ClientSecretCredential,
    FunctionKeyCredential,
    ServiceReference,
    ServiceTokenCredential,
    UserTokenCredential,
)
from authhook.protocols import CredentialResolver

logger = logging.getLogger(__name__)

StrategyFactory = Callable[[Any, str], BeforeSendCallback]


class HttpClientAuthenticationHandler(AuthenticationHandler):
    """Attaches credential-specific token injection to outbound requests.

    Args:
        resolver: Credential lookup for destinations, typically a
            :class:`~authhook.auth.registry.ServiceRegistry`.
        confidential_clients: Shared factory for client-secret credentials.
            A private one is created when omitted.
        strict: Raise :class:`AmbiguousCredentialError` instead of warning
            when a destination resolves to several credentials.

    Example::

        handler = HttpClientAuthenticationHandler(registry)
        request = handler.handle("billing-api", OutboundRequest("GET", "/invoices"))
    """

    def __init__(
        self,
        resolver: CredentialResolver,
        confidential_clients: Optional[ConfidentialClientFactory] = None,
        strict: bool = False,
    ) -> None:
        self._resolver = resolver
        self._confidential_clients = confidential_clients or ConfidentialClientFactory()
        self._strict = strict
        self._strategies: dict[type, StrategyFactory] = {
            ClientSecretCredential: functools.partial(
                client_secret_strategy, clients=self._confidential_clients
            ),
            UserTokenCredential: user_token_strategy,
            ServiceTokenCredential: service_token_strategy,
            FunctionKeyCredential: function_key_strategy,
        }

    @property
    def client_type(self) -> type:
        return OutboundRequest

    @property
    def confidential_clients(self) -> ConfidentialClientFactory:
        return self._confidential_clients

    def handle(
        self,
        destination: Union[str, ServiceReference],
        request: OutboundRequest,
    ) -> OutboundRequest:
        """Register the pre-send callback for *destination*'s credential.

        Args:
            destination: The logical service the request is bound to.
            request: The request to prepare. It is not sent.

        Returns:
            The same *request*.

        Raises:
            UnsupportedCredentialKindError: If the credential is not one of
                the known kinds. The request is left unchanged.
            AmbiguousCredentialError: In strict mode, if several
                credentials are registered. The request is left unchanged.
        """
        name = destination_name(destination)
        credential = self._resolve(name)
        if credential is None:
            logger.debug("No credential registered for destination '%s'", name)
            return request

        factory = self._strategy_for(credential)
        logger.debug(
            "Attaching %s authentication for destination '%s'",
            getattr(credential, "kind", type(credential).__name__),
            name,
        )
        request.before_send(factory(credential, name))
        return request

    def _resolve(self, name: str) -> Optional[Any]:
        credentials = list(self._resolver.lookup(name))
        if not credentials:
            return None
        if len(credentials) > 1:
            if self._strict:
                raise AmbiguousCredentialError(name, len(credentials))
            logger.warning(
                "Destination '%s' has %d credentials registered; using the first (%s)",
                name,
                len(credentials),
                getattr(credentials[0], "kind", type(credentials[0]).__name__),
            )
        return credentials[0]

    def _strategy_for(self, credential: Any) -> StrategyFactory:
        for kind, factory in self._strategies.items():
            if isinstance(credential, kind):
                return factory
        raise UnsupportedCredentialKindError(type(credential).__name__)
