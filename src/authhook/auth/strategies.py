"""Token acquisition strategies, one per credential kind.

Each function takes a credential descriptor and the destination name and
returns a pre-send callback (see :mod:`authhook.client.request`). Nothing
is acquired when the callback is created; the token is fetched when the
HTTP client invokes the callback, so every send sees a token no older than
the send itself.

========================  ==========================================  =====================
Credential                Acquisition                                 Header
========================  ==========================================  =====================
ClientSecretCredential    client-credentials grant, cached per scope  ``Authorization``
UserTokenCredential       on-behalf-of user via the provider          ``Authorization``
ServiceTokenCredential    ``credential.get_token(*scopes)``           ``Authorization``
FunctionKeyCredential     none (static key, synchronous)              ``x-functions-key``
========================  ==========================================  =====================

Headers are written only after acquisition succeeded; a failed or
cancelled acquisition leaves the request without the header.
"""

from __future__ import annotations

import inspect
from typing import Any, Callable, Optional

import httpx

from authhook.auth.confidential_client import ConfidentialClientFactory
from authhook.client.request import BeforeSendCallback, SendContext
from authhook.exceptions import AuthHookError, TokenAcquisitionError
from authhook.models import (
    ClientSecretCredential,
    FunctionKeyCredential,
    ServiceTokenCredential,
    UserTokenCredential,
)

AUTHORIZATION_HEADER = "Authorization"
FUNCTION_KEY_HEADER = "x-functions-key"
DEFAULT_SCOPE_SUFFIX = "/.default"


def default_scope(base_url: Optional[str]) -> str:
    """Derive ``<scheme>://<host>[:port]/.default`` from *base_url*.

    Example::

        default_scope("https://api.example.com/v1")  # "https://api.example.com/.default"

    Raises:
        TokenAcquisitionError: If *base_url* is missing or not absolute.
    """
    if not base_url:
        raise TokenAcquisitionError(
            "Cannot derive a default scope: the request has no base URL"
        )
    url = httpx.URL(base_url)
    if not url.scheme or not url.host:
        raise TokenAcquisitionError(
            f"Cannot derive a default scope from non-absolute base URL '{base_url}'"
        )
    return f"{url.scheme}://{url.netloc.decode('ascii')}{DEFAULT_SCOPE_SUFFIX}"


async def _acquire(destination: str, fetch: Callable[[], Any]) -> Any:
    """Run *fetch*, awaiting its result if needed, wrapping provider failures.

    Provider exceptions become :class:`TokenAcquisitionError` tagged with
    the destination. Cancellation is not an :class:`Exception` and passes
    through untouched.
    """
    try:
        result = fetch()
        if inspect.isawaitable(result):
            result = await result
        return result
    except TokenAcquisitionError as exc:
        if exc.destination is None:
            exc.destination = destination
        raise
    except AuthHookError:
        raise
    except Exception as exc:
        raise TokenAcquisitionError(
            f"Token acquisition for destination '{destination}' failed: {exc}",
            destination=destination,
        ) from exc


def client_secret_strategy(
    credential: ClientSecretCredential,
    destination: str,
    clients: ConfidentialClientFactory,
) -> BeforeSendCallback:
    """Bearer token from the client-credentials grant.

    The scope is ``credential.scope`` or, when absent, derived from the
    base URL the request has at send time.
    """

    async def _before_send(ctx: SendContext) -> None:
        async def _fetch() -> str:
            scope = credential.scope or default_scope(ctx.base_url)
            return await clients.get(credential).acquire_token_for_client([scope])

        token = await _acquire(destination, _fetch)
        ctx.set_header(AUTHORIZATION_HEADER, f"Bearer {token}")

    return _before_send


def user_token_strategy(
    credential: UserTokenCredential, destination: str
) -> BeforeSendCallback:
    """Bearer token acquired on behalf of ``credential.principal``."""

    async def _before_send(ctx: SendContext) -> None:
        token = await _acquire(
            destination,
            lambda: credential.token_acquisition.get_access_token_for_user(
                [credential.scope], user=credential.principal
            ),
        )
        ctx.set_header(AUTHORIZATION_HEADER, f"Bearer {token}")

    return _before_send


def service_token_strategy(
    credential: ServiceTokenCredential, destination: str
) -> BeforeSendCallback:
    """Bearer token from a generic credential provider (managed identity etc.)."""

    async def _before_send(ctx: SendContext) -> None:
        access_token = await _acquire(
            destination, lambda: credential.credential.get_token(*credential.scopes)
        )
        ctx.set_header(AUTHORIZATION_HEADER, f"Bearer {access_token.token}")

    return _before_send


def function_key_strategy(
    credential: FunctionKeyCredential, destination: str
) -> BeforeSendCallback:
    """Static function key; synchronous, no network round-trip."""

    def _before_send(ctx: SendContext) -> None:
        ctx.set_header(FUNCTION_KEY_HEADER, credential.function_key)

    return _before_send
