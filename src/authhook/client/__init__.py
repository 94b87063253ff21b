"""HTTP client module for authhook.

Provides the request object pre-send callbacks are registered on and the
:mod:`httpx`-backed client that invokes them.

Classes:
    :class:`OutboundRequest` -- an HTTP call not yet sent, with its ordered
        pre-send callbacks.
    :class:`SendContext` -- what a callback sees at send time.
    :class:`AsyncClient` -- non-blocking client backed by :class:`httpx.AsyncClient`.

Example::

    from authhook.client import AsyncClient

    async with AsyncClient("https://api.example.com", auth_manager=manager) as client:
        resp = await client.get("/users", destination="users-api")
"""

from authhook.client.async_client import AsyncClient
from authhook.client.request import BeforeSendCallback, OutboundRequest, SendContext

__all__ = ["AsyncClient", "BeforeSendCallback", "OutboundRequest", "SendContext"]
