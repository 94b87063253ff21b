"""Outbound request and the pre-send callback contract.

An :class:`OutboundRequest` describes an HTTP call that has not been sent
yet. Besides the usual method, path, headers, params and body it owns an
ordered list of *pre-send callbacks*. Whoever prepares the request (the
authentication dispatcher, typically) registers callbacks with
:meth:`OutboundRequest.before_send`; the HTTP client is the only party that
invokes them, once per send, immediately before the request leaves the
process.

Each callback receives a :class:`SendContext` wrapping the
:class:`httpx.Request` about to go out. Callbacks may be plain functions or
coroutine functions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

import httpx

from authhook.models import ServiceReference


@dataclass
class SendContext:
    """State handed to pre-send callbacks at send time.

    Attributes:
        request: The outbound request being sent.
        http_request: The built :class:`httpx.Request`; headers set here are
            the ones transmitted.
        base_url: The effective base URL at invocation time: the request's
            own ``base_url`` or, failing that, the client's.
    """

    request: "OutboundRequest"
    http_request: httpx.Request
    base_url: Optional[str] = None

    def set_header(self, name: str, value: str) -> None:
        """Add or replace header *name* on the request about to be sent."""
        self.http_request.headers[name] = value


BeforeSendCallback = Callable[[SendContext], Union[None, Awaitable[None]]]


class OutboundRequest:
    """A mutable HTTP call that has not been sent yet.

    Args:
        method: HTTP method (GET, POST, PUT, PATCH, DELETE).
        path: URL path, appended to the base URL when sent.
        base_url: Overrides the sending client's base URL for this request.
        destination: The logical service the request is bound to.
        headers: Initial request headers.
        params: Query parameters.
        json_body: JSON-serialisable body.
        body: Raw string body.
        data: Form-encoded body.

    Example::

        request = OutboundRequest("GET", "/invoices", destination="billing-api")
        request.before_send(lambda ctx: ctx.set_header("X-Trace", "1"))
    """

    def __init__(
        self,
        method: str,
        path: str,
        base_url: Optional[str] = None,
        destination: Union[str, ServiceReference, None] = None,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self.base_url = base_url
        self.destination = destination
        self.headers = httpx.Headers(headers or {})
        self.params: dict[str, Any] = dict(params or {})
        self.json_body = json_body
        self.body = body
        self.data = data
        self._callbacks: list[BeforeSendCallback] = []

    def __repr__(self) -> str:
        return (
            f"OutboundRequest({self.method} {self.path!r}, "
            f"destination={self.destination!r}, callbacks={len(self._callbacks)})"
        )

    @property
    def callbacks(self) -> tuple[BeforeSendCallback, ...]:
        """The registered pre-send callbacks, in registration order."""
        return tuple(self._callbacks)

    def before_send(self, callback: BeforeSendCallback) -> OutboundRequest:
        """Register *callback* to run immediately before the request is sent.

        Returns:
            This request, for chaining.
        """
        self._callbacks.append(callback)
        return self

    def set_header(self, name: str, value: str) -> None:
        """Add or replace header *name*."""
        self.headers[name] = value
