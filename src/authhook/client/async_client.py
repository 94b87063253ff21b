"""Asynchronous HTTP client that invokes pre-send callbacks at send time.

This module provides :class:`AsyncClient`, which wraps
:class:`httpx.AsyncClient` and layers on:

- **Authentication** -- when given an
  :class:`~authhook.auth.manager.AuthManager`, every request bound to a
  destination is passed through the manager, which registers the
  credential's pre-send callback on it.
- **Pre-send callbacks** -- :meth:`AsyncClient.send` builds the
  :class:`httpx.Request` and runs the request's callbacks exactly once, in
  registration order, before the first byte is transmitted. A failing
  callback fails the send.
- **Dry-run mode** -- prints the request to stderr and returns a synthetic
  200 response without sending traffic or invoking callbacks.
- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...). Retries resend the prepared
  request; callbacks are not re-run.
- **Redirects** -- unauthenticated requests follow redirects. Requests that
  carry pre-send callbacks do not: the 3xx response is returned as is so
  that credential headers never reach another origin.
"""

from __future__ import annotations

import asyncio
import inspect
import json
from typing import TYPE_CHECKING, Any, Optional, Union

import httpx

from authhook.client.request import OutboundRequest, SendContext
from authhook.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from authhook.models import RequestConfig, ServiceReference
from authhook.output import get_output

if TYPE_CHECKING:
    from authhook.auth.manager import AuthManager


class AsyncClient:
    """Asynchronous HTTP client for calls to authenticated destinations.

    Must be used as an async context manager so that the underlying
    transport is properly opened and closed.

    Args:
        base_url: Default base URL for requests without their own.
        auth_manager: Optional manager that attaches authentication to
            requests bound to a destination. When ``None``, requests are
            sent with whatever callbacks they already carry.
        request_config: Timeout, SSL verification and retry settings.
        transport: Optional :class:`httpx.AsyncBaseTransport`, mainly for
            tests (``httpx.MockTransport``).
        dry_run: When ``True``, requests are printed to stderr and a
            synthetic 200 response is returned without network I/O.

    Example::

        async with AsyncClient("https://billing.example.com", auth_manager=am) as client:
            response = await client.get("/invoices", destination="billing-api")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        auth_manager: Optional[AuthManager] = None,
        request_config: Optional[RequestConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        dry_run: bool = False,
    ) -> None:
        self._base_url = base_url
        self._auth_manager = auth_manager
        self._config = request_config or RequestConfig()
        self._transport = transport
        self._dry_run = dry_run
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> Optional[str]:
        return self._base_url

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> AsyncClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url or "",
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def request(
        self,
        method: str,
        path: str,
        destination: Union[str, ServiceReference, None] = None,
        params: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
        json_body: Optional[Any] = None,
        body: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        """Build a request, authenticate it for *destination*, and send it.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            path: URL path appended to the base URL.
            destination: Logical service the request is bound to. Requests
                without a destination are not authenticated.
            params: Query parameters.
            headers: Extra request headers.
            json_body: JSON-serialisable body.
            body: Raw string body.
            data: Form-encoded body.

        Returns:
            The :class:`httpx.Response` from the server.

        Raises:
            UnsupportedCredentialKindError: If the destination's credential
                has no acquisition strategy.
            TokenAcquisitionError: If a token could not be acquired.
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On 5xx after all retries are exhausted.
            ConnectionError_: On network / timeout errors after all retries.
        """
        outbound = OutboundRequest(
            method,
            path,
            destination=destination,
            headers=headers,
            params=params,
            json_body=json_body,
            body=body,
            data=data,
        )
        if self._auth_manager is not None and destination is not None:
            outbound = self._auth_manager.authenticate(destination, outbound)
        return await self.send(outbound)

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send an async GET request. See :meth:`request`."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send an async POST request. See :meth:`request`."""
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send an async PUT request. See :meth:`request`."""
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send an async PATCH request. See :meth:`request`."""
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> httpx.Response:
        """Send an async DELETE request. See :meth:`request`."""
        return await self.request("DELETE", path, **kwargs)

    async def send(self, request: OutboundRequest) -> httpx.Response:
        """Send a prepared :class:`~authhook.client.request.OutboundRequest`.

        The request's pre-send callbacks run once, in registration order,
        against the built :class:`httpx.Request`. Any exception raised by a
        callback (including cancellation) propagates and nothing is sent.
        A request that carried callbacks is not redirected automatically.

        Returns:
            The :class:`httpx.Response` from the server.
        """
        assert self._client is not None, "Client not initialised -- use as async context manager"

        http_request = self._build_request(request)

        if self._dry_run:
            return self._print_dry_run(request, http_request)

        await self._run_before_send(request, http_request)

        response = await self._execute_with_retry(
            http_request, follow_redirects=not request.callbacks
        )
        self._map_response_error(response)
        return response

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _effective_base_url(self, request: OutboundRequest) -> Optional[str]:
        return request.base_url or self._base_url or None

    def _build_request(self, request: OutboundRequest) -> httpx.Request:
        assert self._client is not None

        url = request.path
        if request.base_url:
            url = f"{request.base_url.rstrip('/')}{request.path}"

        kwargs: dict[str, Any] = {
            "method": request.method,
            "url": url,
            "headers": request.headers,
            "params": request.params,
        }
        if request.data is not None:
            kwargs["data"] = request.data
        elif request.json_body is not None:
            kwargs["json"] = request.json_body
        elif request.body is not None:
            kwargs["content"] = request.body

        return self._client.build_request(**kwargs)

    async def _run_before_send(
        self, request: OutboundRequest, http_request: httpx.Request
    ) -> None:
        """Invoke the request's callbacks, awaiting the asynchronous ones."""
        ctx = SendContext(
            request=request,
            http_request=http_request,
            base_url=self._effective_base_url(request),
        )
        for callback in request.callbacks:
            result = callback(ctx)
            if inspect.isawaitable(result):
                await result

    async def _execute_with_retry(
        self, http_request: httpx.Request, follow_redirects: bool = True
    ) -> httpx.Response:
        """Send the request with exponential-backoff retry.

        Retries on 5xx status codes and connection / timeout errors up to
        ``max_retries`` times using :func:`asyncio.sleep` between attempts.
        """
        assert self._client is not None

        max_retries = self._config.max_retries
        output = get_output()
        last_error: Exception | None = None

        for attempt in range(max_retries + 1):
            try:
                response = await self._client.send(
                    http_request, follow_redirects=follow_redirects
                )

                if response.status_code >= 500 and attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Server error {response.status_code}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
                last_error = exc
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue

                raise ConnectionError_(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

        if last_error is not None:  # pragma: no cover
            raise ConnectionError_(str(last_error)) from last_error
        raise ServerError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise a typed exception for error HTTP status codes."""
        status = response.status_code
        if status < 400:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
            else:
                msg = str(detail)
        except Exception:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {status}"
        full_msg = f"{prefix}: {msg}" if msg else prefix

        if status in (401, 403):
            raise AuthError(full_msg)
        if status == 404:
            raise NotFoundError(full_msg)
        raise ServerError(full_msg)

    def _print_dry_run(
        self, request: OutboundRequest, http_request: httpx.Request
    ) -> httpx.Response:
        """Print request details to stderr and return a synthetic 200 response."""
        output = get_output()
        output.info(f"[dry-run] {http_request.method} {http_request.url}")

        for key, value in http_request.headers.items():
            output.info(f"  Header: {key}: {value}")

        if request.callbacks:
            output.info(f"  Pre-send callbacks: {len(request.callbacks)} (not invoked)")

        if request.data is not None:
            output.info(f"  Body (form): {json.dumps(request.data, indent=2)}")
        elif request.json_body is not None:
            output.info(f"  Body (JSON): {json.dumps(request.json_body, indent=2)}")
        elif request.body is not None:
            output.info(f"  Body: {request.body}")

        return httpx.Response(
            status_code=200,
            headers={"content-type": "application/json"},
            json={"dry_run": True, "message": "Request was not sent"},
            request=http_request,
        )
