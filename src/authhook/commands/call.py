"""``authhook call`` -- send an authenticated request to a destination.

Loads the registry (resolving credential sources), builds the default
:class:`~authhook.auth.manager.AuthManager`, and sends one request through
:class:`~authhook.client.AsyncClient`. The response body goes to stdout and
the status line to stderr.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import httpx
import typer

from authhook.exceptions import InvalidUsageError
from authhook.output import error


def _parse_pairs(values: list[str], separator: str, label: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for value in values:
        key, sep, rest = value.partition(separator)
        if not sep or not key.strip():
            raise InvalidUsageError(f"Invalid {label} '{value}', expected KEY{separator}VALUE")
        pairs[key.strip()] = rest.strip()
    return pairs


def _parse_body(body: Optional[str]) -> tuple[Any, Optional[str]]:
    """Return ``(json_body, raw_body)``; JSON when *body* parses, raw otherwise."""
    if body is None:
        return None, None
    try:
        return json.loads(body), None
    except json.JSONDecodeError:
        return None, body


def call_command(
    ctx: typer.Context,
    destination: str = typer.Argument(help="Registered destination name."),
    method: str = typer.Argument(help="HTTP method."),
    path: str = typer.Argument(help="Path relative to the destination's base URL."),
    body: Optional[str] = typer.Option(None, "--body", "-b", help="Request body (JSON or raw)."),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Extra header as 'Name: value'. Repeatable."
    ),
    param: list[str] = typer.Option(
        [], "--param", "-P", help="Query parameter as 'key=value'. Repeatable."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the destination's base URL."
    ),
) -> None:
    """Send METHOD PATH to DESTINATION with its registered credential attached.

    Raises:
        typer.Exit: With the error's exit code when an option is malformed,
            the registry is invalid, a token cannot be acquired, or the
            server returns an error.

    Example::

        authhook call billing-api GET /invoices -P status=open
        authhook --dry-run call billing-api POST /invoices -b '{"amount": 10}'
    """
    from authhook.auth import ConfidentialClientFactory, ServiceRegistry, create_default_manager
    from authhook.client import AsyncClient
    from authhook.client.response import format_api_response
    from authhook.config import load_registry_config, registry_path
    from authhook.exceptions import AuthHookError

    json_body, raw_body = _parse_body(body)
    obj = ctx.obj or {}

    try:
        headers = _parse_pairs(header, ":", "header")
        params = _parse_pairs(param, "=", "parameter")
        config = load_registry_config(registry_path(obj.get("registry")))
        registry = ServiceRegistry.from_config(config)
        reference = registry.get(destination)
        target = base_url or reference.base_url
        if not target:
            raise InvalidUsageError(f"Destination '{destination}' has no base URL; pass --base-url")

        confidential_clients = ConfidentialClientFactory(
            timeout=config.request.timeout, verify=config.request.verify_ssl
        )
        manager = create_default_manager(
            registry,
            strict=config.strict_resolution,
            confidential_clients=confidential_clients,
        )

        async def _send() -> httpx.Response:
            async with AsyncClient(
                target,
                auth_manager=manager,
                request_config=config.request,
                dry_run=obj.get("dry_run", False),
            ) as client:
                return await client.request(
                    method,
                    path,
                    destination=reference,
                    params=params or None,
                    headers=headers or None,
                    json_body=json_body,
                    body=raw_body,
                )

        response = asyncio.run(_send())
    except AuthHookError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    format_api_response(response)
