"""Destination commands -- manage the registry file.

Provides the ``authhook destinations`` sub-command group. Only the registry
*configuration* is read and written here; credential sources are stored as
given (``env:VAR``, ``file:/path``, ``prompt``) and never resolved, so no
secret is ever printed or written by these commands.

Typical workflow::

    authhook destinations add billing-api --base-url https://billing.example.com \\
        --function-key-source env:BILLING_KEY
    authhook destinations list
    authhook call billing-api GET /invoices
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from authhook.output import error, format_response, info, print_table, success, warning

destinations_app = typer.Typer(no_args_is_help=True)


def _registry_file(ctx: typer.Context) -> Path:
    from authhook.config import registry_path

    override = ctx.obj.get("registry") if ctx.obj else None
    return registry_path(override)


def _load(ctx: typer.Context):
    from authhook.config import load_registry_config
    from authhook.exceptions import ConfigError

    path = _registry_file(ctx)
    try:
        return path, load_registry_config(path)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@destinations_app.command("list")
def destinations_list(ctx: typer.Context) -> None:
    """List registered destinations and their credential kinds.

    Example::

        authhook destinations list
        authhook --json destinations list
    """
    path, config = _load(ctx)
    if not config.destinations:
        info(f"No destinations registered in {path}")
        return

    rows = [
        [
            entry.name,
            entry.base_url or "",
            ", ".join(c.kind for c in entry.credentials) or "(none)",
        ]
        for entry in config.destinations
    ]
    print_table(["name", "base_url", "credentials"], rows, title="Destinations")


@destinations_app.command("show")
def destinations_show(
    ctx: typer.Context,
    name: str = typer.Argument(help="Destination name."),
) -> None:
    """Show one destination's configuration."""
    _, config = _load(ctx)
    entry = config.get_destination(name)
    if entry is None:
        error(f"Unknown destination '{name}'")
        raise typer.Exit(code=2)
    format_response(entry.model_dump(mode="json"))


@destinations_app.command("add")
def destinations_add(
    ctx: typer.Context,
    name: str = typer.Argument(help="Destination name."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Destination root URL."),
    function_key_source: Optional[str] = typer.Option(
        None, "--function-key-source", help="Source of an x-functions-key value."
    ),
    client_id: Optional[str] = typer.Option(None, "--client-id", help="Application (client) id."),
    tenant_id: Optional[str] = typer.Option(None, "--tenant-id", help="Directory (tenant) id."),
    secret_source: Optional[str] = typer.Option(
        None, "--secret-source", help="Source of the client secret."
    ),
    scope: Optional[str] = typer.Option(
        None, "--scope", help="Token scope (default: <base URL root>/.default)."
    ),
    authority_host: Optional[str] = typer.Option(
        None, "--authority-host", help="Identity provider root URL."
    ),
    replace: bool = typer.Option(
        False, "--replace", help="Replace existing credentials instead of failing."
    ),
) -> None:
    """Add a destination or attach a credential to an existing one.

    Give either ``--function-key-source`` or all of ``--client-id``,
    ``--tenant-id`` and ``--secret-source``. With neither, the destination
    is registered without a credential and its requests are sent
    unauthenticated.

    Raises:
        typer.Exit: With code 2 on conflicting or incomplete options, or when
            the destination already has a credential and ``--replace`` is
            not given.

    Example::

        authhook destinations add reports --base-url https://reports.example.com \\
            --client-id 6a1f... --tenant-id contoso.onmicrosoft.com \\
            --secret-source env:REPORTS_SECRET
    """
    from authhook.config import save_registry_config
    from authhook.models import ClientSecretConfig, DestinationConfig, FunctionKeyConfig

    client_secret_options = (client_id, tenant_id, secret_source)
    if function_key_source and any(client_secret_options):
        error("Use either --function-key-source or client secret options, not both")
        raise typer.Exit(code=2)
    if any(client_secret_options) and not all(client_secret_options):
        error("Client secret credentials need --client-id, --tenant-id and --secret-source")
        raise typer.Exit(code=2)

    credential = None
    if function_key_source:
        credential = FunctionKeyConfig(key_source=function_key_source)
    elif client_id and tenant_id and secret_source:
        fields: dict[str, str] = {
            "client_id": client_id,
            "tenant_id": tenant_id,
            "secret_source": secret_source,
        }
        if scope:
            fields["scope"] = scope
        if authority_host:
            fields["authority_host"] = authority_host
        credential = ClientSecretConfig(**fields)  # type: ignore[arg-type]

    path, config = _load(ctx)
    entry = config.get_destination(name)
    if entry is None:
        entry = DestinationConfig(name=name)
        config.destinations.append(entry)

    if base_url:
        entry.base_url = base_url
    if credential is not None:
        if entry.credentials and not replace:
            error(
                f"Destination '{name}' already has a credential; "
                "pass --replace to overwrite it"
            )
            raise typer.Exit(code=2)
        entry.credentials = [credential]
    if entry.base_url is None:
        warning(f"Destination '{name}' has no base URL; 'call' will need --base-url")

    save_registry_config(config, path)
    success(f"Saved destination '{name}' to {path}")


@destinations_app.command("remove")
def destinations_remove(
    ctx: typer.Context,
    name: str = typer.Argument(help="Destination name."),
) -> None:
    """Remove a destination and its credentials."""
    from authhook.config import save_registry_config

    path, config = _load(ctx)
    if config.get_destination(name) is None:
        error(f"Unknown destination '{name}'")
        raise typer.Exit(code=2)

    config.destinations = [d for d in config.destinations if d.name != name]
    save_registry_config(config, path)
    success(f"Removed destination '{name}'")
