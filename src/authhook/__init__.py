"""authhook -- attach authentication to outbound HTTP requests at send time.

Each outbound request is bound to a logical *destination* (a named service).
A credential registry maps destinations to credential descriptors, and the
authentication dispatcher registers a pre-send callback on the request that
acquires a token with the strategy matching the credential's kind and sets
the authorization header immediately before the request leaves the process.

Typical usage::

    from authhook.auth import ServiceRegistry, create_default_manager
    from authhook.client import AsyncClient
    from authhook.models import FunctionKeyCredential

    registry = ServiceRegistry()
    registry.register("billing-api", FunctionKeyCredential(function_key="k"))
    manager = create_default_manager(registry)

    async with AsyncClient("https://billing.example.com", auth_manager=manager) as client:
        response = await client.get("/invoices", destination="billing-api")

Modules:
    models: Pydantic models for destinations, credentials, and configuration.
    protocols: Interfaces of the external token providers and resolvers.
    config: XDG-aware registry file management and credential sources.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting used by the CLI.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"
