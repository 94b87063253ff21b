"""In-memory credential registry keyed by destination.

:class:`ServiceRegistry` is the credential resolver the dispatcher consults:
:meth:`~ServiceRegistry.lookup` returns the credential descriptors registered
for a destination, in registration order. A destination may have no
credential (its requests go out unauthenticated) or, through configuration
mistakes, several.

Registries are usually populated at startup, either programmatically or
from the registry file via :meth:`ServiceRegistry.from_config` /
:func:`load_registry`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from authhook.config import load_registry_config, resolve_credential
from authhook.exceptions import ConfigError
from authhook.models import (
    ClientSecretConfig,
    ClientSecretCredential,
    Credential,
    CredentialConfig,
    FunctionKeyCredential,
    RegistryConfig,
    ServiceReference,
)


def destination_name(destination: Union[str, ServiceReference]) -> str:
    """Return the lookup key for *destination*."""
    if isinstance(destination, ServiceReference):
        return destination.name
    return destination


class ServiceRegistry:
    """Maps destination names to service references and credentials.

    Example::

        registry = ServiceRegistry()
        registry.register(
            ServiceReference(name="billing-api", base_url="https://billing.example.com"),
            FunctionKeyCredential(function_key="abc"),
        )
        registry.lookup("billing-api")  # [FunctionKeyCredential(...)]
    """

    def __init__(self) -> None:
        self._references: dict[str, ServiceReference] = {}
        self._credentials: dict[str, list[Any]] = {}

    def __contains__(self, destination: object) -> bool:
        if not isinstance(destination, (str, ServiceReference)):
            return False
        return destination_name(destination) in self._references

    def __len__(self) -> int:
        return len(self._references)

    def register(
        self,
        destination: Union[str, ServiceReference],
        credential: Optional[Credential] = None,
    ) -> ServiceReference:
        """Register *destination*, optionally adding a credential for it.

        Registering the same destination again keeps its existing
        credentials and appends the new one. A :class:`ServiceReference`
        with a ``base_url`` replaces a previously stored reference.

        Returns:
            The stored :class:`ServiceReference`.
        """
        name = destination_name(destination)
        if isinstance(destination, ServiceReference):
            if destination.base_url or name not in self._references:
                self._references[name] = destination
        else:
            self._references.setdefault(name, ServiceReference(name=name))

        credentials = self._credentials.setdefault(name, [])
        if credential is not None:
            credentials.append(credential)
        return self._references[name]

    def unregister(self, destination: Union[str, ServiceReference]) -> None:
        """Remove *destination* and its credentials. No-op if unknown."""
        name = destination_name(destination)
        self._references.pop(name, None)
        self._credentials.pop(name, None)

    def lookup(self, destination: Union[str, ServiceReference]) -> list[Credential]:
        """Return the credentials registered for *destination*.

        Returns:
            A new list in registration order; empty for unknown destinations
            and destinations without credentials.
        """
        return list(self._credentials.get(destination_name(destination), []))

    def get(self, name: str) -> ServiceReference:
        """Return the :class:`ServiceReference` registered as *name*.

        Raises:
            ConfigError: If no destination of that name is registered.
        """
        reference = self._references.get(name)
        if reference is None:
            available = ", ".join(sorted(self._references)) or "(none)"
            raise ConfigError(
                f"Unknown destination '{name}'. Available destinations: {available}"
            )
        return reference

    def destinations(self) -> list[ServiceReference]:
        """Return all registered destinations sorted by name."""
        return [self._references[name] for name in sorted(self._references)]

    @classmethod
    def from_config(cls, config: RegistryConfig) -> ServiceRegistry:
        """Build a registry from a :class:`~authhook.models.RegistryConfig`.

        Credential sources are resolved immediately.

        Raises:
            ConfigError: If a credential source cannot be resolved.
        """
        registry = cls()
        for entry in config.destinations:
            reference = ServiceReference(name=entry.name, base_url=entry.base_url)
            registry.register(reference)
            for credential_config in entry.credentials:
                registry.register(reference, _build_credential(credential_config))
        return registry


def _build_credential(config: CredentialConfig) -> Credential:
    if isinstance(config, ClientSecretConfig):
        return ClientSecretCredential(
            client_id=config.client_id,
            tenant_id=config.tenant_id,
            secret=resolve_credential(config.secret_source),
            scope=config.scope,
            authority_host=config.authority_host,
        )
    return FunctionKeyCredential(function_key=resolve_credential(config.key_source))


def load_registry(path: Optional[Path] = None) -> ServiceRegistry:
    """Load the registry file and build a :class:`ServiceRegistry` from it."""
    return ServiceRegistry.from_config(load_registry_config(path))
