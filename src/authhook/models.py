"""Canonical Pydantic models shared across all authhook modules.

The models fall into two groups:

**Runtime models** -- what the dispatcher works with:
    :class:`ServiceReference` (a destination) and the closed set of
    credential descriptors :class:`ClientSecretCredential`,
    :class:`UserTokenCredential`, :class:`ServiceTokenCredential` and
    :class:`FunctionKeyCredential`, joined in the :data:`Credential` union.

**Configuration models** -- serialised in the registry file:
    :class:`ClientSecretConfig`, :class:`FunctionKeyConfig`,
    :class:`DestinationConfig`, :class:`RequestConfig` and
    :class:`RegistryConfig`. Secrets in configuration are never stored
    inline; they are credential *sources* (``env:VAR``, ``file:/path``,
    ``prompt``) resolved when the registry is loaded.

Only the client-secret and function-key variants can be configured from a
file. The user-token and service-token variants carry live provider objects
and are registered programmatically.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from authhook.protocols import CredentialProvider, TokenAcquisitionProvider

DEFAULT_AUTHORITY_HOST = "https://login.microsoftonline.com"
"""Identity provider used by client-secret credentials unless overridden."""


# --- Destinations ---


class ServiceReference(BaseModel):
    """A logical service destination.

    ``name`` is the lookup key into the credential registry. ``base_url``
    is informational for the registry itself and is used by the CLI to
    build a client for the destination.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Unique destination name, e.g. 'billing-api'")
    base_url: Optional[str] = Field(
        default=None, description="Root URL requests to this destination go to"
    )


# --- Credential descriptors ---


class ClientSecretCredential(BaseModel):
    """Application-only credential for the OAuth2 client-credentials grant.

    When ``scope`` is omitted the scope is derived at send time from the
    request's base URL as ``<scheme>://<host>/.default``.

    Example::

        ClientSecretCredential(
            client_id="6a1f...",
            tenant_id="contoso.onmicrosoft.com",
            secret="s3cr3t",
        )
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["client_secret"] = "client_secret"
    client_id: str
    tenant_id: str
    secret: str = Field(repr=False)
    scope: Optional[str] = None
    authority_host: str = DEFAULT_AUTHORITY_HOST


class UserTokenCredential(BaseModel):
    """Delegated credential: a token for ``scope`` on behalf of ``principal``."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["user_token"] = "user_token"
    token_acquisition: TokenAcquisitionProvider
    scope: str
    principal: Any = Field(description="The authenticated end-user identity")


class ServiceTokenCredential(BaseModel):
    """Credential backed by a generic token provider such as a managed identity."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: Literal["service_token"] = "service_token"
    credential: CredentialProvider
    scopes: list[str]


class FunctionKeyCredential(BaseModel):
    """Static function key sent in the ``x-functions-key`` header."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["function_key"] = "function_key"
    function_key: str = Field(repr=False)


Credential = Annotated[
    Union[
        ClientSecretCredential,
        UserTokenCredential,
        ServiceTokenCredential,
        FunctionKeyCredential,
    ],
    Field(discriminator="kind"),
]
"""The closed set of credential descriptors the dispatcher understands."""


# --- Configuration ---


class ClientSecretConfig(BaseModel):
    """File form of :class:`ClientSecretCredential`.

    Example::

        {
            "kind": "client_secret",
            "client_id": "6a1f...",
            "tenant_id": "contoso.onmicrosoft.com",
            "secret_source": "env:BILLING_CLIENT_SECRET"
        }
    """

    kind: Literal["client_secret"] = "client_secret"
    client_id: str
    tenant_id: str
    secret_source: str = Field(
        description="Credential source: env:VAR, file:/path, prompt"
    )
    scope: Optional[str] = None
    authority_host: str = DEFAULT_AUTHORITY_HOST


class FunctionKeyConfig(BaseModel):
    """File form of :class:`FunctionKeyCredential`."""

    kind: Literal["function_key"] = "function_key"
    key_source: str = Field(
        description="Credential source: env:VAR, file:/path, prompt"
    )


CredentialConfig = Annotated[
    Union[ClientSecretConfig, FunctionKeyConfig],
    Field(discriminator="kind"),
]


class DestinationConfig(BaseModel):
    """One destination entry of the registry file."""

    name: str
    base_url: Optional[str] = None
    credentials: list[CredentialConfig] = Field(default_factory=list)


class RequestConfig(BaseModel):
    """Default HTTP request settings applied by :class:`~authhook.client.AsyncClient`."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class RegistryConfig(BaseModel):
    """Contents of the registry file (``destinations.json``).

    ``strict_resolution`` turns a destination with several credentials
    from a logged warning into an
    :class:`~authhook.exceptions.AmbiguousCredentialError`.
    """

    destinations: list[DestinationConfig] = Field(default_factory=list)
    strict_resolution: bool = False
    request: RequestConfig = Field(default_factory=RequestConfig)

    def get_destination(self, name: str) -> Optional[DestinationConfig]:
        """Return the entry named *name*, or ``None``."""
        for destination in self.destinations:
            if destination.name == name:
                return destination
        return None
