"""Interfaces of the collaborators the authentication core consumes.

The token providers and the credential resolver live outside this package;
only their call shapes are fixed here. All protocols are runtime-checkable
so that credential models can validate provider objects on construction.

:class:`AccessToken` mirrors the ``(token, expires_on)`` tuple returned by
``azure.core.credentials.TokenCredential.get_token``, so Azure credential
objects (sync or ``aio``) satisfy :class:`CredentialProvider` as-is.
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Awaitable,
    NamedTuple,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

if TYPE_CHECKING:
    from authhook.models import Credential, ServiceReference


class AccessToken(NamedTuple):
    """A bearer token and its expiry as a POSIX timestamp."""

    token: str
    expires_on: int


@runtime_checkable
class TokenAcquisitionProvider(Protocol):
    """Acquires tokens on behalf of an authenticated end user.

    Implementations are expected to try silent/cached acquisition first.
    """

    async def get_access_token_for_user(
        self, scopes: Sequence[str], *, user: Any
    ) -> str: ...


@runtime_checkable
class CredentialProvider(Protocol):
    """Generic service credential (managed identity, workload identity, ...).

    ``get_token`` may return the token directly or an awaitable of it.
    """

    def get_token(
        self, *scopes: str
    ) -> Union[AccessToken, Awaitable[AccessToken]]: ...


@runtime_checkable
class CredentialResolver(Protocol):
    """Looks up the credential descriptors registered for a destination."""

    def lookup(
        self, destination: Union[str, "ServiceReference"]
    ) -> Sequence["Credential"]: ...
