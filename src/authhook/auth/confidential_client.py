"""OAuth2 client-credentials flow for :class:`~authhook.models.ClientSecretCredential`.

:class:`ConfidentialClientApplication` performs the non-interactive Client
Credentials grant (:rfc:`6749` section 4.4) against the tenant's v2.0 token
endpoint, ``<authority_host>/<tenant_id>/oauth2/v2.0/token``, and keeps the
resulting tokens in an in-memory cache keyed by scope set. Cached tokens are
reused until 30 seconds before they expire.

:class:`ConfidentialClientFactory` hands out one application per credential
identity so that the token cache is shared by every request sent with the
same credential.
"""

from __future__ import annotations

import hashlib
import threading
import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import httpx

from authhook.exceptions import TokenAcquisitionError
from authhook.models import DEFAULT_AUTHORITY_HOST, ClientSecretCredential

EXPIRY_MARGIN_SECONDS = 30.0
DEFAULT_EXPIRES_IN = 3600.0


@dataclass(frozen=True)
class _CachedToken:
    access_token: str
    expires_at: float


class ConfidentialClientApplication:
    """A confidential client for one tenant, client id and secret.

    Args:
        client_id: Application (client) id.
        tenant_id: Directory (tenant) id or domain.
        secret: Client secret.
        authority_host: Identity provider root URL.
        timeout: Timeout in seconds for token requests.
        verify: Verify the token endpoint's TLS certificate.
        transport: Optional :class:`httpx.AsyncBaseTransport` for tests.

    Each fetch opens its own :class:`httpx.AsyncClient`. Applications are
    shared through :class:`ConfidentialClientFactory` by callers running
    separate event loops (one ``asyncio.run`` per CLI call), and an httpx
    client is bound to the loop it was first used on, so do not keep one
    open across fetches.
    """

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        secret: str,
        authority_host: str = DEFAULT_AUTHORITY_HOST,
        timeout: float = 30.0,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client_id = client_id
        self._secret = secret
        self._token_url = f"{authority_host.rstrip('/')}/{tenant_id}/oauth2/v2.0/token"
        self._timeout = timeout
        self._verify = verify
        self._transport = transport
        self._cache: dict[tuple[str, ...], _CachedToken] = {}

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def token_url(self) -> str:
        return self._token_url

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def verify(self) -> bool:
        return self._verify

    async def acquire_token_for_client(self, scopes: Sequence[str]) -> str:
        """Return an application-only access token for *scopes*.

        A cached token is returned while it is still valid (with a 30-second
        safety margin); otherwise a fresh one is requested.

        Raises:
            TokenAcquisitionError: If the token request fails or the
                response carries no ``access_token``.
        """
        key = tuple(sorted(scopes))
        cached = self._cache.get(key)
        if cached is not None and time.monotonic() < cached.expires_at - EXPIRY_MARGIN_SECONDS:
            return cached.access_token

        token_data = await self._fetch_token(scopes)
        expires_in = token_data.get("expires_in")
        expires_at = time.monotonic() + (
            float(expires_in) if expires_in is not None else DEFAULT_EXPIRES_IN
        )
        self._cache[key] = _CachedToken(token_data["access_token"], expires_at)
        return token_data["access_token"]

    def clear_cache(self) -> None:
        """Drop every cached token."""
        self._cache.clear()

    async def _fetch_token(self, scopes: Sequence[str]) -> dict[str, Any]:
        """POST to the token endpoint and return the parsed JSON response."""
        data = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._secret,
            "scope": " ".join(scopes),
        }

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, verify=self._verify, transport=self._transport
            ) as client:
                response = await client.post(
                    self._token_url,
                    data=data,
                    headers={"Accept": "application/json"},
                )
            response.raise_for_status()
            token_data: dict[str, Any] = response.json()
        except httpx.HTTPStatusError as exc:
            raise TokenAcquisitionError(
                f"Token request failed with status {exc.response.status_code}: "
                f"{_error_detail(exc.response)}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TokenAcquisitionError(f"Token request failed: {exc}") from exc
        except ValueError as exc:
            raise TokenAcquisitionError(
                f"Token endpoint returned a non-JSON response: {exc}"
            ) from exc

        if not isinstance(token_data, dict) or "access_token" not in token_data:
            raise TokenAcquisitionError("Token response missing 'access_token' field")

        return token_data


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("error_description") or body.get("error") or body)
    return str(body)


class ConfidentialClientFactory:
    """Caches one :class:`ConfidentialClientApplication` per credential.

    Applications are keyed by authority, tenant, client id and a digest of
    the secret, so a rotated secret gets a fresh application and cache.

    Args:
        timeout: Timeout in seconds passed to every application.
        verify: TLS verification flag passed to every application.
        transport: Optional transport passed to every application.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._verify = verify
        self._transport = transport
        self._applications: dict[tuple[str, str, str, str], ConfidentialClientApplication] = {}
        self._lock = threading.Lock()

    def get(self, credential: ClientSecretCredential) -> ConfidentialClientApplication:
        """Return the shared application for *credential*, creating it on first use."""
        key = (
            credential.authority_host,
            credential.tenant_id,
            credential.client_id,
            hashlib.sha256(credential.secret.encode("utf-8")).hexdigest(),
        )
        with self._lock:
            application = self._applications.get(key)
            if application is None:
                application = ConfidentialClientApplication(
                    client_id=credential.client_id,
                    tenant_id=credential.tenant_id,
                    secret=credential.secret,
                    authority_host=credential.authority_host,
                    timeout=self._timeout,
                    verify=self._verify,
                    transport=self._transport,
                )
                self._applications[key] = application
            return application

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def verify(self) -> bool:
        return self._verify

    def __len__(self) -> int:
        return len(self._applications)
