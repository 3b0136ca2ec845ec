"""
OAuth app tokens for outbound integrations.

Microsoft Graph uses the client-credentials grant against the tenant's v2.0 token
endpoint; Zoom uses the account-credentials grant with HTTP basic client
authentication. Tokens are cached until shortly before they expire.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from boardmgmt.core.exceptions import ExternalServiceError
from boardmgmt.core.logging_config import get_logger
from boardmgmt.server.core.config import GraphConfig, ZoomConfig, settings

logger = get_logger(__name__)

# Refresh this many seconds before the provider-reported expiry
EXPIRY_SKEW_SECONDS = 60
GRAPH_SCOPE = "https://graph.microsoft.com/.default"


class OAuthTokenProvider(ABC):
    """Caches an app token and shares an optional injected httpx client."""

    provider = "oauth"

    def __init__(self, timeout_seconds: float, client: Optional[httpx.AsyncClient] = None) -> None:
        self.timeout_seconds = timeout_seconds
        self.client = client
        self._token: Optional[str] = None
        self._expires_at = 0.0

    @asynccontextmanager
    async def client_context(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a short-lived one."""
        if self.client is not None:
            yield self.client
            return
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            yield client

    @abstractmethod
    async def _request_token(self, client: httpx.AsyncClient) -> httpx.Response:
        """Send the provider's token request."""

    async def get_token(self) -> str:
        if self._token and time.monotonic() < self._expires_at:
            return self._token
        try:
            async with self.client_context() as client:
                response = await self._request_token(client)
                response.raise_for_status()
                payload = response.json()
            token = payload.get("access_token") if isinstance(payload, dict) else None
            expires_in = int(payload.get("expires_in") or 3600) if token else 0
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"{self.provider} token request failed: {e}", exc_info=True)
            raise ExternalServiceError(f"Could not authenticate with {self.provider}.") from e

        if not token:
            raise ExternalServiceError(f"{self.provider} token response did not contain an access token.")
        self._token = token
        self._expires_at = time.monotonic() + max(expires_in - EXPIRY_SKEW_SECONDS, 0)
        return token


class GraphTokenProvider(OAuthTokenProvider):
    provider = "Microsoft Graph"

    def __init__(self, config: Optional[GraphConfig] = None, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config or settings.graph
        super().__init__(self.config.timeout_seconds, client)

    async def _request_token(self, client: httpx.AsyncClient) -> httpx.Response:
        url = f"{self.config.authority}/{self.config.tenant_id}/oauth2/v2.0/token"
        return await client.post(
            url,
            data={
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "scope": GRAPH_SCOPE,
                "grant_type": "client_credentials",
            },
        )


class ZoomTokenProvider(OAuthTokenProvider):
    provider = "Zoom"

    def __init__(self, config: Optional[ZoomConfig] = None, client: Optional[httpx.AsyncClient] = None) -> None:
        self.config = config or settings.zoom
        super().__init__(self.config.timeout_seconds, client)

    async def _request_token(self, client: httpx.AsyncClient) -> httpx.Response:
        return await client.post(
            self.config.token_url,
            params={"grant_type": "account_credentials", "account_id": self.config.account_id},
            auth=(self.config.client_id or "", self.config.client_secret or ""),
        )
