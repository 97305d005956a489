"""
Agent card fetch and hosting over HTTP (httpx).

Cards are advisory: the public helpers return None on any failure (non-2xx,
transport error, invalid JSON, JSON that is not an object). fetch_many fans
out one async GET per URI and waits for all; one failure never affects the
others.
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence
from urllib.parse import urlsplit, urlunsplit

import httpx

from said_sdk.config.env import DEFAULT_CARD_API_URL, DEFAULT_HTTP_TIMEOUT_SEC
from said_sdk.core.exceptions import MetadataUnavailableError
from said_sdk.models import AgentCard
from said_sdk.said_logging import get_logger

logger = get_logger(__name__)

# Bare domains that only serve CORS-enabled JSON from their www. host
WWW_REQUIRED_HOSTS = frozenset({"saidprotocol.com"})
FALLBACK_CARD_URI_TEMPLATE = "https://www.saidprotocol.com/agents/{wallet}.json"


def normalize_metadata_uri(uri: str, www_hosts: frozenset[str] = WWW_REQUIRED_HOSTS) -> str:
    """Rewrite bare hosts that need a www. prefix; other URIs are returned unchanged."""
    parts = urlsplit(uri)
    host = parts.hostname or ""
    if host.lower() not in www_hosts:
        return uri
    netloc = parts.netloc
    idx = netloc.lower().rfind(host.lower())
    netloc = netloc[:idx] + "www." + netloc[idx:]
    return urlunsplit(parts._replace(netloc=netloc))


def fallback_card_uri(wallet: str) -> str:
    return FALLBACK_CARD_URI_TEMPLATE.format(wallet=wallet)


def parse_card_response(resp: httpx.Response) -> AgentCard:
    if not resp.is_success:
        raise MetadataUnavailableError(f"card fetch returned HTTP {resp.status_code}")
    try:
        payload = resp.json()
    except ValueError as e:
        raise MetadataUnavailableError(f"card is not valid JSON: {e}") from e
    if not isinstance(payload, dict):
        raise MetadataUnavailableError("card JSON is not an object")
    return AgentCard.from_json(payload)


class CardFetcher:
    """HTTP access to agent cards. `transport` lets tests plug in httpx.MockTransport."""

    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SEC,
        transport: Any = None,
        www_hosts: frozenset[str] = WWW_REQUIRED_HOSTS,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._www_hosts = www_hosts

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport, follow_redirects=True)

    def _async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport, follow_redirects=True)

    def get(self, uri: str) -> AgentCard:
        """Fetch one card; raises MetadataUnavailableError on any failure."""
        if not uri:
            raise MetadataUnavailableError("empty metadata URI")
        # urlsplit raises ValueError on malformed URIs (e.g. an unclosed IPv6 bracket)
        try:
            url = normalize_metadata_uri(uri, self._www_hosts)
            with self._client() as client:
                resp = client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise MetadataUnavailableError(f"card fetch failed: {e}") from e
        return parse_card_response(resp)

    def fetch(self, uri: str) -> AgentCard | None:
        try:
            return self.get(uri)
        except MetadataUnavailableError as e:
            logger.debug("said_card_unavailable", uri=uri, error=str(e))
            return None

    async def _fetch_async(self, client: httpx.AsyncClient, uri: str) -> AgentCard | None:
        if not uri:
            return None
        try:
            url = normalize_metadata_uri(uri, self._www_hosts)
            resp = await client.get(url)
            return parse_card_response(resp)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError, MetadataUnavailableError) as e:
            logger.debug("said_card_unavailable", uri=uri, error=str(e))
            return None

    async def fetch_many_async(self, uris: Sequence[str]) -> list[AgentCard | None]:
        """Concurrent fetch; result[i] is the card for uris[i] or None."""
        if not uris:
            return []
        async with self._async_client() as client:
            results = await asyncio.gather(
                *(self._fetch_async(client, uri) for uri in uris),
                return_exceptions=True,
            )
        out: list[AgentCard | None] = []
        for uri, result in zip(uris, results):
            if isinstance(result, BaseException):
                logger.warning("said_card_fetch_error", uri=uri, error=str(result))
                out.append(None)
            else:
                out.append(result)
        return out

    def fetch_many(self, uris: Sequence[str]) -> list[AgentCard | None]:
        """Blocking wrapper around fetch_many_async. Must not be called from a running event loop."""
        return asyncio.run(self.fetch_many_async(uris))

    def publish(self, card: AgentCard, api_url: str = DEFAULT_CARD_API_URL) -> str:
        """Host a card on the card API; returns the card URI. Raises MetadataUnavailableError."""
        body = {
            "wallet": card.wallet,
            "name": card.name,
            "description": card.description,
            "twitter": card.twitter,
            "website": card.website,
        }
        try:
            with self._client() as client:
                resp = client.post(f"{api_url.rstrip('/')}/api/cards", json=body)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise MetadataUnavailableError(f"card upload failed: {e}") from e
        if not resp.is_success:
            raise MetadataUnavailableError(f"card upload returned HTTP {resp.status_code}")
        try:
            card_uri = resp.json().get("cardUri")
        except (ValueError, AttributeError) as e:
            raise MetadataUnavailableError("card upload response is not a JSON object") from e
        if not isinstance(card_uri, str) or not card_uri:
            raise MetadataUnavailableError("card upload response missing cardUri")
        logger.info("said_card_published", wallet=card.wallet, card_uri=card_uri)
        return card_uri
