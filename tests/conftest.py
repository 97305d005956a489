"""
Pytest fixtures for SAID SDK tests. RPC is a MagicMock; card and proof HTTP
traffic goes through httpx.MockTransport so nothing leaves the process.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest

from said_sdk.client import IdentityClient
from said_sdk.config.env import DEFAULT_PROGRAM_ID, DEFAULT_TREASURY, ClientConfig
from said_sdk.metadata.cards import CardFetcher

TEST_RPC_URL = "http://localhost:8899"
TEST_CARD_API_URL = "https://cards.test"


def _default_card_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404)


@pytest.fixture
def card_routes():
    """
    Mutable URL -> response map served by the mock transport. A value may be
    an httpx.Response or an exception instance to raise for that URL.
    """
    return {}


@pytest.fixture
def card_transport(card_routes):
    def handler(request: httpx.Request) -> httpx.Response:
        route = card_routes.get(str(request.url))
        if route is None:
            return _default_card_handler(request)
        if isinstance(route, Exception):
            raise route
        return route

    return httpx.MockTransport(handler)


@pytest.fixture
def mock_rpc():
    """solana-py Client stand-in; tests set return values per call."""
    return MagicMock()


@pytest.fixture
def client_config():
    return ClientConfig(
        rpc_url=TEST_RPC_URL,
        program_id=DEFAULT_PROGRAM_ID,
        treasury=DEFAULT_TREASURY,
        commitment="confirmed",
        confirm_timeout_sec=5.0,
        http_timeout_sec=2.0,
        card_api_url=TEST_CARD_API_URL,
    )


@pytest.fixture
def mock_submitter():
    return MagicMock()


@pytest.fixture
def identity_client(client_config, mock_rpc, card_transport, mock_submitter):
    """IdentityClient wired to the mock RPC, mock card transport and mock submitter."""
    return IdentityClient(
        client_config,
        rpc=mock_rpc,
        card_fetcher=CardFetcher(timeout=2.0, transport=card_transport),
        submitter=mock_submitter,
    )
