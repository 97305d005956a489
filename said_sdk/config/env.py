"""
Environment variable loading and validation for the SAID SDK.

- SOLANA_NETWORK: mainnet | devnet (default: mainnet)
- SOLANA_RPC_URL: RPC endpoint (read from .env)
- HELIUS_API_KEY: Helius API key (fallback for RPC URL)
- SAID_PROGRAM_ID / SAID_TREASURY: deployed program and verification-fee treasury
- SOLANA_COMMITMENT: processed | confirmed | finalized (default: confirmed)
- SAID_CONFIRM_TIMEOUT_SEC, SAID_HTTP_TIMEOUT_SEC, SAID_CARD_API_URL
- Loads .env from the working directory when available.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import find_dotenv, load_dotenv

# Deployed SAID program on mainnet and its treasury PDA
DEFAULT_PROGRAM_ID = "5dpw6KEQPn248pnkkaYyWfHwu2nfb3LUMbTucb6LaA8G"
DEFAULT_TREASURY = "2XfHTeNWTjNwUmgoXaafYuqHcAAXj8F5Kjw2Bnzi4FxH"

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
HELIUS_MAINNET_URL_TEMPLATE = "https://mainnet.helius-rpc.com/?api-key={key}"
HELIUS_DEVNET_URL_TEMPLATE = "https://devnet.helius-rpc.com/?api-key={key}"

DEFAULT_CARD_API_URL = "https://api.saidprotocol.com"
DEFAULT_COMMITMENT = "confirmed"
DEFAULT_CONFIRM_TIMEOUT_SEC = 60.0
DEFAULT_CONFIRM_POLL_INTERVAL_SEC = 1.0
DEFAULT_HTTP_TIMEOUT_SEC = 10.0

COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


def load_said_env() -> None:
    """Load .env from the working directory. Safe to call multiple times."""
    load_dotenv(find_dotenv(usecwd=True))


def get_solana_network() -> str:
    """Return SOLANA_NETWORK from env: mainnet | devnet. Default: mainnet."""
    load_said_env()
    raw = (os.getenv("SOLANA_NETWORK") or os.getenv("SOLANA_CLUSTER") or "mainnet").strip().lower()
    if raw == "devnet":
        return "devnet"
    return "mainnet"


def get_solana_rpc_url() -> str:
    """
    Resolve Solana RPC URL from env.
    Order: SOLANA_RPC_URL > HELIUS_API_KEY (network-specific) > devnet/mainnet default.
    """
    load_said_env()
    url = (os.getenv("SOLANA_RPC_URL") or "").strip()
    if url:
        return url
    network = get_solana_network()
    key = (os.getenv("HELIUS_API_KEY") or "").strip()
    if key:
        if network == "devnet":
            return HELIUS_DEVNET_URL_TEMPLATE.format(key=key)
        return HELIUS_MAINNET_URL_TEMPLATE.format(key=key)
    return DEVNET_RPC_URL if network == "devnet" else MAINNET_RPC_URL


def get_program_id() -> str:
    """Return SAID_PROGRAM_ID from env or the deployed default. PDA derivation must use this."""
    load_said_env()
    return (os.getenv("SAID_PROGRAM_ID") or "").strip() or DEFAULT_PROGRAM_ID


def get_treasury() -> str:
    load_said_env()
    return (os.getenv("SAID_TREASURY") or "").strip() or DEFAULT_TREASURY


def get_commitment() -> str:
    load_said_env()
    return (os.getenv("SOLANA_COMMITMENT") or DEFAULT_COMMITMENT).strip().lower()


def get_card_api_url() -> str:
    load_said_env()
    return ((os.getenv("SAID_CARD_API_URL") or "").strip() or DEFAULT_CARD_API_URL).rstrip("/")


def _float_env(name: str, default: float) -> float:
    load_said_env()
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def mask_rpc_url(url: str) -> str:
    """Hide API keys embedded in RPC URLs before logging them."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url


@dataclass
class ClientConfig:
    """Identity client settings (env or explicit)."""

    rpc_url: str = field(default_factory=get_solana_rpc_url)
    program_id: str = field(default_factory=get_program_id)
    treasury: str = field(default_factory=get_treasury)
    commitment: str = field(default_factory=get_commitment)
    confirm_timeout_sec: float = field(
        default_factory=lambda: _float_env("SAID_CONFIRM_TIMEOUT_SEC", DEFAULT_CONFIRM_TIMEOUT_SEC)
    )
    confirm_poll_interval_sec: float = DEFAULT_CONFIRM_POLL_INTERVAL_SEC
    http_timeout_sec: float = field(
        default_factory=lambda: _float_env("SAID_HTTP_TIMEOUT_SEC", DEFAULT_HTTP_TIMEOUT_SEC)
    )
    card_api_url: str = field(default_factory=get_card_api_url)

    def __post_init__(self) -> None:
        self.commitment = self.commitment.strip().lower()
        if self.commitment not in COMMITMENT_LEVELS:
            raise ValueError(f"commitment must be one of {', '.join(COMMITMENT_LEVELS)}, got {self.commitment!r}")
        if not self.rpc_url:
            raise ValueError("rpc_url must be set")
        if self.confirm_timeout_sec <= 0:
            self.confirm_timeout_sec = DEFAULT_CONFIRM_TIMEOUT_SEC
        if self.confirm_poll_interval_sec <= 0:
            self.confirm_poll_interval_sec = DEFAULT_CONFIRM_POLL_INTERVAL_SEC
        if self.http_timeout_sec <= 0:
            self.http_timeout_sec = DEFAULT_HTTP_TIMEOUT_SEC
        self.card_api_url = self.card_api_url.rstrip("/")
