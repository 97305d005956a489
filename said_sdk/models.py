"""
Data models for agent identities.

IdentityRecord mirrors the on-chain account; AgentCard is the off-chain JSON
document the record's metadata_uri points to. The result types are what the
write paths of IdentityClient return.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from solders.keypair import Keypair

# camelCase keys used by hosted agent cards -> attribute names
_CARD_FIELDS = {
    "name": "name",
    "description": "description",
    "twitter": "twitter",
    "wallet": "wallet",
    "agentPDA": "agent_pda",
    "capabilities": "capabilities",
    "website": "website",
    "created": "created",
    "verified": "verified",
    "verifiedAt": "verified_at",
}


@dataclass
class AgentCard:
    """Off-chain agent metadata. Only `name` is conventional; everything is optional."""

    name: str | None = None
    description: str | None = None
    twitter: str | None = None
    wallet: str | None = None
    agent_pda: str | None = None
    capabilities: list[str] | None = None
    website: str | None = None
    created: str | None = None
    verified: bool | None = None
    verified_at: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "AgentCard":
        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in payload.items():
            attr = _CARD_FIELDS.get(key)
            if attr is None:
                extra[key] = value
            else:
                known[attr] = value
        return cls(**known, extra=extra)

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        for key, attr in _CARD_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                out[key] = value
        return out


@dataclass
class IdentityRecord:
    """Decoded SAID agent account."""

    owner: str
    metadata_uri: str
    registered_at: int
    is_verified: bool
    verified_at: int
    address: str | None = None
    discriminator: bytes = b"\x00" * 8
    card: AgentCard | None = None

    @property
    def registered_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.registered_at, tz=timezone.utc)

    @property
    def verified_datetime(self) -> datetime | None:
        if not self.is_verified or self.verified_at == 0:
            return None
        return datetime.fromtimestamp(self.verified_at, tz=timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "pubkey": self.address,
            "owner": self.owner,
            "metadataUri": self.metadata_uri,
            "registeredAt": self.registered_at,
            "isVerified": self.is_verified,
            "verifiedAt": self.verified_at,
            "card": self.card.to_json() if self.card else None,
        }


@dataclass
class CreateIdentityOptions:
    """Agent metadata supplied when creating a new identity."""

    name: str
    description: str | None = None
    twitter: str | None = None
    website: str | None = None
    skills: list[str] | None = None
    capabilities: list[str] | None = None
    service_types: list[str] | None = None
    mcp_endpoint: str | None = None
    a2a_endpoint: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name must be non-empty")

    def to_card(self, wallet: str | None = None) -> AgentCard:
        extra: dict[str, Any] = {}
        if self.skills:
            extra["skills"] = list(self.skills)
        if self.service_types:
            extra["serviceTypes"] = list(self.service_types)
        if self.mcp_endpoint:
            extra["mcpEndpoint"] = self.mcp_endpoint
        if self.a2a_endpoint:
            extra["a2aEndpoint"] = self.a2a_endpoint
        return AgentCard(
            name=self.name,
            description=self.description or f"{self.name} - AI Agent on SAID Protocol",
            twitter=self.twitter,
            website=self.website,
            wallet=wallet,
            capabilities=list(self.capabilities) if self.capabilities else None,
            created=datetime.now(timezone.utc).date().isoformat(),
            verified=False,
            extra=extra,
        )


@dataclass
class CreationResult:
    wallet: Keypair
    wallet_address: str
    secret_key: str
    identity_address: str
    metadata_uri: str
    tx_signature: str
    verified: bool | None = None


@dataclass
class RegistrationResult:
    identity_address: str
    tx_signature: str


@dataclass
class TransactionResult:
    tx_signature: str


@dataclass
class WalletLinkResult:
    wallet_link_address: str
    tx_signature: str


@dataclass
class IdentityStats:
    total: int
    verified: int

    @property
    def unverified(self) -> int:
        return self.total - self.verified

    def to_dict(self) -> dict[str, int]:
        out = asdict(self)
        out["unverified"] = self.unverified
        return out
