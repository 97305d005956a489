"""
Proof-of-ownership checks run before paying for on-chain verification.

- twitter: the card API checks that the handle's bio contains the wallet
- domain:  https://<domain>/.well-known/said.json must contain {"wallet": "<wallet>"}
- github:  https://raw.githubusercontent.com/<repo>/main/SAID.md must mention the wallet

Each check returns a ProofResult; a failed check carries a hint describing
what the agent has to publish. Network failures count as a failed check.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from said_sdk.config.env import DEFAULT_CARD_API_URL, DEFAULT_HTTP_TIMEOUT_SEC
from said_sdk.said_logging import get_logger

logger = get_logger(__name__)

VERIFICATION_METHODS = ("twitter", "domain", "github")
GITHUB_RAW_URL_TEMPLATE = "https://raw.githubusercontent.com/{repo}/main/SAID.md"
WELL_KNOWN_PATH = "/.well-known/said.json"


@dataclass
class ProofResult:
    method: str
    verified: bool
    detail: str
    hint: str | None = None


class ProofChecker:
    def __init__(
        self,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SEC,
        transport: Any = None,
        api_url: str = DEFAULT_CARD_API_URL,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._api_url = api_url.rstrip("/")

    def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        with httpx.Client(timeout=self._timeout, transport=self._transport, follow_redirects=True) as client:
            return client.get(url, params=params)

    def check(self, method: str, wallet: str, **target: str | None) -> ProofResult:
        if method == "twitter":
            return self.check_twitter(wallet, target.get("handle"))
        if method == "domain":
            return self.check_domain(wallet, target.get("domain"))
        if method == "github":
            return self.check_github(wallet, target.get("repo"))
        raise ValueError(f"Unknown verification method: {method} (expected one of {', '.join(VERIFICATION_METHODS)})")

    def check_twitter(self, wallet: str, handle: str | None) -> ProofResult:
        if not handle:
            return ProofResult("twitter", False, "No Twitter handle provided or found in agent card")
        handle = handle.strip().lstrip("@")
        hint = (
            f"Go to twitter.com/{handle}, add this to your bio: {wallet}, then run the command again"
        )
        try:
            resp = self._get(f"{self._api_url}/verify/twitter", params={"handle": handle, "wallet": wallet})
        except httpx.HTTPError as e:
            logger.warning("said_proof_twitter_unreachable", handle=handle, error=str(e))
            return ProofResult("twitter", False, "Could not auto-check Twitter", hint)
        if not resp.is_success:
            return ProofResult("twitter", False, f"Twitter check returned HTTP {resp.status_code}", hint)
        try:
            verified = resp.json().get("verified") is True
        except (ValueError, AttributeError):
            verified = False
        if verified:
            return ProofResult("twitter", True, f"Wallet found in @{handle}'s bio")
        return ProofResult("twitter", False, f"Wallet not found in @{handle}'s bio", hint)

    def check_domain(self, wallet: str, domain: str | None) -> ProofResult:
        if not domain:
            return ProofResult("domain", False, "No domain provided. Use --domain <domain>")
        domain = domain.strip().removeprefix("https://").removeprefix("http://").rstrip("/")
        hint = f'Create {domain}{WELL_KNOWN_PATH} with contents {{"wallet":"{wallet}"}}, then run the command again'
        try:
            resp = self._get(f"https://{domain}{WELL_KNOWN_PATH}")
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("said_proof_domain_unreachable", domain=domain, error=str(e))
            return ProofResult("domain", False, f"Error fetching {domain}{WELL_KNOWN_PATH}", hint)
        if not resp.is_success:
            return ProofResult("domain", False, f"Could not fetch {domain}{WELL_KNOWN_PATH}", hint)
        try:
            found = resp.json().get("wallet")
        except (ValueError, AttributeError):
            found = None
        if found == wallet:
            return ProofResult("domain", True, f"{domain}{WELL_KNOWN_PATH} lists this wallet")
        return ProofResult("domain", False, f"Wallet mismatch. Expected {wallet}, got {found}", hint)

    def check_github(self, wallet: str, repo: str | None) -> ProofResult:
        if not repo:
            return ProofResult("github", False, "No repo provided. Use --repo <owner/repo>")
        repo = repo.strip().strip("/")
        hint = f"Create SAID.md in the root of {repo} containing: wallet: {wallet}, then run the command again"
        try:
            resp = self._get(GITHUB_RAW_URL_TEMPLATE.format(repo=repo))
        except httpx.HTTPError as e:
            logger.warning("said_proof_github_unreachable", repo=repo, error=str(e))
            return ProofResult("github", False, "Error fetching GitHub verification file", hint)
        if not resp.is_success:
            return ProofResult("github", False, f"Could not fetch SAID.md from {repo}", hint)
        if wallet in resp.text:
            return ProofResult("github", True, f"SAID.md in {repo} mentions this wallet")
        return ProofResult("github", False, "Wallet address not found in SAID.md", hint)
