"""
SAID command line interface.

Usage:
    said wallet generate --out ~/.config/said/agent.json
    said register --keypair agent.json --name "My Agent" [--twitter @handle]
    said verify --keypair agent.json --method twitter|domain|github [--handle|--domain|--repo]
    said lookup <WALLET> [--json]
    said list [--verified] [--limit 20]
    said stats

Every command accepts --rpc to override SOLANA_RPC_URL. Exit code 0 on
success, 1 on any operational failure.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime, timezone
from typing import Any, Sequence

from solders.keypair import Keypair

from said_sdk import __version__
from said_sdk.client import IdentityClient, create_default_client
from said_sdk.core.exceptions import MetadataUnavailableError, SaidError
from said_sdk.metadata.cards import fallback_card_uri
from said_sdk.models import CreateIdentityOptions, IdentityRecord
from said_sdk.said_logging import get_logger
from said_sdk.utils.wallet_utils import is_valid_wallet, load_keypair_file, write_keypair_file
from said_sdk.verification.proofs import VERIFICATION_METHODS, ProofChecker

logger = get_logger(__name__)

EXPLORER_TX_URL = "https://solscan.io/tx/{signature}"
DEFAULT_LIST_LIMIT = 20


def _make_client(args: argparse.Namespace) -> IdentityClient:
    if getattr(args, "rpc", None):
        return create_default_client(rpc_url=args.rpc)
    return create_default_client()


def _fmt_ts(ts: int) -> str:
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    except (ValueError, OSError, OverflowError):
        # on-chain value outside the datetime range
        return str(ts)


def _print_identity(record: IdentityRecord) -> None:
    print("Agent Identity:")
    print(f"  PDA: {record.address}")
    print(f"  Owner: {record.owner}")
    print(f"  Verified: {'yes' if record.is_verified else 'no'}")
    print(f"  Metadata: {record.metadata_uri}")
    print(f"  Registered: {_fmt_ts(record.registered_at)}")
    if record.is_verified and record.verified_at:
        print(f"  Verified at: {_fmt_ts(record.verified_at)}")
    card = record.card
    if card is not None:
        print("")
        print("Agent Card:")
        print(f"  Name: {card.name or 'Unknown'}")
        if card.description:
            print(f"  Description: {card.description}")
        if card.twitter:
            print(f"  Twitter: {card.twitter}")
        if card.website:
            print(f"  Website: {card.website}")


def cmd_wallet_generate(args: argparse.Namespace) -> int:
    keypair = Keypair()
    path = write_keypair_file(args.out, keypair, overwrite=args.force)
    print(f"Wallet: {keypair.pubkey()}")
    print(f"Keypair written to {path}")
    return 0


def cmd_register(args: argparse.Namespace) -> int:
    wallet = load_keypair_file(args.keypair)
    wallet_address = str(wallet.pubkey())
    print(f"Wallet: {wallet_address}")
    client = _make_client(args)

    existing = client.lookup(wallet.pubkey())
    if existing is not None:
        print("This wallet is already registered.")
        print(f"  PDA: {existing.address}")
        print(f"  Verified: {existing.is_verified}")
        return 1

    metadata_uri = args.metadata_uri
    if not metadata_uri:
        options = CreateIdentityOptions(
            name=args.name,
            description=args.description,
            twitter=args.twitter,
            website=args.website,
        )
        card = options.to_card(wallet=wallet_address)
        try:
            metadata_uri = client.cards.publish(card, client.config.card_api_url)
            print(f"Card hosted at: {metadata_uri}")
        except MetadataUnavailableError as e:
            logger.warning("said_cli_card_publish_failed", error=str(e))
            metadata_uri = fallback_card_uri(wallet_address)
            print(f"Card API unavailable, using fallback URI: {metadata_uri}")

    result = client.register_existing(wallet, metadata_uri)
    print("Registration successful.")
    print(f"  Agent PDA: {result.identity_address}")
    print(f"  Transaction: {result.tx_signature}")
    print(f"  Explorer: {EXPLORER_TX_URL.format(signature=result.tx_signature)}")
    print("")
    print("Next steps to get verified:")
    print("  1. Publish your wallet address (Twitter bio, <domain>/.well-known/said.json, or SAID.md in a repo)")
    print("  2. Run: said verify --keypair <path> --method twitter|domain|github")
    print("  3. Pay the 0.01 SOL verification fee")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    wallet = load_keypair_file(args.keypair)
    wallet_address = str(wallet.pubkey())
    print(f"Wallet: {wallet_address}")
    client = _make_client(args)

    record = client.lookup(wallet.pubkey())
    if record is None:
        print("This wallet is not registered.")
        print('  Run: said register --keypair <path> --name "YourName"')
        return 1
    if record.is_verified:
        print("This agent is already verified.")
        return 0

    if not args.skip_check:
        handle = args.handle
        if args.method == "twitter" and not handle:
            card = client.fetch_card(wallet.pubkey())
            handle = card.twitter if card else None
        checker = ProofChecker(timeout=client.config.http_timeout_sec, api_url=client.config.card_api_url)
        proof = checker.check(args.method, wallet_address, handle=handle, domain=args.domain, repo=args.repo)
        print(f"Verifying via {args.method}: {proof.detail}")
        if not proof.verified:
            if proof.hint:
                print(f"  {proof.hint}")
            return 1

    result = client.submit_verification(wallet)
    print("Verification successful.")
    print(f"  Transaction: {result.tx_signature}")
    print(f"  Explorer: {EXPLORER_TX_URL.format(signature=result.tx_signature)}")
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    if not is_valid_wallet(args.wallet):
        print(f"Invalid wallet address: {args.wallet}", file=sys.stderr)
        return 1
    client = _make_client(args)
    record = client.get_full_identity(args.wallet)
    if record is None:
        print("No agent found for this wallet.")
        return 1
    if args.json:
        print(json.dumps(record.to_dict(), indent=2))
    else:
        _print_identity(record)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    client = _make_client(args)
    records = client.list_all(include_cards=True)
    if args.verified:
        records = [r for r in records if r.is_verified]
    print(f"Found {len(records)} agent(s){' (verified only)' if args.verified else ''}:")
    print("")
    for record in records[: max(0, args.limit)]:
        name = record.card.name if record.card and record.card.name else "Unknown"
        print(f"[{'x' if record.is_verified else ' '}] {name}")
        print(f"    Wallet: {record.owner}")
        if record.card and record.card.twitter:
            print(f"    Twitter: {record.card.twitter}")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    client = _make_client(args)
    stats = client.stats()
    print("SAID Protocol Stats:")
    print(f"  Total Agents: {stats.total}")
    print(f"  Verified: {stats.verified}")
    print(f"  Unverified: {stats.unverified}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="said", description="SAID Protocol CLI - Solana Agent Identity")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    rpc_parent = argparse.ArgumentParser(add_help=False)
    rpc_parent.add_argument("--rpc", help="Custom RPC URL (default: SOLANA_RPC_URL or mainnet)")
    sub = parser.add_subparsers(dest="command", required=True)

    wallet = sub.add_parser("wallet", help="Wallet file utilities")
    wallet_sub = wallet.add_subparsers(dest="wallet_command", required=True)
    gen = wallet_sub.add_parser("generate", help="Generate a new wallet keypair file")
    gen.add_argument("--out", required=True, help="Path of the keypair JSON file to write")
    gen.add_argument("--force", action="store_true", help="Overwrite an existing file")
    gen.set_defaults(func=cmd_wallet_generate)

    reg = sub.add_parser("register", parents=[rpc_parent], help="Register a new agent identity (~0.003 SOL rent)")
    reg.add_argument("-k", "--keypair", required=True, help="Path to wallet keypair JSON file")
    reg.add_argument("-n", "--name", required=True, help="Agent name")
    reg.add_argument("-t", "--twitter", help="Twitter handle (e.g. @agent)")
    reg.add_argument("-d", "--description", help="Agent description")
    reg.add_argument("-w", "--website", help="Website URL")
    reg.add_argument("--metadata-uri", help="Use an already hosted agent card instead of uploading one")
    reg.set_defaults(func=cmd_register)

    ver = sub.add_parser("verify", parents=[rpc_parent], help="Verify your agent identity (0.01 SOL)")
    ver.add_argument("-k", "--keypair", required=True, help="Path to wallet keypair JSON file")
    ver.add_argument("-m", "--method", required=True, choices=VERIFICATION_METHODS, help="Proof-of-ownership method")
    ver.add_argument("--handle", help="Twitter handle (twitter method)")
    ver.add_argument("--domain", help="Domain name (domain method)")
    ver.add_argument("--repo", help="GitHub repo owner/name (github method)")
    ver.add_argument("--skip-check", action="store_true", help="Skip the off-chain proof check")
    ver.set_defaults(func=cmd_verify)

    look = sub.add_parser("lookup", parents=[rpc_parent], help="Look up an agent by wallet address")
    look.add_argument("wallet", help="Owner wallet address")
    look.add_argument("--json", action="store_true", help="Print JSON")
    look.set_defaults(func=cmd_lookup)

    lst = sub.add_parser("list", parents=[rpc_parent], help="List all registered agents")
    lst.add_argument("--verified", action="store_true", help="Only show verified agents")
    lst.add_argument("--limit", type=int, default=DEFAULT_LIST_LIMIT, help=f"Limit results (default: {DEFAULT_LIST_LIMIT})")
    lst.set_defaults(func=cmd_list)

    st = sub.add_parser("stats", parents=[rpc_parent], help="Show protocol statistics")
    st.set_defaults(func=cmd_stats)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = args.func
    try:
        return func(args)
    except (SaidError, OSError, ValueError) as e:
        logger.error("said_cli_failed", command=args.command, error=str(e))
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
