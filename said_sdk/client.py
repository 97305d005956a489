"""
SAID identity client: query, register and verify AI agent identities on Solana.

Reads derive the agent PDA, fetch the 263-byte account and decode it. An
absent account (or one of another size) is None; corrupt data raises
MalformedRecordError, a bad address raises AddressError and RPC failures
raise NetworkError. Agent cards are advisory and collapse to None on any
failure. Writes always raise on failure (TransactionRejectedError or
NetworkError).

The client holds only immutable configuration and the RPC connection; build
one with IdentityClient(...) or create_default_client().
"""

from __future__ import annotations

from typing import Any, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import MemcmpOpts
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from said_sdk.config.env import ClientConfig, mask_rpc_url
from said_sdk.core.exceptions import MalformedRecordError, NetworkError, TransactionRejectedError
from said_sdk.metadata.cards import CardFetcher
from said_sdk.models import (
    AgentCard,
    CreateIdentityOptions,
    CreationResult,
    IdentityRecord,
    IdentityStats,
    RegistrationResult,
    TransactionResult,
    WalletLinkResult,
)
from said_sdk.onchain.account_codec import AGENT_ACCOUNT_SIZE, decode_identity_record
from said_sdk.onchain.instructions import build_register_instruction, build_verify_instruction
from said_sdk.onchain.multi_wallet import (
    WALLET_LINK_AGENT_OFFSET,
    build_link_wallet_instruction,
    build_transfer_authority_instruction,
    build_unlink_wallet_instruction,
    parse_linked_wallet,
)
from said_sdk.onchain.pda import DerivedAddress, derive_identity_address
from said_sdk.onchain.transactions import TransactionSubmitter, build_transfer_instruction
from said_sdk.said_logging import bind_wallet, get_logger
from said_sdk.utils.wallet_utils import encode_secret_key, short_address, to_pubkey

logger = get_logger(__name__)

# Lamports on top of rent exemption so the new wallet can pay its own tx fees
REGISTRATION_FEE_BUFFER_LAMPORTS = 10_000
VERIFICATION_FEE_LAMPORTS = 10_000_000  # 0.01 SOL, charged by verify_agent
VERIFICATION_TX_FEE_BUFFER_LAMPORTS = 5_000


class IdentityClient:
    """Query and manage SAID agent identities."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        rpc: Any = None,
        card_fetcher: CardFetcher | None = None,
        submitter: TransactionSubmitter | None = None,
    ) -> None:
        self._config = config or ClientConfig()
        cfg = self._config
        self._program_id = to_pubkey(cfg.program_id)
        self._treasury = to_pubkey(cfg.treasury)
        self._rpc = rpc if rpc is not None else Client(cfg.rpc_url, commitment=Commitment(cfg.commitment))
        self._cards = card_fetcher or CardFetcher(timeout=cfg.http_timeout_sec)
        self._submitter = submitter or TransactionSubmitter(
            self._rpc,
            commitment=cfg.commitment,
            confirm_timeout_sec=cfg.confirm_timeout_sec,
            poll_interval_sec=cfg.confirm_poll_interval_sec,
        )

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def program_id(self) -> Pubkey:
        return self._program_id

    @property
    def cards(self) -> CardFetcher:
        return self._cards

    def __repr__(self) -> str:
        return f"IdentityClient(rpc_url={mask_rpc_url(self._config.rpc_url)!r}, program_id={str(self._program_id)!r})"

    # ------------------------------------------------------------------
    # RPC helpers
    # ------------------------------------------------------------------
    def derive_identity_address(self, owner: Pubkey | str) -> DerivedAddress:
        return derive_identity_address(owner, self._program_id)

    def _fetch_account_data(self, address: Pubkey) -> bytes | None:
        try:
            resp = self._rpc.get_account_info(address, encoding="base64")
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"get_account_info failed for {address}: {e}") from e
        value = getattr(resp, "value", None)
        if value is None:
            return None
        return bytes(value.data)

    def _program_accounts(self, filters: Sequence[int | MemcmpOpts]) -> list[Any]:
        try:
            resp = self._rpc.get_program_accounts(self._program_id, encoding="base64", filters=list(filters))
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"get_program_accounts failed: {e}") from e
        return list(getattr(resp, "value", None) or [])

    def get_rent_exemption(self, size: int = AGENT_ACCOUNT_SIZE) -> int:
        try:
            resp = self._rpc.get_minimum_balance_for_rent_exemption(size)
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"get_minimum_balance_for_rent_exemption failed: {e}") from e
        return int(resp.value)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def lookup(self, wallet: Pubkey | str) -> IdentityRecord | None:
        """Identity registered by `wallet`, or None."""
        address, _ = self.derive_identity_address(wallet)
        return self.lookup_by_address(address)

    def lookup_by_address(self, address: Pubkey | str) -> IdentityRecord | None:
        """Identity stored at an agent PDA, or None."""
        key = to_pubkey(address)
        data = self._fetch_account_data(key)
        if data is None:
            logger.debug("said_identity_absent", address=str(key))
            return None
        if len(data) != AGENT_ACCOUNT_SIZE:
            logger.debug("said_identity_size_mismatch", address=str(key), size=len(data))
            return None
        return decode_identity_record(data, address=str(key))

    def is_verified(self, wallet: Pubkey | str) -> bool:
        record = self.lookup(wallet)
        return record.is_verified if record is not None else False

    def is_registered(self, wallet: Pubkey | str) -> bool:
        return self.lookup(wallet) is not None

    def fetch_card(self, wallet: Pubkey | str) -> AgentCard | None:
        record = self.lookup(wallet)
        if record is None or not record.metadata_uri:
            return None
        return self._cards.fetch(record.metadata_uri)

    def get_full_identity(self, wallet: Pubkey | str) -> IdentityRecord | None:
        """lookup() plus the agent card (card stays None if unavailable)."""
        record = self.lookup(wallet)
        if record is None:
            return None
        if record.metadata_uri:
            record.card = self._cards.fetch(record.metadata_uri)
        return record

    def list_all(self, include_cards: bool = False) -> list[IdentityRecord]:
        """
        Every registered agent. Scan failures are logged and yield []; accounts
        that fail to decode are skipped. With include_cards, cards are fetched
        concurrently and a failed fetch only leaves that record's card unset.

        include_cards=True runs its own event loop (asyncio.run) and raises
        RuntimeError when called from inside a running loop; async callers
        should list without cards and use cards.fetch_many_async.
        """
        try:
            accounts = self._program_accounts([AGENT_ACCOUNT_SIZE])
        except NetworkError as e:
            logger.warning("said_list_scan_failed", error=str(e))
            return []

        records: list[IdentityRecord] = []
        for keyed in accounts:
            address = str(keyed.pubkey)
            try:
                records.append(decode_identity_record(bytes(keyed.account.data), address=address))
            except MalformedRecordError as e:
                logger.warning("said_list_skip_malformed", address=address, error=str(e))

        if include_cards and records:
            cards = self._cards.fetch_many([r.metadata_uri for r in records])
            for record, card in zip(records, cards):
                record.card = card
            logger.info(
                "said_list_cards_fetched",
                total=len(records),
                with_card=sum(1 for r in records if r.card is not None),
            )
        return records

    def stats(self) -> IdentityStats:
        records = self.list_all(include_cards=False)
        return IdentityStats(total=len(records), verified=sum(1 for r in records if r.is_verified))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def generate_wallet(self) -> Keypair:
        return Keypair()

    def create_identity(
        self,
        options: CreateIdentityOptions,
        funder: Keypair,
        metadata_uri: str,
    ) -> CreationResult:
        """
        New wallet + registration in one atomic transaction. The funder pays
        rent for the agent account plus a small fee buffer and co-signs with
        the new wallet.
        """
        wallet = Keypair()
        identity_address, _ = self.derive_identity_address(wallet.pubkey())
        rent = self.get_rent_exemption(AGENT_ACCOUNT_SIZE)
        fund_ix = build_transfer_instruction(
            funder.pubkey(), wallet.pubkey(), rent + REGISTRATION_FEE_BUFFER_LAMPORTS
        )
        register_ix = build_register_instruction(identity_address, wallet.pubkey(), metadata_uri, self._program_id)
        signature = self._submitter.submit([fund_ix, register_ix], [funder, wallet], payer=funder)
        logger.info(
            "said_identity_created",
            agent_name=options.name,
            wallet=str(wallet.pubkey()),
            identity=str(identity_address),
            signature=signature,
        )
        return CreationResult(
            wallet=wallet,
            wallet_address=str(wallet.pubkey()),
            secret_key=encode_secret_key(wallet),
            identity_address=str(identity_address),
            metadata_uri=metadata_uri,
            tx_signature=signature,
        )

    def register_existing(
        self,
        wallet: Keypair,
        metadata_uri: str,
        funder: Keypair | None = None,
    ) -> RegistrationResult:
        """Register an already-funded wallet. With a funder, both sign and the funder pays."""
        identity_address, _ = self.derive_identity_address(wallet.pubkey())
        register_ix = build_register_instruction(identity_address, wallet.pubkey(), metadata_uri, self._program_id)
        signers = [funder, wallet] if funder is not None else [wallet]
        signature = self._submitter.submit([register_ix], signers, payer=funder or wallet)
        logger.info(
            "said_identity_registered",
            wallet=str(wallet.pubkey()),
            identity=str(identity_address),
            signature=signature,
        )
        return RegistrationResult(identity_address=str(identity_address), tx_signature=signature)

    def submit_verification(self, wallet: Keypair) -> TransactionResult:
        """verify_agent, signed and paid (fee included) by the wallet."""
        identity_address, _ = self.derive_identity_address(wallet.pubkey())
        verify_ix = build_verify_instruction(identity_address, wallet.pubkey(), self._treasury, self._program_id)
        signature = self._submitter.submit([verify_ix], [wallet])
        logger.info("said_identity_verified", wallet=str(wallet.pubkey()), signature=signature)
        return TransactionResult(tx_signature=signature)

    def create_and_verify(
        self,
        options: CreateIdentityOptions,
        funder: Keypair,
        metadata_uri: str,
    ) -> CreationResult:
        """
        create_identity, then fund the verification fee and verify. The two
        phases are not atomic. Creation and funding failures raise; an error
        raised by the funding transfer carries the CreationResult in its
        `creation` attribute so the new wallet's secret key is not lost. If
        verification itself fails the creation result is returned with
        verified=False.
        """
        result = self.create_identity(options, funder, metadata_uri)
        log = bind_wallet(result.wallet_address).bind(identity=result.identity_address)
        fund_ix = build_transfer_instruction(
            funder.pubkey(),
            result.wallet.pubkey(),
            VERIFICATION_FEE_LAMPORTS + VERIFICATION_TX_FEE_BUFFER_LAMPORTS,
        )
        try:
            self._submitter.submit([fund_ix], [funder])
        except (TransactionRejectedError, NetworkError) as e:
            log.error("said_verification_funding_failed", error=str(e))
            e.creation = result
            raise
        try:
            self.submit_verification(result.wallet)
        except (TransactionRejectedError, NetworkError) as e:
            log.warning("said_verification_failed_after_creation", error=str(e))
            result.verified = False
            return result
        result.verified = True
        return result

    # ------------------------------------------------------------------
    # Multi-wallet
    # ------------------------------------------------------------------
    def link_wallet(self, authority: Keypair, new_wallet: Keypair) -> WalletLinkResult:
        ix, wallet_link = build_link_wallet_instruction(authority.pubkey(), new_wallet.pubkey(), self._program_id)
        signature = self._submitter.submit([ix], [authority, new_wallet])
        logger.info(
            "said_wallet_linked",
            authority=short_address(str(authority.pubkey())),
            wallet=str(new_wallet.pubkey()),
            signature=signature,
        )
        return WalletLinkResult(wallet_link_address=str(wallet_link), tx_signature=signature)

    def unlink_wallet(self, caller: Keypair, wallet_to_unlink: Pubkey | str) -> TransactionResult:
        ix = build_unlink_wallet_instruction(caller.pubkey(), wallet_to_unlink, self._program_id)
        signature = self._submitter.submit([ix], [caller])
        logger.info("said_wallet_unlinked", wallet=str(wallet_to_unlink), signature=signature)
        return TransactionResult(tx_signature=signature)

    def transfer_authority(self, current_authority: Keypair, new_authority: Pubkey | str) -> TransactionResult:
        ix = build_transfer_authority_instruction(current_authority.pubkey(), new_authority, self._program_id)
        signature = self._submitter.submit([ix], [current_authority])
        logger.info("said_authority_transferred", new_authority=str(new_authority), signature=signature)
        return TransactionResult(tx_signature=signature)

    def get_linked_wallets(self, owner: Pubkey | str) -> list[str]:
        """Wallets linked to owner's identity (scans every WalletLink account pointing at it)."""
        identity_address, _ = self.derive_identity_address(owner)
        accounts = self._program_accounts([MemcmpOpts(offset=WALLET_LINK_AGENT_OFFSET, bytes=str(identity_address))])
        wallets: list[str] = []
        for keyed in accounts:
            wallet = parse_linked_wallet(bytes(keyed.account.data))
            if wallet is not None:
                wallets.append(str(wallet))
        return wallets


def create_default_client(**overrides: Any) -> IdentityClient:
    """Client configured from the environment; keyword args override ClientConfig fields."""
    return IdentityClient(ClientConfig(**overrides))
