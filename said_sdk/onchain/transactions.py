"""
Transaction building, submission and confirmation.

Builds a legacy transaction from instructions, signs it with every signer,
sends it with preflight at the configured commitment and polls signature
status until that commitment (or a failure) is observed. Rejections and
confirmation timeouts raise TransactionRejectedError; transport failures
raise NetworkError. No retries: a failed send is reported to the caller.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Sequence

from solana.exceptions import SolanaRpcException
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from said_sdk.config.env import DEFAULT_COMMITMENT, DEFAULT_CONFIRM_POLL_INTERVAL_SEC, DEFAULT_CONFIRM_TIMEOUT_SEC
from said_sdk.core.exceptions import NetworkError, TransactionRejectedError
from said_sdk.said_logging import get_logger

logger = get_logger(__name__)

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


def _status_rank(status: Any) -> int:
    if status == TransactionConfirmationStatus.Finalized:
        return 2
    if status == TransactionConfirmationStatus.Confirmed:
        return 1
    if status == TransactionConfirmationStatus.Processed:
        return 0
    return -1


def build_transfer_instruction(from_pubkey: Pubkey, to_pubkey: Pubkey, lamports: int) -> Instruction:
    """System program transfer."""
    if lamports <= 0:
        raise ValueError("lamports must be positive")
    return transfer(TransferParams(from_pubkey=from_pubkey, to_pubkey=to_pubkey, lamports=int(lamports)))


def _unique_signers(signers: Sequence[Keypair]) -> list[Keypair]:
    seen: set[Pubkey] = set()
    out: list[Keypair] = []
    for kp in signers:
        if kp.pubkey() in seen:
            continue
        seen.add(kp.pubkey())
        out.append(kp)
    return out


class TransactionSubmitter:
    """Send-and-confirm over a solana-py Client."""

    def __init__(
        self,
        rpc: Any,
        commitment: str = DEFAULT_COMMITMENT,
        confirm_timeout_sec: float = DEFAULT_CONFIRM_TIMEOUT_SEC,
        poll_interval_sec: float = DEFAULT_CONFIRM_POLL_INTERVAL_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if commitment not in _COMMITMENT_RANK:
            raise ValueError(f"Unknown commitment: {commitment!r}")
        self._rpc = rpc
        self._commitment = commitment
        self._confirm_timeout_sec = confirm_timeout_sec
        self._poll_interval_sec = poll_interval_sec
        self._sleep = sleep

    def _latest_blockhash(self) -> Hash:
        try:
            resp = self._rpc.get_latest_blockhash(Commitment(self._commitment))
        except (SolanaRpcException, RPCException) as e:
            raise NetworkError(f"get_latest_blockhash failed: {e}") from e
        value = getattr(resp, "value", None)
        if value is None:
            raise NetworkError("get_latest_blockhash returned no value")
        return value.blockhash

    def build(
        self,
        instructions: Sequence[Instruction],
        signers: Sequence[Keypair],
        payer: Keypair | None = None,
    ) -> Transaction:
        """Sign a transaction; fee payer defaults to the first signer."""
        if not signers:
            raise ValueError("at least one signer is required")
        fee_payer = payer or signers[0]
        blockhash = self._latest_blockhash()
        message = Message.new_with_blockhash(list(instructions), fee_payer.pubkey(), blockhash)
        return Transaction(_unique_signers([fee_payer, *signers]), message, blockhash)

    def submit(
        self,
        instructions: Sequence[Instruction],
        signers: Sequence[Keypair],
        payer: Keypair | None = None,
    ) -> str:
        """Build, sign, send, and wait for the configured commitment. Returns the signature."""
        tx = self.build(instructions, signers, payer)
        opts = TxOpts(skip_confirmation=True, preflight_commitment=Commitment(self._commitment))
        try:
            resp = self._rpc.send_transaction(tx, opts=opts)
        except RPCException as e:
            logger.warning("said_tx_rejected", reason="preflight", error=str(e))
            raise TransactionRejectedError(f"Transaction rejected: {e}", reason="preflight") from e
        except SolanaRpcException as e:
            logger.warning("said_tx_send_failed", error=str(e))
            raise NetworkError(f"send_transaction failed: {e}") from e

        sig_val = getattr(resp, "value", None)
        if sig_val is None:
            raise TransactionRejectedError("send_transaction returned no signature", reason="no_signature")
        signature = str(sig_val)
        logger.info("said_tx_sent", signature=signature, instruction_count=len(instructions))
        self.wait_for_confirmation(signature)
        return signature

    def wait_for_confirmation(self, signature: str) -> None:
        """
        Poll get_signature_statuses until the signature reaches the target
        commitment. Raises TransactionRejectedError on an on-chain error or
        timeout. Transient RPC errors while polling are logged and polling continues.
        """
        sig = Signature.from_string(signature)
        target = _COMMITMENT_RANK[self._commitment]
        start = time.monotonic()
        deadline = start + self._confirm_timeout_sec
        while time.monotonic() < deadline:
            try:
                resp = self._rpc.get_signature_statuses([sig])
            except (SolanaRpcException, RPCException) as e:
                logger.warning("said_tx_confirm_poll_error", signature=signature, error=str(e))
                self._sleep(self._poll_interval_sec)
                continue
            statuses = getattr(resp, "value", None) or []
            st = statuses[0] if statuses else None
            if st is None:
                self._sleep(self._poll_interval_sec)
                continue

            err = getattr(st, "err", None)
            if err is not None:
                logger.error("said_tx_failed_on_chain", signature=signature, err=str(err))
                raise TransactionRejectedError(
                    f"Transaction {signature} failed: {err}",
                    signature=signature,
                    reason="transaction_failed",
                )
            status = getattr(st, "confirmation_status", None)
            if status is not None and _status_rank(status) >= target:
                logger.info(
                    "said_tx_confirmed",
                    signature=signature,
                    confirmation_status=str(status),
                    slot=getattr(st, "slot", None),
                    elapsed_sec=round(time.monotonic() - start, 2),
                )
                return
            self._sleep(self._poll_interval_sec)

        logger.error("said_tx_confirm_timeout", signature=signature, timeout_sec=self._confirm_timeout_sec)
        raise TransactionRejectedError(
            f"Transaction {signature} not {self._commitment} within {self._confirm_timeout_sec}s",
            signature=signature,
            reason="timeout",
        )
