"""
Tests for transaction build, send and confirmation (transactions.TransactionSubmitter).

Uses mocked RPC: get_latest_blockhash, send_transaction and
get_signature_statuses. Signing uses real solders keypairs.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.keypair import Keypair
from solders.signature import Signature
from solders.system_program import decode_transfer
from solders.transaction import Transaction
from solders.transaction_status import TransactionConfirmationStatus

from said_sdk.core.exceptions import NetworkError, TransactionRejectedError
from said_sdk.onchain.instructions import build_register_instruction
from said_sdk.onchain.pda import derive_identity_address
from said_sdk.onchain.transactions import TransactionSubmitter, build_transfer_instruction

SIGNATURE = str(Signature.default())


def _status(confirmation_status=TransactionConfirmationStatus.Confirmed, err=None):
    return MagicMock(err=err, confirmation_status=confirmation_status, slot=42)


def _rpc(statuses=None):
    """RPC mock that hands out a blockhash, accepts the send, and reports statuses in order."""
    rpc = MagicMock()
    rpc.get_latest_blockhash.return_value = MagicMock(value=MagicMock(blockhash=Hash.default()))
    rpc.send_transaction.return_value = MagicMock(value=Signature.default())
    if statuses is None:
        statuses = [[_status()]]
    rpc.get_signature_statuses.side_effect = [MagicMock(value=s) for s in statuses]
    return rpc


def _submitter(rpc, **kwargs):
    sleep = MagicMock()
    return TransactionSubmitter(rpc, sleep=sleep, **kwargs), sleep


def test_build_transfer_instruction():
    """System transfer carries the lamports and both keys."""
    a, b = Keypair().pubkey(), Keypair().pubkey()
    params = decode_transfer(build_transfer_instruction(a, b, 12345))
    assert params["from_pubkey"] == a
    assert params["to_pubkey"] == b
    assert params["lamports"] == 12345


def test_build_transfer_instruction_rejects_zero():
    """Non-positive lamports are refused."""
    a, b = Keypair().pubkey(), Keypair().pubkey()
    with pytest.raises(ValueError):
        build_transfer_instruction(a, b, 0)


def test_unknown_commitment_rejected():
    """Commitment must be processed, confirmed or finalized."""
    with pytest.raises(ValueError):
        TransactionSubmitter(MagicMock(), commitment="instant")


def test_build_signs_with_all_signers():
    """Funder pays, both funder and wallet sign; duplicate payer is signed once."""
    funder, wallet = Keypair(), Keypair()
    identity, _ = derive_identity_address(wallet.pubkey())
    ixs = [
        build_transfer_instruction(funder.pubkey(), wallet.pubkey(), 1000),
        build_register_instruction(identity, wallet.pubkey(), "hello"),
    ]
    submitter, _ = _submitter(_rpc())
    tx = submitter.build(ixs, [funder, wallet], payer=funder)
    assert isinstance(tx, Transaction)
    assert tx.message.account_keys[0] == funder.pubkey()
    assert tx.message.header.num_required_signatures == 2
    assert len(tx.signatures) == 2
    assert all(sig != Signature.default() for sig in tx.signatures)


def test_build_requires_signer():
    """At least one signer is needed."""
    submitter, _ = _submitter(_rpc())
    with pytest.raises(ValueError):
        submitter.build([], [])


def test_submit_confirmed():
    """Sent and confirmed transaction returns its signature."""
    owner = Keypair()
    identity, _ = derive_identity_address(owner.pubkey())
    rpc = _rpc()
    submitter, sleep = _submitter(rpc)
    sig = submitter.submit([build_register_instruction(identity, owner.pubkey(), "hello")], [owner])
    assert sig == SIGNATURE
    rpc.send_transaction.assert_called_once()
    sent_tx = rpc.send_transaction.call_args.args[0]
    assert sent_tx.message.account_keys[0] == owner.pubkey()
    opts = rpc.send_transaction.call_args.kwargs["opts"]
    assert opts.skip_confirmation is True
    sleep.assert_not_called()


def test_submit_polls_until_commitment():
    """Pending and processed statuses are polled past until confirmed."""
    owner = Keypair()
    rpc = _rpc(
        statuses=[
            [None],
            [_status(TransactionConfirmationStatus.Processed)],
            [_status(TransactionConfirmationStatus.Finalized)],
        ]
    )
    submitter, sleep = _submitter(rpc, poll_interval_sec=0.5)
    ix = build_transfer_instruction(owner.pubkey(), Keypair().pubkey(), 10)
    assert submitter.submit([ix], [owner]) == SIGNATURE
    assert rpc.get_signature_statuses.call_count == 3
    assert sleep.call_count == 2
    sleep.assert_called_with(0.5)


def test_submit_finalized_commitment_waits_for_finalized():
    """With finalized commitment a confirmed status is not enough."""
    owner = Keypair()
    rpc = _rpc(
        statuses=[
            [_status(TransactionConfirmationStatus.Confirmed)],
            [_status(TransactionConfirmationStatus.Finalized)],
        ]
    )
    submitter, _ = _submitter(rpc, commitment="finalized")
    ix = build_transfer_instruction(owner.pubkey(), Keypair().pubkey(), 10)
    submitter.submit([ix], [owner])
    assert rpc.get_signature_statuses.call_count == 2


def test_submit_preflight_rejection():
    """RPC error on send becomes TransactionRejectedError(reason='preflight')."""
    owner = Keypair()
    rpc = _rpc()
    rpc.send_transaction.side_effect = RPCException("insufficient funds for rent")
    submitter, _ = _submitter(rpc)
    ix = build_transfer_instruction(owner.pubkey(), Keypair().pubkey(), 10)
    with pytest.raises(TransactionRejectedError) as exc_info:
        submitter.submit([ix], [owner])
    assert exc_info.value.reason == "preflight"
    rpc.get_signature_statuses.assert_not_called()


def test_submit_failed_on_chain():
    """Status with err raises TransactionRejectedError carrying the signature."""
    owner = Keypair()
    rpc = _rpc(statuses=[[_status(err="InstructionError")]])
    submitter, _ = _submitter(rpc)
    ix = build_transfer_instruction(owner.pubkey(), Keypair().pubkey(), 10)
    with pytest.raises(TransactionRejectedError) as exc_info:
        submitter.submit([ix], [owner])
    assert exc_info.value.reason == "transaction_failed"
    assert exc_info.value.signature == SIGNATURE


def test_confirmation_timeout():
    """No confirmation within the timeout raises TransactionRejectedError(reason='timeout')."""
    rpc = _rpc(statuses=[])
    submitter, _ = _submitter(rpc, confirm_timeout_sec=0)
    with pytest.raises(TransactionRejectedError) as exc_info:
        submitter.wait_for_confirmation(SIGNATURE)
    assert exc_info.value.reason == "timeout"


def test_confirmation_poll_error_keeps_polling():
    """A transient RPC error while polling is retried."""
    rpc = _rpc()
    rpc.get_signature_statuses.side_effect = [
        RPCException("node is behind"),
        MagicMock(value=[_status()]),
    ]
    submitter, sleep = _submitter(rpc)
    submitter.wait_for_confirmation(SIGNATURE)
    assert rpc.get_signature_statuses.call_count == 2
    assert sleep.call_count == 1


def test_blockhash_failure_is_network_error():
    """Failure fetching a blockhash raises NetworkError."""
    owner = Keypair()
    rpc = _rpc()
    rpc.get_latest_blockhash.side_effect = RPCException("unavailable")
    submitter, _ = _submitter(rpc)
    ix = build_transfer_instruction(owner.pubkey(), Keypair().pubkey(), 10)
    with pytest.raises(NetworkError):
        submitter.submit([ix], [owner])
    rpc.send_transaction.assert_not_called()
