"""Instruction builders and the sign-send-confirm path."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction

logger = logging.getLogger(__name__)

EXPLORER_TX_URL = "https://explorer.solana.com/tx/{signature}?cluster={cluster}"


class SubmitClient(Protocol):
    """The RPC calls needed to land a transaction."""

    def get_latest_blockhash(self) -> tuple[str, int]: ...

    def send_transaction(self, raw_transaction: bytes) -> str: ...

    def confirm_transaction(
        self,
        signature: str,
        *,
        last_valid_block_height: int,
        poll_interval: float = 1.0,
    ) -> dict: ...


def explorer_url(signature: Signature | str, cluster: str = "devnet") -> str:
    return EXPLORER_TX_URL.format(signature=signature, cluster=cluster)


def build_transfer_instruction(sender: Pubkey, recipient: Pubkey, lamports: int) -> Instruction:
    """Native System Program transfer of `lamports` from `sender` to `recipient`."""
    if isinstance(lamports, bool) or not isinstance(lamports, int) or lamports <= 0:
        raise ValueError("Transfer amount must be a positive number of lamports")
    return transfer(TransferParams(from_pubkey=sender, to_pubkey=recipient, lamports=lamports))


def build_ping_instruction(program_id: Pubkey, data_account: Pubkey) -> Instruction:
    """Instruction touching one writable, non-signer account with no payload."""
    return Instruction(
        program_id,
        b"",
        [AccountMeta(pubkey=data_account, is_signer=False, is_writable=True)],
    )


def send_and_confirm(
    rpc: SubmitClient,
    instructions: Sequence[Instruction],
    signers: Sequence[Keypair],
    *,
    poll_interval: float = 1.0,
) -> Signature:
    """Sign `instructions` with `signers`, submit them and wait for confirmation.

    The first signer pays the fee. The call only returns once the cluster has
    confirmed the signature.
    """
    if not instructions:
        raise ValueError("A transaction needs at least one instruction")
    if not signers:
        raise ValueError("A transaction needs at least one signer")

    blockhash, last_valid_block_height = rpc.get_latest_blockhash()
    recent_blockhash = Hash.from_string(blockhash)
    message = Message.new_with_blockhash(list(instructions), signers[0].pubkey(), recent_blockhash)
    transaction = Transaction(list(signers), message, recent_blockhash)

    signature = rpc.send_transaction(bytes(transaction))
    logger.debug("Waiting for %s (valid until block %d)", signature, last_valid_block_height)
    rpc.confirm_transaction(
        signature,
        last_valid_block_height=last_valid_block_height,
        poll_interval=poll_interval,
    )
    return Signature.from_string(signature)


__all__ = [
    "EXPLORER_TX_URL",
    "SubmitClient",
    "build_ping_instruction",
    "build_transfer_instruction",
    "explorer_url",
    "send_and_confirm",
]
