from __future__ import annotations

from typing import Any

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.system_program import decode_transfer
from solders.transaction import Transaction

from solintro.core.config import PING_PROGRAM_DATA, PING_PROGRAM_ID, IntroSettings
from solintro.core.results import StepFailure
from solintro.solana.identity import format_secret
from solintro.solana.rpc import LAMPORTS_PER_SOL, SolanaRPCError
from solintro.solana.secret_store import MemorySecretStore
from solintro.solana.transactions import (
    build_ping_instruction,
    build_transfer_instruction,
    explorer_url,
    send_and_confirm,
)
from solintro.solana.workflow import (
    WorkflowOptions,
    airdrop_if_needed,
    check_balance,
    ping_program,
    run_workflow,
    send_sol,
)


class FakeRPC:
    """In-memory stand-in for SolanaRPCClient that records call order."""

    def __init__(self, balances: list[int] | None = None, *, fail_on: str | None = None) -> None:
        self._balances = balances or [0]
        self._idx = 0
        self.fail_on = fail_on
        self.events: list[str] = []
        self.sent: list[Transaction] = []
        self.airdrops: list[tuple[str, int]] = []
        self.confirmed: list[tuple[str, int]] = []

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise SolanaRPCError(f"{name} exploded")

    def get_balance_lamports(self, public_key: str) -> int:  # noqa: ARG002
        self.events.append("balance")
        self._maybe_fail("balance")
        value = self._balances[min(self._idx, len(self._balances) - 1)]
        self._idx += 1
        return value

    def request_airdrop(self, public_key: str, lamports: int) -> str:
        self.events.append("airdrop")
        self._maybe_fail("airdrop")
        self.airdrops.append((public_key, lamports))
        return "AirdropSig"

    def get_latest_blockhash(self) -> tuple[str, int]:
        self.events.append("blockhash")
        return str(Hash.default()), 500

    def send_transaction(self, raw_transaction: bytes) -> str:
        self.events.append("send")
        self._maybe_fail("send")
        transaction = Transaction.from_bytes(raw_transaction)
        self.sent.append(transaction)
        return str(transaction.signatures[0])

    def confirm_transaction(self, signature: str, *, last_valid_block_height: int, poll_interval: float = 1.0) -> dict[str, Any]:  # noqa: ARG002
        self.events.append("confirm")
        self._maybe_fail("confirm")
        self.confirmed.append((signature, last_valid_block_height))
        return {"confirmationStatus": "confirmed", "err": None}


def test_check_balance_reports_whole_tokens() -> None:
    rpc = FakeRPC([2_500_000_000])
    messages: list[str] = []

    balance = check_balance(rpc, Keypair(), echo=messages.append)

    assert balance == 2.5
    assert messages == ["Current balance is 2.5 SOL"]


@pytest.mark.parametrize(
    ("lamports", "expect_airdrop"),
    [
        (LAMPORTS_PER_SOL // 2, True),
        (0, True),
        (LAMPORTS_PER_SOL, False),
        (3 * LAMPORTS_PER_SOL, False),
    ],
)
def test_airdrop_only_below_one_sol(lamports: int, expect_airdrop: bool) -> None:
    rpc = FakeRPC([lamports, lamports + LAMPORTS_PER_SOL])

    result = airdrop_if_needed(rpc, Keypair(), IntroSettings(), echo=lambda _m: None)

    assert bool(rpc.airdrops) is expect_airdrop
    if expect_airdrop:
        assert result == (lamports + LAMPORTS_PER_SOL) / LAMPORTS_PER_SOL
    else:
        assert result is None


def test_airdrop_waits_for_confirmation_before_rechecking() -> None:
    rpc = FakeRPC([0, LAMPORTS_PER_SOL])
    keypair = Keypair()
    messages: list[str] = []

    airdrop_if_needed(rpc, keypair, IntroSettings(), echo=messages.append)

    assert rpc.events == ["balance", "airdrop", "blockhash", "confirm", "balance"]
    assert rpc.airdrops == [(str(keypair.pubkey()), LAMPORTS_PER_SOL)]
    assert rpc.confirmed == [("AirdropSig", 500)]
    assert messages[-1] == "New balance is 1.0 SOL"


def test_transfer_instruction_encodes_sender_recipient_amount() -> None:
    sender = Keypair().pubkey()
    recipient = Keypair().pubkey()

    instruction = build_transfer_instruction(sender, recipient, 42)
    params = decode_transfer(instruction)

    assert instruction.program_id == SYSTEM_PROGRAM_ID
    assert params["from_pubkey"] == sender
    assert params["to_pubkey"] == recipient
    assert params["lamports"] == 42


@pytest.mark.parametrize("amount", [0, -5, True])
def test_transfer_instruction_rejects_bad_amounts(amount: int) -> None:
    with pytest.raises(ValueError):
        build_transfer_instruction(Keypair().pubkey(), Keypair().pubkey(), amount)


def test_ping_instruction_touches_single_writable_account() -> None:
    program_id = Pubkey.from_string(PING_PROGRAM_ID)
    data_account = Pubkey.from_string(PING_PROGRAM_DATA)

    instruction = build_ping_instruction(program_id, data_account)

    assert instruction.program_id == program_id
    assert bytes(instruction.data) == b""
    assert len(instruction.accounts) == 1
    meta = instruction.accounts[0]
    assert meta.pubkey == data_account
    assert meta.is_writable is True
    assert meta.is_signer is False


def test_send_sol_confirms_before_returning() -> None:
    rpc = FakeRPC()
    sender = Keypair()
    recipient = Keypair().pubkey()
    messages: list[str] = []

    signature = send_sol(rpc, sender, recipient, 100_000_000, echo=messages.append)

    assert rpc.events == ["blockhash", "send", "confirm"]
    assert rpc.confirmed == [(str(signature), 500)]
    transaction = rpc.sent[0]
    assert transaction.message.account_keys[0] == sender.pubkey()
    assert transaction.verify() is None
    assert explorer_url(signature) in messages[0]
    assert messages[0].endswith("?cluster=devnet")


def test_ping_program_signs_with_payer() -> None:
    rpc = FakeRPC()
    payer = Keypair()

    signature = ping_program(
        rpc,
        payer,
        Pubkey.from_string(PING_PROGRAM_ID),
        Pubkey.from_string(PING_PROGRAM_DATA),
        echo=lambda _m: None,
    )

    transaction = rpc.sent[0]
    assert transaction.signatures[0] == signature
    assert transaction.message.account_keys[0] == payer.pubkey()
    assert Pubkey.from_string(PING_PROGRAM_ID) in transaction.message.account_keys


def test_send_and_confirm_propagates_confirmation_failure() -> None:
    rpc = FakeRPC(fail_on="confirm")
    sender = Keypair()
    instruction = build_transfer_instruction(sender.pubkey(), Keypair().pubkey(), 1)

    with pytest.raises(SolanaRPCError):
        send_and_confirm(rpc, [instruction], [sender])
    assert rpc.events == ["blockhash", "send", "confirm"]


def test_send_and_confirm_requires_signer() -> None:
    instruction = build_transfer_instruction(Keypair().pubkey(), Keypair().pubkey(), 1)

    with pytest.raises(ValueError):
        send_and_confirm(FakeRPC(), [instruction], [])


def test_run_workflow_default_provisions_and_checks_balance() -> None:
    rpc = FakeRPC([LAMPORTS_PER_SOL])
    store = MemorySecretStore()
    messages: list[str] = []

    report = run_workflow(IntroSettings(), rpc=rpc, store=store, echo=messages.append)

    assert report.ok
    assert report.exit_code == 0
    assert report.steps == ["provision", "balance"]
    keypair = report.value("provision")
    assert f"Public key: {keypair.pubkey()}" in messages
    assert report.value("balance") == 1.0


def test_run_workflow_runs_enabled_steps_in_order() -> None:
    keypair = Keypair()
    store = MemorySecretStore(secret=format_secret(keypair))
    rpc = FakeRPC([0, LAMPORTS_PER_SOL])
    recipient = str(Keypair().pubkey())

    report = run_workflow(
        IntroSettings(),
        rpc=rpc,
        store=store,
        options=WorkflowOptions(airdrop=True, ping=True, send_to=recipient, send_amount_sol=0.1),
        echo=lambda _m: None,
    )

    assert report.ok
    assert report.steps == ["provision", "airdrop", "ping", "send", "balance"]
    assert report.value("provision").pubkey() == keypair.pubkey()
    assert len(rpc.sent) == 2
    assert store.writes == []


def test_run_workflow_stops_at_first_failure() -> None:
    rpc = FakeRPC(fail_on="airdrop")

    report = run_workflow(
        IntroSettings(),
        rpc=rpc,
        store=MemorySecretStore(),
        options=WorkflowOptions(airdrop=True, ping=True),
        echo=lambda _m: None,
    )

    assert not report.ok
    assert report.exit_code == 1
    assert report.steps == ["provision", "airdrop"]
    failure = report.failure
    assert isinstance(failure, StepFailure)
    assert failure.step == "airdrop"
    assert isinstance(failure.error, SolanaRPCError)
    assert rpc.sent == []


def test_run_workflow_reports_provision_failure() -> None:
    rpc = FakeRPC()

    report = run_workflow(
        IntroSettings(),
        rpc=rpc,
        store=MemorySecretStore(secret="[oops]"),
        echo=lambda _m: None,
    )

    assert report.exit_code == 1
    assert report.steps == ["provision"]
    assert rpc.events == []


def test_run_workflow_rejects_bad_recipient_in_send_step() -> None:
    report = run_workflow(
        IntroSettings(),
        rpc=FakeRPC(),
        store=MemorySecretStore(),
        options=WorkflowOptions(send_to="not-a-pubkey"),
        echo=lambda _m: None,
    )

    assert report.failure is not None
    assert report.failure.step == "send"
