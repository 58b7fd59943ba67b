"""Devnet walkthrough: fund, inspect, transfer and ping with one keypair."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol

import typer
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from solintro.core.results import StepFailure, WorkflowReport, run_step
from solintro.solana.identity import provision_identity
from solintro.solana.rpc import lamports_to_sol, sol_to_lamports
from solintro.solana.secret_store import SecretStore
from solintro.solana.transactions import (
    SubmitClient,
    build_ping_instruction,
    build_transfer_instruction,
    explorer_url,
    send_and_confirm,
)

if TYPE_CHECKING:  # pragma: no cover
    from solintro.core.config import IntroSettings

logger = logging.getLogger(__name__)

EchoFn = Callable[[str], None]


class WorkflowClient(SubmitClient, Protocol):
    """RPC surface used by the workflow steps."""

    def get_balance_lamports(self, public_key: str) -> int: ...

    def request_airdrop(self, public_key: str, lamports: int) -> str: ...


@dataclass
class WorkflowOptions:
    """Which optional steps a run performs after provisioning."""

    airdrop: bool = False
    ping: bool = False
    send_to: str | None = None
    send_amount_sol: float = 0.1
    check_balance: bool = True


def check_balance(rpc: WorkflowClient, keypair: Keypair, *, echo: EchoFn = typer.echo) -> float:
    lamports = rpc.get_balance_lamports(str(keypair.pubkey()))
    balance = lamports_to_sol(lamports)
    echo(f"Current balance is {balance} SOL")
    return balance


def airdrop_if_needed(
    rpc: WorkflowClient,
    keypair: Keypair,
    settings: IntroSettings,
    *,
    echo: EchoFn = typer.echo,
) -> float | None:
    """Top up from the faucet when the balance is under the threshold.

    Returns the balance after the airdrop confirmed, or None when the wallet
    already held enough.
    """
    address = str(keypair.pubkey())
    balance = lamports_to_sol(rpc.get_balance_lamports(address))
    echo(f"Current balance is {balance} SOL")
    if balance >= settings.airdrop_threshold_sol:
        logger.debug("Balance %.9f SOL meets threshold; skipping airdrop", balance)
        return None

    echo(f"Airdropping {settings.airdrop_amount_sol} SOL")
    signature = rpc.request_airdrop(address, sol_to_lamports(settings.airdrop_amount_sol))
    _, last_valid_block_height = rpc.get_latest_blockhash()
    rpc.confirm_transaction(
        signature,
        last_valid_block_height=last_valid_block_height,
        poll_interval=settings.confirm_poll_interval,
    )

    new_balance = lamports_to_sol(rpc.get_balance_lamports(address))
    echo(f"New balance is {new_balance} SOL")
    return new_balance


def send_sol(
    rpc: WorkflowClient,
    sender: Keypair,
    recipient: Pubkey,
    lamports: int,
    *,
    cluster: str = "devnet",
    poll_interval: float = 1.0,
    echo: EchoFn = typer.echo,
) -> Signature:
    instruction = build_transfer_instruction(sender.pubkey(), recipient, lamports)
    signature = send_and_confirm(rpc, [instruction], [sender], poll_interval=poll_interval)
    echo(
        "You can view your transaction on the Solana Explorer at:\n"
        f"{explorer_url(signature, cluster)}"
    )
    return signature


def ping_program(
    rpc: WorkflowClient,
    payer: Keypair,
    program_id: Pubkey,
    data_account: Pubkey,
    *,
    cluster: str = "devnet",
    poll_interval: float = 1.0,
    echo: EchoFn = typer.echo,
) -> Signature:
    instruction = build_ping_instruction(program_id, data_account)
    signature = send_and_confirm(rpc, [instruction], [payer], poll_interval=poll_interval)
    echo(f"Transaction {explorer_url(signature, cluster)}")
    return signature


def run_workflow(
    settings: IntroSettings,
    *,
    rpc: WorkflowClient,
    store: SecretStore | None = None,
    options: WorkflowOptions | None = None,
    echo: EchoFn = typer.echo,
) -> WorkflowReport:
    """Provision the keypair, then run the enabled steps in order.

    The first failing step ends the run; later steps are not attempted.
    """
    options = options or WorkflowOptions()
    report = WorkflowReport()

    identity = report.add(run_step("provision", provision_identity, settings, store, echo=echo))
    if isinstance(identity, StepFailure):
        return report
    keypair: Keypair = identity.value
    echo(f"Public key: {keypair.pubkey()}")

    cluster = settings.network
    poll = settings.confirm_poll_interval
    steps: list[tuple[str, Callable[[], object]]] = []
    if options.airdrop:
        steps.append(("airdrop", lambda: airdrop_if_needed(rpc, keypair, settings, echo=echo)))
    if options.ping:
        steps.append(
            (
                "ping",
                lambda: ping_program(
                    rpc,
                    keypair,
                    Pubkey.from_string(settings.ping_program_id),
                    Pubkey.from_string(settings.ping_program_data),
                    cluster=cluster,
                    poll_interval=poll,
                    echo=echo,
                ),
            )
        )
    if options.send_to:
        recipient = options.send_to
        steps.append(
            (
                "send",
                lambda: send_sol(
                    rpc,
                    keypair,
                    Pubkey.from_string(recipient),
                    sol_to_lamports(options.send_amount_sol),
                    cluster=cluster,
                    poll_interval=poll,
                    echo=echo,
                ),
            )
        )
    if options.check_balance:
        steps.append(("balance", lambda: check_balance(rpc, keypair, echo=echo)))

    for name, step in steps:
        result = report.add(run_step(name, step))
        if isinstance(result, StepFailure):
            logger.info("Stopping after failed step '%s'", name)
            break
    return report


__all__ = [
    "WorkflowClient",
    "WorkflowOptions",
    "airdrop_if_needed",
    "check_balance",
    "ping_program",
    "run_workflow",
    "send_sol",
]
