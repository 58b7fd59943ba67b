"""CLI package for solintro."""

from __future__ import annotations

import logging
from importlib import metadata
from pathlib import Path

import typer
from prompt_toolkit import print_formatted_text
from rich.markup import escape

from solintro.core import (
    DEFAULT_CONFIG_DIR,
    ConfigManager,
    ConfigurationError,
    IntroSettings,
    WorkflowReport,
)
from solintro.solana import SolanaRPCClient, WorkflowOptions, run_workflow
from solintro.solana.identity import IdentityError, keypair_from_secret, store_for_settings
from solintro.solana.secret_store import SecretStoreError

from .app_bar import AppBar
from .branding import themed_console
from .wallet_button import WalletContext

app = typer.Typer(help="Solana devnet intro client", no_args_is_help=False)

CLI_CONSOLE = themed_console()
WIDGET_LOAD_TIMEOUT = 5.0


def styled_echo(message: str = "", *, nl: bool = True) -> None:
    """Print using the solintro themed console."""
    CLI_CONSOLE.print(message, end="" if not nl else "\n", soft_wrap=True)


def plain_echo(message: str) -> None:
    """Print workflow output verbatim, without markup interpretation."""
    CLI_CONSOLE.print(message, markup=False, highlight=False, soft_wrap=True)


def _configure_logging(verbose: bool, log_dir: Path | None) -> None:
    root_logger = logging.getLogger()
    if verbose:
        if not root_logger.handlers:
            logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        root_logger.setLevel(logging.DEBUG)
    else:
        if root_logger.handlers:
            root_logger.setLevel(logging.WARNING)
        else:
            logging.basicConfig(level=logging.WARNING, format="%(message)s")
    if verbose and log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_dir / "solintro.log", encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        logging.getLogger().addHandler(handler)


def _config_manager(config_file: Path | None) -> ConfigManager:
    override = config_file.expanduser().resolve() if config_file is not None else None
    return ConfigManager(config_dir=DEFAULT_CONFIG_DIR, override_config_path=override)


def _load_settings(config_file: Path | None) -> IntroSettings:
    try:
        return _config_manager(config_file).load()
    except ConfigurationError as exc:
        styled_echo(f"❌ {escape(str(exc))}")
        raise typer.Exit(code=1) from exc


def _build_rpc(settings: IntroSettings) -> SolanaRPCClient:
    return SolanaRPCClient(
        endpoint=settings.endpoint,
        timeout=settings.rpc_timeout,
        commitment=settings.commitment,
    )


def _finish(report: WorkflowReport) -> None:
    failure = report.failure
    if failure is None:
        styled_echo("[solintro.success]Finished successfully[/]")
        raise typer.Exit(code=0)
    styled_echo(f"[solintro.log.error]❌ {failure.step} failed:[/] {escape(failure.message)}")
    raise typer.Exit(code=report.exit_code)


def _execute(ctx: typer.Context, options: WorkflowOptions) -> None:
    obj = ctx.obj or {}
    verbose = bool(obj.get("verbose", False))
    _configure_logging(verbose, log_dir=Path.cwd() / ".solintro" / "logs")
    settings = _load_settings(obj.get("config"))
    rpc = _build_rpc(settings)
    report = run_workflow(settings, rpc=rpc, options=options, echo=plain_echo)
    _finish(report)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", help="Merge settings from this TOML file"),  # noqa: B008
) -> None:
    """Generate or load a keypair and talk to a Solana cluster."""
    ctx.obj = {"verbose": verbose, "config": config}
    if ctx.invoked_subcommand is None:
        _execute(ctx, WorkflowOptions())


@app.command()
def run(
    ctx: typer.Context,
    airdrop: bool = typer.Option(False, "--airdrop", help="Request 1 SOL from the faucet if the balance is under 1 SOL"),  # noqa: B008
    ping: bool = typer.Option(False, "--ping", help="Send an instruction to the ping program"),  # noqa: B008
    send_to: str | None = typer.Option(None, "--send-to", help="Transfer SOL to this address"),  # noqa: B008
    amount: float = typer.Option(0.1, "--amount", help="SOL to transfer with --send-to"),  # noqa: B008
    balance: bool = typer.Option(True, "--balance/--no-balance", help="Print the balance at the end"),  # noqa: B008
) -> None:
    """Provision the keypair and run the selected steps in order."""
    _execute(
        ctx,
        WorkflowOptions(
            airdrop=airdrop,
            ping=ping,
            send_to=send_to,
            send_amount_sol=amount,
            check_balance=balance,
        ),
    )


@app.command()
def keypair(ctx: typer.Context) -> None:
    """Print the public key, generating and saving a keypair if none exists."""
    _execute(ctx, WorkflowOptions(check_balance=False))


@app.command("balance")
def balance_command(ctx: typer.Context) -> None:
    """Print the current balance."""
    _execute(ctx, WorkflowOptions())


@app.command()
def airdrop(ctx: typer.Context) -> None:
    """Airdrop SOL if the balance is below the configured threshold."""
    _execute(ctx, WorkflowOptions(airdrop=True, check_balance=False))


@app.command()
def send(
    ctx: typer.Context,
    recipient: str = typer.Argument(..., help="Recipient address (base58)"),  # noqa: B008
    amount: float = typer.Option(0.1, "--amount", help="SOL to transfer"),  # noqa: B008
) -> None:
    """Transfer SOL to another address."""
    _execute(ctx, WorkflowOptions(send_to=recipient, send_amount_sol=amount, check_balance=False))


@app.command()
def ping(ctx: typer.Context) -> None:
    """Invoke the ping program once."""
    _execute(ctx, WorkflowOptions(ping=True, check_balance=False))


@app.command()
def appbar(ctx: typer.Context) -> None:
    """Render the application bar once."""
    obj = ctx.obj or {}
    settings = _load_settings(obj.get("config"))
    wallet_context = WalletContext()
    try:
        secret = store_for_settings(settings).load()
        if secret is not None:
            wallet_context = WalletContext(public_key=str(keypair_from_secret(secret).pubkey()), connected=True)
    except (IdentityError, SecretStoreError) as exc:
        styled_echo(f"[solintro.log.warn]⚠️  Wallet unavailable[/] ({escape(str(exc))}).")
    bar = AppBar(console=CLI_CONSOLE, wallet_context=wallet_context)
    if not bar.supports_toolbar:
        CLI_CONSOLE.print(bar.render_text())
        return
    bar.loader.load()
    bar.loader.wait(timeout=WIDGET_LOAD_TIMEOUT)
    print_formatted_text(bar.toolbar())


@app.command("init-config")
def init_config(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file"),  # noqa: B008
) -> None:
    """Write the default settings to the config directory."""
    manager = _config_manager((ctx.obj or {}).get("config"))
    try:
        path = manager.save(IntroSettings(), force=force)
    except ConfigurationError as exc:
        styled_echo(f"❌ {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    styled_echo(f"✅ Configuration written to {escape(str(path))}")


@app.command()
def version() -> None:
    """Show CLI version."""
    try:
        pkg_version = metadata.version("solintro")
    except metadata.PackageNotFoundError:
        pkg_version = "0.0.0"
    styled_echo(f"solintro version {pkg_version}")


def main() -> None:
    """Console script entrypoint."""
    app()


__all__ = ["app", "main", "styled_echo"]
