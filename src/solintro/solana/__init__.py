"""Solana-focused utilities for solintro."""

from .identity import IdentityError, format_secret, parse_secret, provision_identity
from .rpc import LAMPORTS_PER_SOL, SolanaRPCClient, SolanaRPCError, TransactionExpiredError
from .secret_store import DotenvSecretStore, MemorySecretStore, SecretStore, SecretStoreError
from .workflow import WorkflowOptions, run_workflow

__all__ = [
    "LAMPORTS_PER_SOL",
    "SolanaRPCClient",
    "SolanaRPCError",
    "TransactionExpiredError",
    "IdentityError",
    "format_secret",
    "parse_secret",
    "provision_identity",
    "SecretStore",
    "SecretStoreError",
    "DotenvSecretStore",
    "MemorySecretStore",
    "WorkflowOptions",
    "run_workflow",
]
