"""Solana JSON-RPC helpers."""

from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000

CLUSTER_URLS = {
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
}

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class SolanaRPCError(RuntimeError):
    """Raised when Solana RPC calls fail."""


class TransactionExpiredError(SolanaRPCError):
    """Raised when a signature is still unconfirmed after its blockhash expired."""


RequestFn = Callable[[str, Any], httpx.Response]


def cluster_api_url(cluster: str) -> str:
    """Return the public RPC endpoint for a named cluster."""
    try:
        return CLUSTER_URLS[cluster]
    except KeyError as exc:
        known = ", ".join(sorted(CLUSTER_URLS))
        raise ValueError(f"Unknown cluster '{cluster}'. Expected one of: {known}") from exc


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL


def sol_to_lamports(amount: float) -> int:
    return int(round(amount * LAMPORTS_PER_SOL))


@dataclass
class SolanaRPCClient:
    """Thin wrapper around Solana's JSON-RPC interface."""

    endpoint: str
    timeout: float = 30.0
    commitment: str = "confirmed"
    _request: RequestFn | None = None
    _sleep: Callable[[float], None] | None = None

    def __post_init__(self) -> None:
        if self._request is None:
            self._request = httpx.post
        if self._sleep is None:
            self._sleep = time.sleep
        if self.commitment not in _COMMITMENT_RANK:
            raise ValueError(f"Unsupported commitment level '{self.commitment}'")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_balance_lamports(self, public_key: str) -> int:
        """Return the raw balance for `public_key` in lamports."""
        result = self._call("getBalance", [public_key, {"commitment": self.commitment}])
        try:
            lamports = result["value"]
        except (KeyError, TypeError) as exc:
            raise SolanaRPCError("Malformed RPC response; missing balance value") from exc

        if not isinstance(lamports, int):
            raise SolanaRPCError("Balance value is not an integer")
        return lamports

    def get_balance(self, public_key: str) -> float:
        """Return balance for `public_key` in SOL."""
        balance = lamports_to_sol(self.get_balance_lamports(public_key))
        logger.debug("Fetched balance %.9f SOL for %s", balance, public_key)
        return balance

    def get_latest_blockhash(self) -> tuple[str, int]:
        """Return the latest blockhash and the last block height it stays valid for."""
        result = self._call("getLatestBlockhash", [{"commitment": self.commitment}])
        try:
            value = result["value"]
            return value["blockhash"], int(value["lastValidBlockHeight"])
        except (KeyError, TypeError, ValueError) as exc:
            raise SolanaRPCError("Malformed RPC response; missing blockhash") from exc

    def get_block_height(self) -> int:
        result = self._call("getBlockHeight", [{"commitment": self.commitment}])
        if not isinstance(result, int):
            raise SolanaRPCError("Block height is not an integer")
        return result

    def get_signature_status(self, signature: str) -> dict[str, Any] | None:
        """Return the status entry for `signature`, or None if the node has not seen it."""
        result = self._call("getSignatureStatuses", [[signature], {"searchTransactionHistory": False}])
        try:
            statuses = result["value"]
        except (KeyError, TypeError) as exc:
            raise SolanaRPCError("Malformed RPC response; missing signature statuses") from exc
        if not statuses:
            return None
        return statuses[0]

    # ------------------------------------------------------------------
    # Submissions
    # ------------------------------------------------------------------
    def request_airdrop(self, public_key: str, lamports: int) -> str:
        """Ask the cluster faucet for `lamports` and return the airdrop signature."""
        signature = self._call("requestAirdrop", [public_key, lamports, {"commitment": self.commitment}])
        if not isinstance(signature, str):
            raise SolanaRPCError("Airdrop response did not include a signature")
        logger.debug("Requested airdrop of %d lamports for %s (%s)", lamports, public_key, signature)
        return signature

    def send_transaction(self, raw_transaction: bytes) -> str:
        """Submit a signed, serialized transaction and return its signature."""
        encoded = base64.b64encode(raw_transaction).decode("ascii")
        signature = self._call(
            "sendTransaction",
            [
                encoded,
                {
                    "encoding": "base64",
                    "skipPreflight": False,
                    "preflightCommitment": self.commitment,
                },
            ],
        )
        if not isinstance(signature, str):
            raise SolanaRPCError("sendTransaction response did not include a signature")
        logger.debug("Submitted transaction %s", signature)
        return signature

    def confirm_transaction(
        self,
        signature: str,
        *,
        last_valid_block_height: int,
        poll_interval: float = 1.0,
    ) -> dict[str, Any]:
        """Block until `signature` reaches the client commitment level.

        The wait is bounded by `last_valid_block_height`: once the cluster moves
        past that height without the signature landing, the transaction can no
        longer be included and `TransactionExpiredError` is raised.
        """
        while True:
            status = self.get_signature_status(signature)
            if status is not None:
                if status.get("err") is not None:
                    raise SolanaRPCError(f"Transaction {signature} failed: {status['err']}")
                if self._commitment_reached(status):
                    logger.debug("Signature %s reached %s", signature, status.get("confirmationStatus"))
                    return status
            block_height = self.get_block_height()
            if block_height > last_valid_block_height:
                raise TransactionExpiredError(
                    f"Signature {signature} has expired: block height exceeded {last_valid_block_height}"
                )
            self._sleep(poll_interval)  # type: ignore[misc]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _commitment_reached(self, status: dict[str, Any]) -> bool:
        reached = status.get("confirmationStatus")
        if reached is None:
            # Nodes omit confirmationStatus for rooted transactions.
            return status.get("confirmations") is None
        return _COMMITMENT_RANK.get(reached, -1) >= _COMMITMENT_RANK[self.commitment]

    def _call(self, method: str, params: list[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        logger.debug("RPC %s -> %s", method, self.endpoint)
        try:
            response = self._request(self.endpoint, json=payload, timeout=self.timeout)  # type: ignore[misc]
        except httpx.HTTPError as exc:
            raise SolanaRPCError(f"RPC request failed: {exc}") from exc
        try:
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise SolanaRPCError(f"RPC request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:  # pragma: no cover - unexpected for compliant RPC
            raise SolanaRPCError("Invalid JSON in RPC response") from exc

        if not isinstance(data, dict):
            raise SolanaRPCError(f"Malformed RPC response for {method}; expected an object")

        if "error" in data:
            error = data["error"]
            if isinstance(error, dict):
                message = error.get("message", "Unknown RPC error")
            else:
                message = str(error)
            raise SolanaRPCError(message)

        if "result" not in data:
            raise SolanaRPCError(f"Malformed RPC response for {method}; missing result")
        return data["result"]


__all__ = [
    "CLUSTER_URLS",
    "LAMPORTS_PER_SOL",
    "SolanaRPCClient",
    "SolanaRPCError",
    "TransactionExpiredError",
    "cluster_api_url",
    "lamports_to_sol",
    "sol_to_lamports",
]
