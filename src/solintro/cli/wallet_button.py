"""Wallet-connect button shown in the app bar."""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text


@dataclass(slots=True)
class WalletContext:
    """Connection state supplied by whoever owns the wallet."""

    public_key: str | None = None
    connected: bool = False
    connecting: bool = False

    @property
    def masked_address(self) -> str:
        if not self.public_key:
            return "---"
        return f"{self.public_key[:4]}…{self.public_key[-4:]}"


class WalletMultiButton:
    """Renders the wallet selection/connection state as a button label."""

    def __init__(self, context: WalletContext) -> None:
        self._context = context

    @property
    def label(self) -> str:
        if self._context.connecting:
            return "Connecting…"
        if self._context.connected and self._context.public_key:
            return self._context.masked_address
        return "Select Wallet"

    def render(self) -> Text:
        if self._context.connecting:
            style = "solintro.wallet.pending"
        elif self._context.connected:
            style = "solintro.wallet.connected"
        else:
            style = "solintro.wallet.idle"
        return Text(f"[ {self.label} ]", style=style)


__all__ = ["WalletContext", "WalletMultiButton"]
