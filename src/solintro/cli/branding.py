"""Solana-inspired styling for the solintro console."""

from __future__ import annotations

from rich.console import Console
from rich.text import Text
from rich.theme import Theme

SOLINTRO_THEME = Theme(
    {
        # Brand
        "solintro.logo.primary": "bold #9945FF",
        "solintro.logo.secondary": "bold #14F195",
        "solintro.label": "bold #E6FFFA",

        # Wallet button
        "solintro.wallet.idle": "bold #A855F7",
        "solintro.wallet.connected": "bold #14F195",
        "solintro.wallet.pending": "#FBBF24",
        "solintro.wallet.error": "#FB7185",

        # Status & Logs
        "solintro.text.dim": "dim #64748B",
        "solintro.log.info": "#38BDF8",
        "solintro.log.warn": "#FBBF24",
        "solintro.log.error": "#FB7185",
        "solintro.success": "bold #14F195",
    }
)

LOGO_MARK = "◎"
LOGO_WORD = "SOLANA"


def themed_console(**kwargs: object) -> Console:
    """Return a Console configured with the solintro theme."""
    return Console(theme=SOLINTRO_THEME, **kwargs)


def logo_text() -> Text:
    """Return the brand mark used where the logo image would appear."""
    text = Text()
    text.append(f"{LOGO_MARK} ", style="solintro.logo.secondary")
    text.append(LOGO_WORD, style="solintro.logo.primary")
    return text


__all__ = ["SOLINTRO_THEME", "LOGO_MARK", "LOGO_WORD", "logo_text", "themed_console"]
