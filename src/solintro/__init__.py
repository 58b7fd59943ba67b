"""Solana devnet intro client and wallet app bar."""
