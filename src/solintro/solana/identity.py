"""Signing identity provisioning."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Callable

from solders.keypair import Keypair

from solintro.solana.secret_store import DotenvSecretStore, SecretStore, SecretStoreError

if TYPE_CHECKING:  # pragma: no cover
    from solintro.core.config import IntroSettings

logger = logging.getLogger(__name__)

SECRET_KEY_LENGTH = 64


class IdentityError(RuntimeError):
    """Raised when a signing identity cannot be loaded or persisted."""


def parse_secret(value: str) -> bytes:
    """Parse a bracketed list of byte values such as ``[12,255,...]``."""
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as exc:
        raise IdentityError("Secret key must be a JSON array of byte values.") from exc
    if not isinstance(parsed, list):
        raise IdentityError("Secret key must be a JSON array of byte values.")
    if not all(isinstance(item, int) and not isinstance(item, bool) for item in parsed):
        raise IdentityError("Secret key entries must be integers.")
    if any(item < 0 or item > 255 for item in parsed):
        raise IdentityError("Secret key entries must be between 0 and 255.")
    if len(parsed) != SECRET_KEY_LENGTH:
        raise IdentityError(f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(parsed)}.")
    return bytes(parsed)


def format_secret(keypair: Keypair) -> str:
    """Serialize the keypair secret in the form `parse_secret` accepts."""
    return "[" + ",".join(str(byte) for byte in bytes(keypair)) + "]"


def keypair_from_secret(value: str) -> Keypair:
    secret = parse_secret(value)
    keypair = Keypair.from_seed(secret[:32])
    if bytes(keypair.pubkey()) != secret[32:]:
        raise IdentityError("Provided public key does not match private key.")
    return keypair


def store_for_settings(settings: IntroSettings) -> DotenvSecretStore:
    return DotenvSecretStore(path=settings.env_path(), variable=settings.secret_env_var)


def provision_identity(
    settings: IntroSettings,
    store: SecretStore | None = None,
    *,
    echo: Callable[[str], None] | None = None,
) -> Keypair:
    """Load the signing identity from `store`, creating and persisting one if absent."""
    store = store if store is not None else store_for_settings(settings)
    say = echo or (lambda _message: None)

    try:
        secret = store.load()
    except SecretStoreError as exc:
        raise IdentityError(str(exc)) from exc

    if secret is not None:
        keypair = keypair_from_secret(secret)
        logger.debug("Loaded existing keypair %s", keypair.pubkey())
        return keypair

    say("Generating new keypair... 🗝️")
    keypair = Keypair()
    say(f"Saving secret key as {settings.secret_env_var}")
    try:
        store.save(format_secret(keypair))
    except SecretStoreError as exc:
        raise IdentityError(f"New keypair could not be persisted: {exc}") from exc
    logger.info("Generated keypair %s", keypair.pubkey())
    return keypair


__all__ = [
    "IdentityError",
    "SECRET_KEY_LENGTH",
    "format_secret",
    "keypair_from_secret",
    "parse_secret",
    "provision_identity",
    "store_for_settings",
]
