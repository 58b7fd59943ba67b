"""Where the signing secret lives between runs."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from dotenv import dotenv_values, set_key

logger = logging.getLogger(__name__)

DEFAULT_SECRET_VARIABLE = "PRIVATE_KEY"


class SecretStoreError(RuntimeError):
    """Raised when the secret cannot be read or written."""


class SecretStore(Protocol):
    """Loads and persists a serialized secret key."""

    def load(self) -> str | None: ...

    def save(self, secret: str) -> None: ...


@dataclass
class DotenvSecretStore:
    """Secret kept in the process environment or a dotenv file.

    The environment variable wins over the file so that a secret exported in
    the shell is used as-is. New secrets are written to the file only.
    """

    path: Path
    variable: str = DEFAULT_SECRET_VARIABLE
    environ: Mapping[str, str] | None = None

    def load(self) -> str | None:
        env = os.environ if self.environ is None else self.environ
        value = env.get(self.variable)
        if value and value.strip():
            logger.debug("Using secret from environment variable %s", self.variable)
            return value.strip()
        if not self.path.exists():
            return None
        try:
            value = dotenv_values(self.path).get(self.variable)
        except OSError as exc:
            raise SecretStoreError(f"Unable to read {self.path}: {exc}") from exc
        if not value or not value.strip():
            return None
        logger.debug("Using secret from %s", self.path)
        return value.strip()

    def save(self, secret: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch(exist_ok=True)
            set_key(str(self.path), self.variable, secret, quote_mode="never")
        except OSError as exc:
            raise SecretStoreError(f"Unable to write {self.path}: {exc}") from exc
        self._set_permissions()
        logger.debug("Persisted secret to %s", self.path)

    def _set_permissions(self) -> None:
        try:
            os.chmod(self.path, 0o600)
        except PermissionError:
            # Ignore on platforms without chmod support (e.g., Windows)
            pass


@dataclass
class MemorySecretStore:
    """Keeps the secret in memory; nothing survives the process."""

    secret: str | None = None
    writes: list[str] = field(default_factory=list)

    def load(self) -> str | None:
        return self.secret

    def save(self, secret: str) -> None:
        self.secret = secret
        self.writes.append(secret)


__all__ = [
    "DEFAULT_SECRET_VARIABLE",
    "DotenvSecretStore",
    "MemorySecretStore",
    "SecretStore",
    "SecretStoreError",
]
