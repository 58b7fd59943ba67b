"""Configuration management for the solintro client."""

from __future__ import annotations

import os
import tomllib
from copy import deepcopy
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, ValidationError, field_validator

from solintro.solana.rpc import CLUSTER_URLS, cluster_api_url

DEFAULT_CONFIG_DIR = Path(os.environ.get("SOLINTRO_HOME", Path.home() / ".solintro"))
CONFIG_FILENAME = "config.toml"
MAX_AIRDROP_SOL = 2.0

PING_PROGRAM_ID = "ChT1B39WKLS8qUrkLvFDXMhEJ4F1XZzwUNHUt4AU9aVa"
PING_PROGRAM_DATA = "Ah9K7dQ8EHaZqcAsgBW8w37yN2eAy3koFmUn4x3CJtod"


class ConfigurationError(RuntimeError):
    """Raised when configuration loading fails."""


class IntroSettings(BaseModel):
    """Settings for one run of the workflow."""

    config_version: int = 1
    network: str = "devnet"
    rpc_url: str | None = None
    commitment: str = "confirmed"
    rpc_timeout: float = 30.0
    env_file: str = ".env"
    secret_env_var: str = "PRIVATE_KEY"
    airdrop_threshold_sol: float = 1.0
    # The devnet faucet rejects requests above MAX_AIRDROP_SOL.
    airdrop_amount_sol: float = 1.0
    confirm_poll_interval: float = 1.0
    ping_program_id: str = PING_PROGRAM_ID
    ping_program_data: str = PING_PROGRAM_DATA

    @field_validator("network")
    @classmethod
    def _known_network(cls, value: str) -> str:
        if value not in CLUSTER_URLS:
            raise ValueError(f"network must be one of {sorted(CLUSTER_URLS)}")
        return value

    @field_validator("commitment")
    @classmethod
    def _known_commitment(cls, value: str) -> str:
        if value not in {"processed", "confirmed", "finalized"}:
            raise ValueError("commitment must be processed, confirmed or finalized")
        return value

    @field_validator("airdrop_amount_sol")
    @classmethod
    def _positive_airdrop(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("airdrop_amount_sol must be positive")
        if value > MAX_AIRDROP_SOL:
            raise ValueError(f"airdrop_amount_sol must be at most {MAX_AIRDROP_SOL} SOL")
        return value

    @property
    def endpoint(self) -> str:
        return self.rpc_url or cluster_api_url(self.network)

    def env_path(self, base_dir: Path | None = None) -> Path:
        path = Path(self.env_file).expanduser()
        if path.is_absolute():
            return path
        return (base_dir or Path.cwd()) / path


class ConfigManager:
    """Loads and persists settings from TOML files."""

    def __init__(
        self,
        config_dir: Path | None = None,
        override_config_path: Path | None = None,
    ) -> None:
        self.config_dir = config_dir or DEFAULT_CONFIG_DIR
        self.config_path = self.config_dir / CONFIG_FILENAME
        self.override_config_path = override_config_path

    def load(self) -> IntroSettings:
        data: dict[str, Any] = self._read_config_dict(self.config_path)
        if self.override_config_path:
            if not self.override_config_path.exists():
                raise ConfigurationError(f"Config file '{self.override_config_path}' not found")
            data = self._merge_dicts(data, self._read_config_dict(self.override_config_path))
        try:
            return IntroSettings(**data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    def save(self, settings: IntroSettings, *, force: bool = False) -> Path:
        if self.config_path.exists() and not force:
            raise ConfigurationError(f"{self.config_path} already exists. Pass force=True to overwrite.")
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(tomli_w.dumps(settings.model_dump(exclude_none=True)))
        return self.config_path

    def _read_config_dict(self, path: Path | None) -> dict[str, Any]:
        if path is None:
            return {}
        if not path.exists():
            return {}
        try:
            return tomllib.loads(path.read_text())
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise ConfigurationError(f"Failed to load config from {path}: {exc}") from exc

    def _merge_dicts(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        result = deepcopy(base)
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG_DIR",
    "MAX_AIRDROP_SOL",
    "PING_PROGRAM_DATA",
    "PING_PROGRAM_ID",
    "ConfigManager",
    "ConfigurationError",
    "IntroSettings",
]
