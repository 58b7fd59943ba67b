"""Core services for solintro."""

from .config import (
    DEFAULT_CONFIG_DIR,
    ConfigManager,
    ConfigurationError,
    IntroSettings,
)
from .results import StepFailure, StepResult, StepSuccess, WorkflowReport, run_step

__all__ = [
    "ConfigManager",
    "ConfigurationError",
    "IntroSettings",
    "DEFAULT_CONFIG_DIR",
    "StepFailure",
    "StepResult",
    "StepSuccess",
    "WorkflowReport",
    "run_step",
]
