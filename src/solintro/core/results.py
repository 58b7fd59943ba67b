"""Typed outcomes for workflow steps."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StepSuccess(Generic[T]):
    """A step that completed and produced `value`."""

    step: str
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class StepFailure:
    """A step that raised; `error` is the original exception."""

    step: str
    error: BaseException

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


StepResult = StepSuccess[Any] | StepFailure


def run_step(step: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> StepSuccess[T] | StepFailure:
    """Call `fn` and wrap its outcome; exceptions become a StepFailure."""
    logger.debug("Starting step '%s'", step)
    try:
        value = fn(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Step '%s' failed", step, exc_info=True)
        return StepFailure(step=step, error=exc)
    return StepSuccess(step=step, value=value)


@dataclass
class WorkflowReport:
    """Ordered results of one run; stops growing at the first failure."""

    results: list[StepResult] = field(default_factory=list)

    def add(self, result: StepResult) -> StepResult:
        self.results.append(result)
        return result

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failure(self) -> StepFailure | None:
        for result in self.results:
            if isinstance(result, StepFailure):
                return result
        return None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1

    @property
    def steps(self) -> list[str]:
        return [result.step for result in self.results]

    def value(self, step: str) -> Any:
        for result in self.results:
            if result.step == step and isinstance(result, StepSuccess):
                return result.value
        raise KeyError(step)


__all__ = ["StepFailure", "StepResult", "StepSuccess", "WorkflowReport", "run_step"]
