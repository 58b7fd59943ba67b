from __future__ import annotations

import pytest

from solintro.core.results import StepFailure, StepSuccess, WorkflowReport, run_step


def test_run_step_wraps_return_value() -> None:
    result = run_step("double", lambda value: value * 2, 21)

    assert isinstance(result, StepSuccess)
    assert result.ok
    assert result.value == 42


def test_run_step_captures_exception() -> None:
    def boom() -> None:
        raise RuntimeError("rpc down")

    result = run_step("balance", boom)

    assert isinstance(result, StepFailure)
    assert not result.ok
    assert result.step == "balance"
    assert result.message == "rpc down"


def test_failure_message_falls_back_to_type_name() -> None:
    assert StepFailure(step="x", error=KeyError()).message == "KeyError"


def test_report_exit_codes() -> None:
    report = WorkflowReport()
    report.add(StepSuccess(step="provision", value="kp"))
    assert report.exit_code == 0
    assert report.failure is None

    report.add(StepFailure(step="ping", error=ValueError("bad")))
    assert report.exit_code == 1
    assert report.failure is not None and report.failure.step == "ping"
    assert report.steps == ["provision", "ping"]
    assert report.value("provision") == "kp"
    with pytest.raises(KeyError):
        report.value("ping")
