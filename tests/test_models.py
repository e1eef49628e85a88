"""Tests for the workflow run record models."""

from __future__ import annotations
from datetime import UTC, datetime
from runtrace.models import UNKNOWN, Job, Known, Step, WorkflowRun, instant_of
from tests._run_payloads import at, job_payload, step_payload


def test_instant_of_wraps_optional_timestamps() -> None:
    assert instant_of(None) is UNKNOWN
    assert instant_of(at(1)) == Known(at(1))


def test_known_pins_naive_datetimes_to_utc() -> None:
    known = Known(datetime(2024, 5, 1, 12, 0))
    assert known.at.tzinfo is UTC


def test_job_parses_github_payload() -> None:
    payload = job_payload(
        "build",
        started=at(1),
        completed=None,
        status="in_progress",
        steps=[step_payload("compile", started=at(1), completed=None)],
    )
    payload["labels"] = ["ubuntu-latest"]

    job = Job.model_validate(payload)

    assert job.run_id == 42
    assert job.start == Known(at(1))
    assert job.completion is UNKNOWN
    assert [step.name for step in job.steps] == ["compile"]
    assert job.steps[0].completion is UNKNOWN


def test_blank_strings_become_missing_values() -> None:
    step = Step.model_validate({"name": "  ", "status": "completed"})
    assert step.name is None


def test_job_without_steps_has_empty_listing() -> None:
    job = Job.model_validate({"name": "queued", "steps": None})
    assert job.steps == []


def test_step_failure_requires_failure_conclusion() -> None:
    assert Step(name="x", status="completed", conclusion="failure").failed
    assert not Step(name="x", status="completed", conclusion="cancelled").failed
    assert not Step(name="x", status="in_progress").failed


def test_workflow_run_created_instant() -> None:
    run = WorkflowRun.model_validate(
        {"name": "CI", "created_at": "2024-05-01T12:00:00Z"}
    )
    assert run.created == Known(datetime(2024, 5, 1, 12, 0, tzinfo=UTC))
    assert WorkflowRun(name="CI").created is UNKNOWN
