"""Workflow run, job and step records as reported by GitHub Actions."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


__all__ = [
    "FAILURE_CONCLUSION",
    "Instant",
    "Job",
    "Known",
    "RunRecord",
    "Step",
    "UNKNOWN",
    "Unknown",
    "WorkflowRun",
    "instant_of",
]


FAILURE_CONCLUSION = "failure"
"""Step conclusion that marks the step's span as an error."""


@dataclass(frozen=True, slots=True)
class Known:
    """A historical instant reported by the CI provider."""

    at: datetime

    def __post_init__(self) -> None:
        """Pin naive datetimes to UTC."""
        if self.at.tzinfo is None:
            object.__setattr__(self, "at", self.at.replace(tzinfo=UTC))


@dataclass(frozen=True, slots=True)
class Unknown:
    """Marker for a unit that has not started or not finished."""


UNKNOWN = Unknown()

Instant = Known | Unknown
"""Either a known historical instant or :data:`UNKNOWN`."""


def instant_of(value: datetime | None) -> Instant:
    """Wrap an optional timestamp in the :data:`Instant` sum type."""
    if value is None:
        return UNKNOWN
    return Known(value)


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Step(_Record):
    """The smallest unit of work inside a job."""

    name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    number: int | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def start(self) -> Instant:
        """Return when the step started."""
        return instant_of(self.started_at)

    @property
    def completion(self) -> Instant:
        """Return when the step completed."""
        return instant_of(self.completed_at)

    @property
    def failed(self) -> bool:
        """Return ``True`` when the step concluded with a failure."""
        return self.conclusion == FAILURE_CONCLUSION


class Job(_Record):
    """A named phase of a workflow run with its ordered steps."""

    id: int | None = None
    run_id: int | None = None
    name: str | None = None
    status: str | None = None
    conclusion: str | None = None
    runner_name: str | None = None
    html_url: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    steps: list[Step] = Field(default_factory=list)

    @field_validator("steps", mode="before")
    @classmethod
    def _coerce_steps(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def start(self) -> Instant:
        """Return when the job started."""
        return instant_of(self.started_at)

    @property
    def completion(self) -> Instant:
        """Return when the job completed."""
        return instant_of(self.completed_at)


class WorkflowRun(_Record):
    """Metadata describing one execution of a workflow."""

    id: int | None = None
    name: str | None = None
    created_at: datetime | None = None
    html_url: str | None = None
    run_attempt: int | None = None
    status: str | None = None
    conclusion: str | None = None

    @property
    def created(self) -> Instant:
        """Return when the run was created."""
        return instant_of(self.created_at)


@dataclass(slots=True)
class RunRecord:
    """A fetched workflow run together with its jobs in listing order."""

    run: WorkflowRun
    jobs: list[Job] = field(default_factory=list)

    @property
    def step_count(self) -> int:
        """Return the number of steps across all jobs."""
        return sum(len(job.steps) for job in self.jobs)
