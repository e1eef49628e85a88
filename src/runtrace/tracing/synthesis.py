"""Synthesize a span tree from a finished workflow run.

One pass over the run's jobs, and within each job one pass over its steps,
opens and closes spans with the historical timestamps GitHub reports. The
root span closes at the latest known step completion rather than at any job's
completion, so it lines up with the last piece of work that actually
finished.
"""

from __future__ import annotations
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import cast
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Span, Status, StatusCode, Tracer
from opentelemetry.trace.span import format_trace_id
from runtrace.errors import RunDataError
from runtrace.models import (
    UNKNOWN,
    Instant,
    Job,
    Known,
    RunRecord,
    Step,
    Unknown,
)


logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MICROSECOND = timedelta(microseconds=1)

_JOB_FIELDS = ("run_id", "status", "name", "runner_name", "html_url")
_STEP_FIELDS = ("name", "status")


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def to_unix_nanos(value: datetime) -> int:
    """Return ``value`` as integer nanoseconds since the epoch, exactly."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // _MICROSECOND * 1_000


@dataclass(slots=True)
class SynthesisResult:
    """Summary of one synthesized trace."""

    trace_id: str
    root_end: datetime
    used_fallback_end: bool
    span_count: int
    failed_steps: list[str] = field(default_factory=list)


@dataclass(slots=True)
class SynthesisContext:
    """State owned by exactly one synthesis pass."""

    tracer: Tracer
    clock: Callable[[], datetime] = _utcnow
    last_finish: Instant = UNKNOWN
    span_count: int = 0
    failed_steps: list[str] = field(default_factory=list)

    def resolve(self, instant: Instant) -> datetime:
        """Return the historical instant, or now when it is unknown."""
        if isinstance(instant, Known):
            return instant.at
        return self.clock()

    def record_finish(self, instant: Instant) -> None:
        """Advance the running latest step completion."""
        if not isinstance(instant, Known):
            return
        current = self.last_finish
        if isinstance(current, Unknown) or instant.at > current.at:
            self.last_finish = instant

    def open_span(
        self,
        name: str,
        start: Instant,
        *,
        parent: Context | None = None,
    ) -> Span:
        """Start a span at ``start`` under ``parent``."""
        self.span_count += 1
        return self.tracer.start_span(
            name,
            context=parent if parent is not None else Context(),
            start_time=to_unix_nanos(self.resolve(start)),
        )

    def close_span(self, span: Span, end: Instant) -> datetime:
        """End ``span`` at ``end`` and return the instant used."""
        resolved = self.resolve(end)
        span.end(end_time=to_unix_nanos(resolved))
        return resolved


def _require(unit: str, record: object, fields: tuple[str, ...]) -> None:
    for name in fields:
        if getattr(record, name) is None:
            raise RunDataError(unit, name)


def validate_record(record: RunRecord) -> None:
    """Fail before any span opens if a span would lose a required field."""
    _require("Workflow run", record.run, ("name",))
    for job_index, job in enumerate(record.jobs):
        job_label = f"Job {job.name or job_index}"
        _require(job_label, job, _JOB_FIELDS)
        for step_index, step in enumerate(job.steps):
            step_label = f"{job_label} step {step.name or step_index}"
            _require(step_label, step, _STEP_FIELDS)


def _trace_step(ctx: SynthesisContext, step: Step, parent: Context) -> None:
    name = str(step.name)
    span = ctx.open_span(name, step.start, parent=parent)
    span.set_attribute("step.name", name)
    span.set_attribute("step.status", str(step.status))
    if step.conclusion is not None:
        span.set_attribute("step.conclusion", step.conclusion)

    if step.failed:
        span.set_status(Status(StatusCode.ERROR, f"Job step '{name}' failed"))
        ctx.failed_steps.append(name)

    ctx.close_span(span, step.completion)
    ctx.record_finish(step.completion)


def _trace_job(ctx: SynthesisContext, job: Job, parent: Context) -> None:
    span = ctx.open_span(str(job.name), job.start, parent=parent)
    span.set_attributes(
        {
            "github.run_id": cast(int, job.run_id),
            "github.status": str(job.status),
            "github.name": str(job.name),
            "github.runner.name": str(job.runner_name),
            "github.run.url": str(job.html_url),
        }
    )
    job_context = trace.set_span_in_context(span)
    for step in job.steps:
        _trace_step(ctx, step, job_context)
    end = ctx.close_span(span, job.completion)
    logger.debug("Closed job span %r at %s.", job.name, end.isoformat())


def _root_end(ctx: SynthesisContext, start: datetime) -> tuple[Instant, bool]:
    finish = ctx.last_finish
    if isinstance(finish, Known):
        return finish, False
    now = ctx.clock()
    logger.warning(
        "No step reported a completion time; closing the run span at %s.",
        now.isoformat(),
    )
    return Known(max(now, start)), True


def synthesize_run_trace(record: RunRecord, ctx: SynthesisContext) -> SynthesisResult:
    """Emit the span tree of ``record`` through ``ctx.tracer``.

    The record is validated up front, so a :class:`RunDataError` leaves no
    partial tree behind.
    """
    validate_record(record)
    run = record.run
    root_start = ctx.resolve(run.created)
    root = ctx.open_span(str(run.name), Known(root_start))
    root_context = trace.set_span_in_context(root)

    for job in record.jobs:
        _trace_job(ctx, job, root_context)

    end, used_fallback = _root_end(ctx, root_start)
    root_end = ctx.close_span(root, end)
    trace_id = format_trace_id(root.get_span_context().trace_id)
    logger.info(
        "Synthesized trace %s for run %r: %d spans, %d failed steps.",
        trace_id,
        run.name,
        ctx.span_count,
        len(ctx.failed_steps),
    )
    return SynthesisResult(
        trace_id=trace_id,
        root_end=root_end,
        used_fallback_end=used_fallback,
        span_count=ctx.span_count,
        failed_steps=list(ctx.failed_steps),
    )


__all__ = [
    "SynthesisContext",
    "SynthesisResult",
    "synthesize_run_trace",
    "to_unix_nanos",
    "validate_record",
]
