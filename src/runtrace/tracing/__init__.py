"""Trace synthesis and delivery for workflow runs."""

from runtrace.tracing.binding import TraceBinding, parse_trace_id
from runtrace.tracing.provider import (
    INSTRUMENTATION_NAME,
    build_exporters,
    build_tracer_provider,
)
from runtrace.tracing.synthesis import (
    SynthesisContext,
    SynthesisResult,
    synthesize_run_trace,
)


__all__ = [
    "INSTRUMENTATION_NAME",
    "SynthesisContext",
    "SynthesisResult",
    "TraceBinding",
    "build_exporters",
    "build_tracer_provider",
    "parse_trace_id",
    "synthesize_run_trace",
]
