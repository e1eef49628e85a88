"""Fetch a workflow run and export it as a trace."""

from __future__ import annotations
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from opentelemetry.sdk.trace.export import SpanExporter
from runtrace import __version__
from runtrace.config import RunTraceSettings
from runtrace.github import GitHubClient
from runtrace.tracing.binding import TraceBinding
from runtrace.tracing.provider import INSTRUMENTATION_NAME, build_tracer_provider
from runtrace.tracing.synthesis import (
    SynthesisContext,
    SynthesisResult,
    synthesize_run_trace,
)


logger = logging.getLogger(__name__)


def export_run_trace(
    settings: RunTraceSettings,
    *,
    client: GitHubClient | None = None,
    exporters: Sequence[SpanExporter] | None = None,
    clock: Callable[[], datetime] | None = None,
) -> SynthesisResult:
    """Export the configured workflow run and return a summary of the trace.

    The run record is fetched before the tracer provider exists, so a
    retrieval failure never produces spans. The provider is shut down on the
    way out, flushing whatever was emitted.
    """
    owner, repo, run_id = settings.github.require_target()
    github = client or GitHubClient(
        token=settings.github.token,
        base_url=settings.github.api_url,
        timeout=settings.github.request_timeout,
    )
    try:
        record = github.fetch_run_record(
            owner, repo, run_id, attempt=settings.github.run_attempt
        )
    finally:
        if client is None:
            github.close()

    binding = TraceBinding.from_hex(settings.trace_id)
    if binding is not None:
        logger.info("Binding trace to id %s.", binding.hex)

    provider = build_tracer_provider(
        settings.export, binding=binding, exporters=exporters
    )
    try:
        tracer = provider.get_tracer(INSTRUMENTATION_NAME, __version__)
        context = SynthesisContext(tracer=tracer)
        if clock is not None:
            context.clock = clock
        return synthesize_run_trace(record, context)
    finally:
        provider.shutdown()


__all__ = ["export_run_trace"]
