"""Build the OpenTelemetry provider that delivers synthesized spans."""

from __future__ import annotations
import logging
from collections.abc import Sequence
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
    OTLPSpanExporter as GrpcSpanExporter,
)
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
    OTLPSpanExporter as HttpSpanExporter,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from runtrace import __version__
from runtrace.config import ExportSettings
from runtrace.tracing.binding import TraceBinding


logger = logging.getLogger(__name__)

INSTRUMENTATION_NAME = "runtrace"


def build_resource(settings: ExportSettings) -> Resource:
    """Describe the service the synthesized spans are attributed to."""
    return Resource.create(
        {
            "service.name": settings.service_name,
            "service.version": __version__,
            "telemetry.sdk.language": "python",
        }
    )


def _build_otlp_exporter(settings: ExportSettings) -> SpanExporter | None:
    endpoint = settings.endpoint
    if endpoint is None:
        return None
    headers = settings.headers or None
    if settings.protocol == "http/protobuf":
        if settings.insecure and endpoint.startswith("https://"):
            logger.warning(
                "insecure is set but the HTTP OTLP exporter does not support "
                "disabling TLS verification; use an http:// endpoint instead."
            )
        return HttpSpanExporter(
            endpoint=endpoint,
            headers=headers,
            timeout=settings.timeout,
        )
    return GrpcSpanExporter(
        endpoint=endpoint,
        headers=headers,
        insecure=settings.insecure,
        timeout=settings.timeout,
    )


def build_exporters(settings: ExportSettings) -> list[SpanExporter]:
    """Instantiate the exporters enabled in the export settings."""
    exporters: list[SpanExporter] = []
    if settings.console:
        exporters.append(ConsoleSpanExporter(service_name=settings.service_name))
    otlp = _build_otlp_exporter(settings)
    if otlp is not None:
        exporters.append(otlp)
    return exporters


def build_tracer_provider(
    settings: ExportSettings,
    *,
    binding: TraceBinding | None = None,
    exporters: Sequence[SpanExporter] | None = None,
) -> TracerProvider:
    """Create a provider for one synthesis pass.

    The provider is never installed globally. Callers own it and must call
    :meth:`TracerProvider.shutdown` to flush the batch processors.
    """
    provider = TracerProvider(
        sampler=ALWAYS_ON,
        resource=build_resource(settings),
        id_generator=binding.id_generator() if binding else None,
    )
    span_exporters = list(exporters) if exporters is not None else None
    if span_exporters is None:
        span_exporters = build_exporters(settings)
    if not span_exporters:
        logger.warning("No span exporter configured; spans will be dropped.")
    for exporter in span_exporters:
        provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


__all__ = [
    "INSTRUMENTATION_NAME",
    "build_exporters",
    "build_resource",
    "build_tracer_provider",
]
