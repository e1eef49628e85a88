"""Shared fixtures for runtrace tests."""

from __future__ import annotations
import os
from collections.abc import Iterator
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (
    InMemorySpanExporter,
)
from runtrace import config


@pytest.fixture()
def exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture()
def provider(exporter: InMemorySpanExporter) -> Iterator[TracerProvider]:
    tracer_provider = TracerProvider()
    tracer_provider.add_span_processor(SimpleSpanProcessor(exporter))
    yield tracer_provider
    tracer_provider.shutdown()


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep developer or CI environment variables out of settings."""
    for key in list(os.environ):
        if key.startswith(("RUNTRACE_", "GITHUB_")):
            monkeypatch.delenv(key, raising=False)
    config.get_settings(refresh=True)
    yield
    config.get_settings(refresh=True)
