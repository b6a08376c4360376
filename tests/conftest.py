"""Shared fixtures: an SDK tracer provider recording spans in memory."""

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from micro_otel.id_generator import LegacyTraceIdGenerator


def make_provider(exporter, legacy_ids=True):
    kwargs = {"id_generator": LegacyTraceIdGenerator()} if legacy_ids else {}
    provider = TracerProvider(**kwargs)
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider


@pytest.fixture
def exporter():
    return InMemorySpanExporter()


@pytest.fixture
def provider(exporter):
    provider = make_provider(exporter)
    yield provider
    provider.shutdown()


@pytest.fixture
def wide_provider(exporter):
    """Provider generating full 128-bit trace ids."""
    provider = make_provider(exporter, legacy_ids=False)
    yield provider
    provider.shutdown()
