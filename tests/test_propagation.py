"""Tests for the metadata carrier and the OT trace propagator."""

from opentelemetry import baggage, trace
from opentelemetry.context import Context
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags, set_span_in_context

from micro_otel.context import current_identity
from micro_otel.propagation import (
    SamplingDecision,
    TraceIdentity,
    MetadataCarrier,
    OTTracePropagator,
    extract,
    inject,
    metadata_getter,
    metadata_setter,
)

TRACE_ID = 0x0123456789ABCDEF
SPAN_ID = 0x00F067AA0BA902B7


def _context(trace_id=TRACE_ID, span_id=SPAN_ID, sampled=True):
    flags = TraceFlags(TraceFlags.SAMPLED if sampled else TraceFlags.DEFAULT)
    span = NonRecordingSpan(SpanContext(trace_id, span_id, is_remote=False, trace_flags=flags))
    return set_span_in_context(span, Context())


class TestMetadataCarrier:
    def test_get_present_and_absent(self):
        carrier = MetadataCarrier({"ot-tracer-spanid": "abc"})
        assert carrier.get("ot-tracer-spanid") == ("abc", True)
        assert carrier.get("missing") == ("", False)

    def test_get_falls_back_to_case_insensitive_match(self):
        carrier = MetadataCarrier({"Ot-Tracer-Spanid": "abc"})
        assert carrier.get("ot-tracer-spanid") == ("abc", True)

    def test_set_and_keys(self):
        metadata = {}
        carrier = MetadataCarrier(metadata)
        carrier.set("ot-tracer-sampled", "1")
        assert metadata == {"ot-tracer-sampled": "1"}
        assert carrier.keys() == ["ot-tracer-sampled"]

    def test_getter_treats_empty_value_as_absent(self):
        assert metadata_getter.get({"k": ""}, "k") is None
        assert metadata_getter.get({}, "k") is None
        assert metadata_getter.get({"K": "v"}, "k") == ["v"]

    def test_setter(self):
        metadata = {}
        metadata_setter.set(metadata, "a", "b")
        assert metadata == {"a": "b"}


class TestOTTracePropagator:
    def test_fields(self):
        assert OTTracePropagator().fields == {"ot-tracer-traceid", "ot-tracer-spanid", "ot-tracer-sampled"}

    def test_inject_writes_identity_and_baggage(self):
        ctx = baggage.set_baggage("user", "alice", _context())
        metadata = {}
        OTTracePropagator().inject(metadata, context=ctx, setter=metadata_setter)
        assert metadata == {
            "ot-tracer-traceid": "0123456789abcdef",
            "ot-tracer-spanid": "00f067aa0ba902b7",
            "ot-tracer-sampled": "1",
            "ot-baggage-user": "alice",
        }

    def test_inject_without_span_writes_nothing(self):
        metadata = {}
        OTTracePropagator().inject(metadata, context=Context(), setter=metadata_setter)
        assert metadata == {}

    def test_extract_remote_parent(self):
        metadata = {
            "ot-tracer-traceid": "0123456789abcdef",
            "ot-tracer-spanid": "00f067aa0ba902b7",
            "ot-tracer-sampled": "0",
            "ot-baggage-tenant": "acme",
        }
        ctx = OTTracePropagator().extract(metadata, context=Context(), getter=metadata_getter)
        span_context = trace.get_current_span(ctx).get_span_context()
        assert span_context.is_remote
        assert span_context.trace_id == TRACE_ID
        assert span_context.span_id == SPAN_ID
        assert not span_context.trace_flags.sampled
        assert baggage.get_baggage("tenant", ctx) == "acme"

    def test_extract_deferred_sampling_is_sampled(self):
        metadata = {"ot-tracer-traceid": "0123456789abcdef", "ot-tracer-spanid": "00f067aa0ba902b7"}
        ctx = OTTracePropagator().extract(metadata, context=Context(), getter=metadata_getter)
        assert trace.get_current_span(ctx).get_span_context().trace_flags.sampled

    def test_extract_invalid_headers_leaves_context_unchanged(self):
        base = Context()
        for metadata in (
            {"ot-tracer-traceid": "abc123", "ot-tracer-sampled": "1"},
            {"ot-tracer-traceid": "0123456789abcdef", "ot-tracer-spanid": "00f067aa0ba902b7", "ot-tracer-sampled": "maybe"},
            {"ot-tracer-traceid": "x" * 32, "ot-tracer-spanid": "00f067aa0ba902b7"},
            {},
        ):
            ctx = OTTracePropagator().extract(metadata, context=base, getter=metadata_getter)
            assert ctx is base

    def test_extract_works_with_default_getter(self):
        metadata = {"ot-tracer-traceid": "0123456789abcdef", "ot-tracer-spanid": "00f067aa0ba902b7"}
        ctx = OTTracePropagator().extract(metadata, context=Context())
        assert trace.get_current_span(ctx).get_span_context().trace_id == TRACE_ID


class TestModuleHelpers:
    def test_inject_then_extract(self):
        metadata = {}
        inject(metadata, context=baggage.set_baggage("user", "bob", _context()))
        entries, span_context = extract(metadata, context=Context())
        assert entries == {"user": "bob"}
        assert span_context.trace_id == TRACE_ID
        assert span_context.span_id == SPAN_ID
        assert span_context.is_remote

    def test_extract_without_headers_returns_invalid_span_context(self):
        entries, span_context = extract({}, context=_context())
        assert entries == {}
        assert not span_context.is_valid


class TestCurrentIdentity:
    def test_identity_of_active_span(self):
        identity = current_identity(_context(sampled=False))
        assert identity == TraceIdentity(trace_id=TRACE_ID, span_id=SPAN_ID, sampling=SamplingDecision.UNSET)

    def test_no_active_span(self):
        assert current_identity(Context()).is_empty()

    def test_identity_to_span_context(self):
        span_context = TraceIdentity(trace_id=TRACE_ID, span_id=SPAN_ID).to_span_context()
        assert span_context.is_remote
        assert span_context.trace_flags.sampled
