"""Trace identity propagation over RPC metadata."""

from micro_otel.propagation.carrier import (
    Metadata,
    MetadataCarrier,
    MetadataGetter,
    MetadataSetter,
    metadata_getter,
    metadata_setter,
)
from micro_otel.propagation.codec import (
    BAGGAGE_PREFIX,
    SAMPLED_HEADER,
    SPAN_ID_HEADER,
    TRACE_ID_HEADER,
    decode,
    decode_headers,
    encode,
)
from micro_otel.propagation.identity import BaggageEntry, SamplingDecision, TraceIdentity
from micro_otel.propagation.propagator import OTTracePropagator, extract, inject

__all__ = [
    "Metadata",
    "MetadataCarrier",
    "MetadataGetter",
    "MetadataSetter",
    "metadata_getter",
    "metadata_setter",
    "TRACE_ID_HEADER",
    "SPAN_ID_HEADER",
    "SAMPLED_HEADER",
    "BAGGAGE_PREFIX",
    "decode",
    "decode_headers",
    "encode",
    "BaggageEntry",
    "SamplingDecision",
    "TraceIdentity",
    "OTTracePropagator",
    "inject",
    "extract",
]
