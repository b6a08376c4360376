"""
OpenTracing header codec.

Converts between the ``ot-tracer-*`` / ``ot-baggage-*`` header set and a
validated TraceIdentity. Trace ids are always 128-bit in process; on the wire
only the low 64 bits are written (16 hex chars) so that legacy 64-bit
consumers can parse them. Both widths are accepted on receipt, a 16-char id
being left-padded with zeros. Round-tripping an id whose upper 64 bits are
set therefore keeps only the low half.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from micro_otel.errors import (
    InvalidSampledHeader,
    InvalidScope,
    InvalidSpanIDHeader,
    InvalidTraceIDHeader,
)
from micro_otel.propagation.identity import BaggageEntry, SamplingDecision, TraceIdentity
from micro_otel.utils.helpers import (
    format_legacy_trace_id,
    format_span_id,
    parse_span_id,
    parse_trace_id,
)

TRACE_ID_HEADER = "ot-tracer-traceid"
SPAN_ID_HEADER = "ot-tracer-spanid"
SAMPLED_HEADER = "ot-tracer-sampled"
BAGGAGE_PREFIX = "ot-baggage-"

TRACE_ID_PADDING = "0" * 16

_SAMPLING_VALUES = {
    "0": SamplingDecision.UNSET,
    "false": SamplingDecision.UNSET,
    "1": SamplingDecision.SAMPLED,
    "true": SamplingDecision.SAMPLED,
    "": SamplingDecision.DEFERRED,
}


def decode(trace_id: str, span_id: str, sampled: str) -> TraceIdentity:
    """
    Reconstruct a TraceIdentity from OT header values.

    Empty strings mean the header was absent. Returns an empty identity when
    neither id is present.

    Raises:
        InvalidSampledHeader: sampled is not 0, 1, false, true or empty
        InvalidScope: exactly one of trace_id and span_id is present
        InvalidTraceIDHeader: trace_id is not a valid hex id
        InvalidSpanIDHeader: span_id is not a valid hex id
    """
    sampling = _SAMPLING_VALUES.get(sampled.lower())
    if sampling is None:
        raise InvalidSampledHeader(sampled)

    present = int(bool(trace_id)) + int(bool(span_id))
    if present == 0:
        return TraceIdentity(sampling=sampling)
    if present != 2:
        raise InvalidScope()

    padded = TRACE_ID_PADDING + trace_id if len(trace_id) == 16 else trace_id
    parsed_trace_id = parse_trace_id(padded)
    if parsed_trace_id is None:
        raise InvalidTraceIDHeader(trace_id)

    parsed_span_id = parse_span_id(span_id)
    if parsed_span_id is None:
        raise InvalidSpanIDHeader(span_id)

    return TraceIdentity(trace_id=parsed_trace_id, span_id=parsed_span_id, sampling=sampling)


def encode(
    identity: TraceIdentity,
    baggage: Optional[Union[Mapping[str, str], Iterable[BaggageEntry]]] = None,
) -> Dict[str, str]:
    """Produce the header set for an identity and its baggage entries."""
    headers = {
        TRACE_ID_HEADER: format_legacy_trace_id(identity.trace_id),
        SPAN_ID_HEADER: format_span_id(identity.span_id),
        SAMPLED_HEADER: "1" if identity.sampled else "0",
    }
    entries = baggage.items() if isinstance(baggage, Mapping) else (baggage or ())
    for key, value in entries:
        headers[BAGGAGE_PREFIX + key] = str(value)
    return headers


def decode_headers(headers: Mapping[str, str]) -> Tuple[TraceIdentity, Dict[str, str]]:
    """
    Decode a whole header set, matching names case-insensitively.

    Returns:
        (identity, baggage) where baggage maps keys without the prefix
    """
    lowered = {str(k).lower(): v for k, v in headers.items()}
    identity = decode(
        lowered.get(TRACE_ID_HEADER, ""),
        lowered.get(SPAN_ID_HEADER, ""),
        lowered.get(SAMPLED_HEADER, ""),
    )
    baggage = {}
    for name, value in headers.items():
        key = baggage_key(name)
        if key:
            baggage[key] = value
    return identity, baggage


def baggage_key(header_name: str) -> Optional[str]:
    """Return the baggage key of an ``ot-baggage-`` header, or None."""
    if header_name.lower().startswith(BAGGAGE_PREFIX):
        return header_name[len(BAGGAGE_PREFIX):] or None
    return None
