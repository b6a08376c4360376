"""Utility functions for micro-otel."""

from micro_otel.utils.helpers import (
    format_span_id,
    format_legacy_trace_id,
    low_64_bits,
    parse_hex_id,
    parse_trace_id,
    parse_span_id,
)

__all__ = [
    "format_span_id",
    "format_legacy_trace_id",
    "low_64_bits",
    "parse_hex_id",
    "parse_trace_id",
    "parse_span_id",
]
