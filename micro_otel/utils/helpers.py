"""Helper functions for converting OpenTelemetry ids to and from hex."""

from __future__ import annotations

import string
from typing import Optional

_HEX_DIGITS = frozenset(string.digits + "abcdef")

_LOW_64_BITS = (1 << 64) - 1


def format_span_id(span_id: int) -> str:
    """
    Format OTel span_id (int64) to hex string.

    Args:
        span_id: OTel span_id as int

    Returns:
        16-character hex string
    """
    return format(span_id, '016x')


def format_legacy_trace_id(trace_id: int) -> str:
    """
    Format the low 64 bits of a trace_id as a 16-character hex string.

    The upper 64 bits are dropped.
    """
    return format(low_64_bits(trace_id), '016x')


def parse_hex_id(hex_string: str, width: int) -> Optional[int]:
    """
    Strictly parse a lower-case hex id of exactly ``width`` characters.

    Returns:
        The id as int, or None if the string is malformed or all zeros
    """
    if len(hex_string) != width or not _HEX_DIGITS.issuperset(hex_string):
        return None
    value = int(hex_string, 16)
    if value == 0:
        return None
    return value


def parse_trace_id(hex_string: str) -> Optional[int]:
    """Parse a 32-character hex trace id, returning None if invalid."""
    return parse_hex_id(hex_string, 32)


def parse_span_id(hex_string: str) -> Optional[int]:
    """Parse a 16-character hex span id, returning None if invalid."""
    return parse_hex_id(hex_string, 16)


def low_64_bits(trace_id: int) -> int:
    """Truncate a trace id to its legacy 64-bit width."""
    return trace_id & _LOW_64_BITS
