"""Trace id generation compatible with the 64-bit OT wire format."""

import random

from opentelemetry.sdk.trace.id_generator import RandomIdGenerator
from opentelemetry.trace import INVALID_TRACE_ID


class LegacyTraceIdGenerator(RandomIdGenerator):
    """
    Generate trace ids whose upper 64 bits are zero.

    The OT headers carry only the low 64 bits of a trace id, so services
    that start traces with this generator keep the same trace id on both
    sides of every hop.
    """

    def generate_trace_id(self) -> int:
        trace_id = random.getrandbits(64)
        while trace_id == INVALID_TRACE_ID:
            trace_id = random.getrandbits(64)
        return trace_id
