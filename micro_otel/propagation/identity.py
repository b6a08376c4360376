"""Immutable trace identity carried across a request boundary."""

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from opentelemetry.trace import SpanContext as OTelSpanContext, TraceFlags


class SamplingDecision(Enum):
    UNSET = 0     # sender decided not to sample
    SAMPLED = 1
    DEFERRED = 2  # no header; treated as sampled on receipt


class BaggageEntry(NamedTuple):
    key: str
    value: str


@dataclass(frozen=True)
class TraceIdentity:
    trace_id: int = 0
    span_id: int = 0
    sampling: SamplingDecision = SamplingDecision.DEFERRED

    def is_empty(self) -> bool:
        return self.trace_id == 0 and self.span_id == 0

    def is_valid(self) -> bool:
        return bool(self.trace_id and self.span_id)

    @property
    def sampled(self) -> bool:
        return self.sampling is SamplingDecision.SAMPLED

    def to_span_context(self) -> OTelSpanContext:
        """
        Build a remote OTel SpanContext from this identity.

        OpenTelemetry has no deferred flag, so a deferred decision is treated
        as sampled: a parent-based sampler on the receiving side records the
        child span even when it would drop new roots.
        """
        if self.sampling is SamplingDecision.UNSET:
            flags = TraceFlags(TraceFlags.DEFAULT)
        else:
            flags = TraceFlags(TraceFlags.SAMPLED)
        return OTelSpanContext(
            trace_id=self.trace_id,
            span_id=self.span_id,
            is_remote=True,
            trace_flags=flags,
        )

    @classmethod
    def from_span_context(cls, span_context: OTelSpanContext) -> "TraceIdentity":
        if not span_context.is_valid:
            return cls()
        sampling = SamplingDecision.SAMPLED if span_context.trace_flags.sampled else SamplingDecision.UNSET
        return cls(
            trace_id=span_context.trace_id,
            span_id=span_context.span_id,
            sampling=sampling,
        )
