"""OpenTracing header propagation using OpenTelemetry's TextMapPropagator API."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Set, Tuple

from opentelemetry import baggage
from opentelemetry.context import Context, get_current
from opentelemetry.propagators.textmap import (
    CarrierT,
    Getter,
    Setter,
    TextMapPropagator,
    default_getter,
    default_setter,
)
from opentelemetry.trace import (
    INVALID_SPAN_CONTEXT,
    NonRecordingSpan,
    SpanContext,
    get_current_span,
    set_span_in_context,
)

from micro_otel.errors import PropagationError
from micro_otel.propagation import codec
from micro_otel.propagation.carrier import Metadata, metadata_getter, metadata_setter
from micro_otel.propagation.identity import TraceIdentity

logger = logging.getLogger(__name__)


class OTTracePropagator(TextMapPropagator):
    """
    Propagator for the ``ot-tracer-*`` header scheme.

    Injects the active span's identity and the context's baggage; extracts a
    remote parent plus baggage. Malformed headers never fail extraction: the
    context is returned unchanged, meaning "no remote parent".
    """

    def extract(
        self,
        carrier: CarrierT,
        context: Optional[Context] = None,
        getter: Getter[CarrierT] = default_getter,
    ) -> Context:
        if context is None:
            context = get_current()

        try:
            identity = codec.decode(
                _first(getter, carrier, codec.TRACE_ID_HEADER),
                _first(getter, carrier, codec.SPAN_ID_HEADER),
                _first(getter, carrier, codec.SAMPLED_HEADER),
            )
        except PropagationError as exc:
            logger.debug("ignoring invalid trace headers: %s", exc)
            return context

        if identity.is_empty():
            return context

        context = set_span_in_context(NonRecordingSpan(identity.to_span_context()), context)

        for name in getter.keys(carrier):
            key = codec.baggage_key(name)
            if not key:
                continue
            value = _first(getter, carrier, name)
            if value:
                context = baggage.set_baggage(key, value, context)

        return context

    def inject(
        self,
        carrier: CarrierT,
        context: Optional[Context] = None,
        setter: Setter[CarrierT] = default_setter,
    ) -> None:
        span_context = get_current_span(context).get_span_context()
        if not span_context.is_valid:
            return

        identity = TraceIdentity.from_span_context(span_context)
        entries = {key: str(value) for key, value in baggage.get_all(context).items()}
        for key, value in codec.encode(identity, entries).items():
            setter.set(carrier, key, value)

    @property
    def fields(self) -> Set[str]:
        return {codec.TRACE_ID_HEADER, codec.SPAN_ID_HEADER, codec.SAMPLED_HEADER}


def _first(getter: Getter, carrier, key: str) -> str:
    values = getter.get(carrier, key)
    if not values:
        return ""
    return values[0]


_default_propagator = OTTracePropagator()


def inject(
    metadata: Metadata,
    context: Optional[Context] = None,
    propagator: Optional[TextMapPropagator] = None,
) -> None:
    """
    Inject the trace identity and baggage of ``context`` into RPC metadata.

    Meant for outgoing requests. Uses the current context when none is given.
    """
    (propagator or _default_propagator).inject(metadata, context=context, setter=metadata_setter)


def extract(
    metadata: Metadata,
    context: Optional[Context] = None,
    propagator: Optional[TextMapPropagator] = None,
) -> Tuple[Dict[str, object], SpanContext]:
    """
    Return the baggage and remote span context encoded in RPC metadata.

    Meant for incoming requests. The span context is invalid when the
    metadata carries no (or a malformed) identity.
    """
    ctx = (propagator or _default_propagator).extract(metadata, context=context, getter=metadata_getter)
    span_context = get_current_span(ctx).get_span_context()
    if not span_context.is_remote:
        span_context = INVALID_SPAN_CONTEXT
    return dict(baggage.get_all(ctx)), span_context
