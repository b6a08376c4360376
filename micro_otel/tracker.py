"""Per-operation tracking of an RPC request or event around its span."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Dict, Optional

from opentelemetry.context import Context
from opentelemetry.trace import Span, SpanKind, Tracer, set_span_in_context

from micro_otel.response import set_response_status
from micro_otel.rpc import PublicationDescriptor, RequestDescriptor

logger = logging.getLogger(__name__)

PUBSUB_SERVICE = "pubsub"


class TrackerState(Enum):
    CREATED = 0
    STARTED = 1
    ENDED = 2


class Tracker:
    """
    Tracks one outbound call, inbound invocation, publish or delivery.

    ``start()`` records the start time and optionally opens the span right
    away; inbound operations open it later with ``open_span()`` once the
    remote parent is known. ``end()`` closes the span exactly once.
    A tracker belongs to the task that created it and is not shared.
    """

    def __init__(
        self,
        tracer: Tracer,
        name: str,
        kind: SpanKind = SpanKind.INTERNAL,
        attributes: Optional[Dict[str, Any]] = None,
        record_error_events: bool = True,
    ) -> None:
        self.tracer = tracer
        self.name = name
        self.kind = kind
        self.attributes = dict(attributes or {})
        self.record_error_events = record_error_events
        self.state = TrackerState.CREATED
        self.started_at_ns: Optional[int] = None
        self.ended_at_ns: Optional[int] = None
        self.span: Optional[Span] = None

    @classmethod
    def for_request(cls, request: RequestDescriptor, tracer: Tracer, kind: SpanKind, **kwargs: Any) -> "Tracker":
        """Create a tracker for an RPC request (client or server side)."""
        service = request.service
        endpoint = request.endpoint
        attributes = {
            "rpc.system": "micro",
            "rpc.service": service,
            "rpc.method": endpoint,
        }
        return cls(tracer, f"{service}.{endpoint}", kind, attributes, **kwargs)

    @classmethod
    def for_event(cls, publication: PublicationDescriptor, tracer: Tracer, kind: SpanKind, **kwargs: Any) -> "Tracker":
        """Create a tracker for a publication (publisher or subscriber side)."""
        topic = publication.topic
        attributes = {
            "rpc.system": "micro",
            "rpc.service": PUBSUB_SERVICE,
            "messaging.system": "micro",
            "messaging.destination.name": topic,
        }
        return cls(tracer, topic, kind, attributes, **kwargs)

    @property
    def duration_ns(self) -> Optional[int]:
        if self.started_at_ns is None or self.ended_at_ns is None:
            return None
        return self.ended_at_ns - self.started_at_ns

    def start(self, context: Optional[Context] = None, start_span_now: bool = True) -> Optional[Context]:
        """
        Start monitoring the operation.

        With ``start_span_now`` the span is opened immediately as a child of
        the span active in ``context``; otherwise it is left to
        ``open_span()``.

        Returns:
            The context holding the new span, or ``context`` unchanged
        """
        self.started_at_ns = time.time_ns()
        self.state = TrackerState.STARTED
        if start_span_now:
            return self.open_span(context)
        return context

    def open_span(self, parent_context: Optional[Context] = None) -> Context:
        """Open the span as a child of the span held by ``parent_context``."""
        if self.state is not TrackerState.STARTED:
            raise RuntimeError(f"cannot open span for {self.name!r} in state {self.state.name}")
        if self.span is not None:
            raise RuntimeError(f"span for {self.name!r} already opened")
        self.span = self.tracer.start_span(
            self.name,
            context=parent_context,
            kind=self.kind,
            attributes=self.attributes,
            start_time=self.started_at_ns,
        )
        return set_span_in_context(self.span, parent_context)

    def end(self, error: Optional[BaseException] = None) -> None:
        """
        End the monitoring session.

        If a span is open it is given a status derived from ``error`` and
        closed. Safe to call when no span was opened and never raises.
        """
        if self.state is TrackerState.ENDED:
            return
        self.state = TrackerState.ENDED
        self.ended_at_ns = time.time_ns()

        if self.span is None:
            return

        try:
            set_response_status(self.span, error, record_event=self.record_error_events)
        except Exception:
            logger.debug("failed to record outcome of %s", self.name, exc_info=True)
        finally:
            self.span.end(end_time=self.ended_at_ns)

        logger.debug(
            "ended %s span %s duration_ns=%s error=%s",
            self.kind.name.lower(),
            self.name,
            self.duration_ns,
            error,
        )
