"""
Call-site wrappers tracing RPC calls, streams, publications, handlers and
subscribers.

All five share one adapter, :class:`Instrumentation`, parameterized by an
:class:`OperationShape`:

- outbound shapes (call, stream, publish) open a span immediately as a child
  of the active span and inject its identity into the request metadata;
- inbound shapes (handler, subscriber) extract the remote parent from the
  incoming metadata first and open the span as its child, or as a root span
  when there is no valid parent.

The wrapped function receives the request or message as its first positional
argument and may be sync or ``async``. Its errors are recorded on the span and
re-raised unchanged. Tracing failures are logged and never block the call.
"""

from __future__ import annotations

import functools
import inspect
import logging
from contextvars import Token
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, TypeVar

from opentelemetry import context as context_api
from opentelemetry.context import Context
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.trace import INVALID_SPAN, SpanKind, get_current_span, set_span_in_context

from micro_otel.config import WrapperConfig, load_config
from micro_otel.context import activate, deactivate
from micro_otel.propagation.carrier import Metadata, metadata_getter, metadata_setter
from micro_otel.tracker import Tracker

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class OperationShape:
    name: str
    kind: SpanKind
    outbound: bool
    event: bool  # named by topic rather than service.endpoint


CALL = OperationShape("call", SpanKind.CLIENT, outbound=True, event=False)
STREAM = OperationShape("stream", SpanKind.CLIENT, outbound=True, event=False)
PUBLISH = OperationShape("publish", SpanKind.PRODUCER, outbound=True, event=True)
HANDLER = OperationShape("handler", SpanKind.SERVER, outbound=False, event=False)
SUBSCRIBER = OperationShape("subscriber", SpanKind.CONSUMER, outbound=False, event=True)


class Instrumentation:
    """Wraps one kind of host operation in a tracked span."""

    def __init__(self, shape: OperationShape, config: Optional[WrapperConfig] = None) -> None:
        self.shape = shape
        self.config = (config or WrapperConfig()).with_defaults()
        self.tracer = self.config.get_tracer()
        self.propagator: TextMapPropagator = self.config.propagator

    def wrap(self, func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(target, *args, **kwargs):
                tracker, token = self.begin(target)
                try:
                    result = await func(target, *args, **kwargs)
                except BaseException as exc:
                    self.finish(tracker, token, exc)
                    raise
                self.finish(tracker, token)
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def sync_wrapper(target, *args, **kwargs):
            tracker, token = self.begin(target)
            try:
                result = func(target, *args, **kwargs)
            except BaseException as exc:
                self.finish(tracker, token, exc)
                raise
            self.finish(tracker, token)
            return result

        return sync_wrapper  # type: ignore[return-value]

    __call__ = wrap

    def begin(self, target: Any) -> Tuple[Optional[Tracker], Optional[Token]]:
        """
        Open the operation's span and make it current.

        Returns:
            (tracker, token), both None if tracing could not start
        """
        try:
            tracker = self._new_tracker(target)
            if self.shape.outbound:
                ctx = tracker.start(context_api.get_current(), start_span_now=True)
                token = activate(ctx)
                self._inject(target, ctx)
            else:
                parent = self._extract(target)
                tracker.start(parent, start_span_now=False)
                token = activate(tracker.open_span(parent))
        except Exception:
            logger.debug("could not start %s span", self.shape.name, exc_info=True)
            return None, None
        return tracker, token

    def finish(self, tracker: Optional[Tracker], token: Optional[Token], error: Optional[BaseException] = None) -> None:
        if tracker is not None:
            tracker.end(error)
        if token is not None:
            deactivate(token)

    def _new_tracker(self, target: Any) -> Tracker:
        factory = Tracker.for_event if self.shape.event else Tracker.for_request
        return factory(
            target,
            self.tracer,
            self.shape.kind,
            record_error_events=self.config.record_error_events,
        )

    def _inject(self, target: Any, context: Context) -> None:
        metadata = _ensure_metadata(target)
        if metadata is None:
            return
        try:
            self.propagator.inject(metadata, context=context, setter=metadata_setter)
        except Exception:
            logger.debug("failed to inject trace headers for %s", self.shape.name, exc_info=True)

    def _extract(self, target: Any) -> Context:
        ctx = context_api.get_current()
        metadata = getattr(target, "metadata", None)
        if metadata:
            try:
                ctx = self.propagator.extract(metadata, context=ctx, getter=metadata_getter)
            except Exception:
                logger.debug("failed to extract trace headers for %s", self.shape.name, exc_info=True)

        span_context = get_current_span(ctx).get_span_context()
        if not (span_context.is_valid and span_context.is_remote):
            # no remote parent: start a new trace
            ctx = set_span_in_context(INVALID_SPAN, ctx)
        return ctx


def _ensure_metadata(target: Any) -> Optional[Metadata]:
    metadata = getattr(target, "metadata", None)
    if metadata is not None:
        return metadata
    metadata = {}
    try:
        target.metadata = metadata
    except (AttributeError, TypeError):
        logger.debug("%r carries no metadata; trace headers not injected", type(target).__name__)
        return None
    return metadata


def _build_config(
    name: Optional[str],
    tracer_provider: Optional[Any],
    propagator: Optional[TextMapPropagator],
    config: Optional[WrapperConfig],
) -> WrapperConfig:
    base = config or WrapperConfig()
    return load_config(
        tracer_name=name or base.tracer_name,
        tracer_provider=tracer_provider or base.tracer_provider,
        propagator=propagator or base.propagator,
        record_error_events=base.record_error_events,
    )


def _factory(shape: OperationShape) -> Callable[..., Callable[[F], F]]:
    def new_wrapper(
        name: Optional[str] = None,
        *,
        tracer_provider: Optional[Any] = None,
        propagator: Optional[TextMapPropagator] = None,
        config: Optional[WrapperConfig] = None,
    ) -> Callable[[F], F]:
        return Instrumentation(shape, _build_config(name, tracer_provider, propagator, config)).wrap

    new_wrapper.__name__ = f"new_{shape.name}_wrapper"
    new_wrapper.__qualname__ = new_wrapper.__name__
    new_wrapper.__doc__ = (
        f"Return a decorator tracing {shape.name} functions.\n\n"
        f"``name`` is the tracer name; ``tracer_provider`` and ``propagator``\n"
        f"override the global provider and the OT header propagator."
    )
    return new_wrapper


new_call_wrapper = _factory(CALL)
new_stream_wrapper = _factory(STREAM)
new_publish_wrapper = _factory(PUBLISH)
new_handler_wrapper = _factory(HANDLER)
new_subscriber_wrapper = _factory(SUBSCRIBER)


class TracedClient:
    """
    RPC client proxy whose ``call``, ``stream`` and ``publish`` are traced.

    Any other attribute is read from the wrapped client.
    """

    def __init__(self, client: Any, config: WrapperConfig) -> None:
        self._client = client
        for shape in (CALL, STREAM, PUBLISH):
            method = getattr(client, shape.name, None)
            if callable(method):
                setattr(self, shape.name, Instrumentation(shape, config).wrap(method))

    def __getattr__(self, name: str) -> Any:
        # _client is unset while copy or pickle rebuild the instance
        if name == "_client":
            raise AttributeError(name)
        return getattr(self._client, name)


def new_client_wrapper(
    name: Optional[str] = None,
    *,
    tracer_provider: Optional[Any] = None,
    propagator: Optional[TextMapPropagator] = None,
    config: Optional[WrapperConfig] = None,
) -> Callable[[Any], TracedClient]:
    """Return a function wrapping an RPC client in a :class:`TracedClient`."""
    resolved = _build_config(name, tracer_provider, propagator, config)

    def wrapper(client: Any) -> TracedClient:
        return TracedClient(client, resolved)

    return wrapper
