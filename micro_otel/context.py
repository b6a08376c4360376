"""Context helpers for activating per-operation span contexts."""

from contextvars import Token
from typing import Optional

from opentelemetry import context as context_api
from opentelemetry.context import Context
from opentelemetry.trace import get_current_span

from micro_otel.propagation.identity import TraceIdentity


def current_identity(context: Optional[Context] = None) -> TraceIdentity:
    """
    Return the identity of the span active in ``context``.

    Uses the current context when none is given; empty when no valid span
    is active.
    """
    return TraceIdentity.from_span_context(get_current_span(context).get_span_context())


def activate(context: Context) -> Token:
    """
    Make ``context`` (and the span it holds) current.

    Returns:
        Token needed to restore the previous state
    """
    return context_api.attach(context)


def deactivate(token: Token) -> None:
    """
    Restore the previous context using the provided token.

    Args:
        token: Token returned by activate()
    """
    context_api.detach(token)
