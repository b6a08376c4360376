"""micro-otel error hierarchy and exceptions."""

from __future__ import annotations


class MicroOtelError(Exception):
    """Base exception for all micro-otel errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(MicroOtelError):
    """Raised when wrapper configuration is invalid or conflicting."""
    pass


class PropagationError(MicroOtelError):
    """Raised when incoming trace headers cannot be decoded."""
    pass


class InvalidSampledHeader(PropagationError):
    """The sampled header is not one of 0, 1, false, true or empty."""

    def __init__(self, value: str):
        super().__init__("invalid OT Sampled header found", {"value": value})


class InvalidTraceIDHeader(PropagationError):
    """The trace id header is not a valid non-zero 64 or 128-bit hex id."""

    def __init__(self, value: str):
        super().__init__("invalid OT traceID header found", {"value": value})


class InvalidSpanIDHeader(PropagationError):
    """The span id header is not a valid non-zero 64-bit hex id."""

    def __init__(self, value: str):
        super().__init__("invalid OT spanID header found", {"value": value})


class InvalidScope(PropagationError):
    """Only one of trace id and span id was present."""

    def __init__(self):
        super().__init__("require either both traceID and spanID or none")


class RpcError(Exception):
    """
    Error returned by an RPC handler or client, go-micro style.

    ``code`` is an HTTP-like status (400, 404, 500, ...) that the tracing
    layer maps onto an RPC status code when it records the outcome.
    """

    def __init__(self, id: str, detail: str, code: int = 500, status: str = ""):
        super().__init__(detail)
        self.id = id
        self.detail = detail
        self.code = code
        self.status = status

    def __str__(self) -> str:
        return self.detail
