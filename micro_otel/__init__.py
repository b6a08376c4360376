"""OpenTelemetry tracing wrappers for go-micro style RPC clients and servers."""

__version__ = "0.1.0"

from micro_otel.config import WrapperConfig, load_config
from micro_otel.errors import (
    ConfigError,
    InvalidSampledHeader,
    InvalidScope,
    InvalidSpanIDHeader,
    InvalidTraceIDHeader,
    MicroOtelError,
    PropagationError,
    RpcError,
)
from micro_otel.id_generator import LegacyTraceIdGenerator
from micro_otel.propagation import (
    OTTracePropagator,
    SamplingDecision,
    TraceIdentity,
    decode,
    encode,
    extract,
    inject,
)
from micro_otel.rpc import Message, Request
from micro_otel.tracker import Tracker, TrackerState
from micro_otel.wrappers import (
    Instrumentation,
    TracedClient,
    new_call_wrapper,
    new_client_wrapper,
    new_handler_wrapper,
    new_publish_wrapper,
    new_stream_wrapper,
    new_subscriber_wrapper,
)

__all__ = [
    "__version__",
    "WrapperConfig",
    "load_config",
    "MicroOtelError",
    "ConfigError",
    "PropagationError",
    "InvalidSampledHeader",
    "InvalidTraceIDHeader",
    "InvalidSpanIDHeader",
    "InvalidScope",
    "RpcError",
    "LegacyTraceIdGenerator",
    "OTTracePropagator",
    "SamplingDecision",
    "TraceIdentity",
    "decode",
    "encode",
    "inject",
    "extract",
    "Request",
    "Message",
    "Tracker",
    "TrackerState",
    "Instrumentation",
    "TracedClient",
    "new_call_wrapper",
    "new_stream_wrapper",
    "new_publish_wrapper",
    "new_handler_wrapper",
    "new_subscriber_wrapper",
    "new_client_wrapper",
]
