"""
Shapes of the host RPC framework objects the wrappers operate on.

Any object with the matching attributes works; the dataclasses below are
plain implementations for hosts (and tests) that have none of their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from micro_otel.propagation.carrier import Metadata


@runtime_checkable
class RequestDescriptor(Protocol):
    service: str
    endpoint: str
    metadata: Optional[Metadata]


@runtime_checkable
class PublicationDescriptor(Protocol):
    topic: str
    metadata: Optional[Metadata]


@dataclass
class Request:
    service: str
    endpoint: str
    body: Any = None
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class Message:
    topic: str
    payload: Any = None
    metadata: Dict[str, str] = field(default_factory=dict)
