"""Mapping of an operation's outcome onto span status and attributes."""

from __future__ import annotations

from enum import IntEnum
from typing import Optional

from opentelemetry.trace import Span, Status, StatusCode

from micro_otel.errors import RpcError

ERROR_KEY = "error"
RPC_STATUS_CODE_KEY = "rpc.micro.status_code"


class RpcCode(IntEnum):
    """Canonical RPC status codes (google.rpc.Code)."""

    OK = 0
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    NOT_FOUND = 5
    PERMISSION_DENIED = 7
    ABORTED = 10
    INTERNAL = 13
    UNAUTHENTICATED = 16


MICRO_CODE_TO_RPC_CODE = {
    400: RpcCode.INVALID_ARGUMENT,
    401: RpcCode.UNAUTHENTICATED,
    403: RpcCode.PERMISSION_DENIED,
    404: RpcCode.NOT_FOUND,
    409: RpcCode.ABORTED,
    500: RpcCode.INTERNAL,
}


def rpc_code_for(error: Optional[BaseException]) -> RpcCode:
    """Classify an operation error as an RPC status code."""
    if error is None:
        return RpcCode.OK
    if isinstance(error, RpcError):
        return MICRO_CODE_TO_RPC_CODE.get(error.code, RpcCode.UNKNOWN)
    return RpcCode.UNKNOWN


def describe_error(error: BaseException) -> str:
    if isinstance(error, RpcError) and error.id:
        return f"{error.id}: {error.detail}"
    return str(error)


def set_response_status(span: Span, error: Optional[BaseException], record_event: bool = True) -> None:
    """
    Record the outcome of an operation on its span.

    No error sets status OK. An error sets status ERROR, an ``error``
    attribute holding the error message and, if requested, an ``error``
    event carrying the same message.
    """
    if error is None:
        span.set_status(Status(StatusCode.OK))
        return

    message = str(error)
    span.set_status(Status(StatusCode.ERROR, describe_error(error)))
    span.set_attribute(ERROR_KEY, message)
    span.set_attribute(RPC_STATUS_CODE_KEY, int(rpc_code_for(error)))
    if record_event:
        span.add_event(ERROR_KEY, attributes={ERROR_KEY: message})
