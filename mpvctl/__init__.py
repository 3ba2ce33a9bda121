"""mpvctl: synchronous control client for mpv's JSON IPC socket."""

from mpvctl.core.connection import Connection, connect
from mpvctl.core.errors import (
    ConnectError,
    ErrorCode,
    JsonContainsUnexpectedType,
    JsonParseError,
    MpvctlError,
    MpvError,
    ResponseTimeout,
    TransportError,
    UnexpectedResult,
    UnexpectedValue,
    UnsupportedType,
    ValueDoesNotContainBool,
    ValueDoesNotContainF64,
    ValueDoesNotContainHashMap,
    ValueDoesNotContainPlaylist,
    ValueDoesNotContainString,
    ValueDoesNotContainUsize,
)
from mpvctl.core.protocol import DEFAULT_MAX_LINES, execute, request

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "connect",
    "execute",
    "request",
    "DEFAULT_MAX_LINES",
    "ErrorCode",
    "MpvctlError",
    "ConnectError",
    "JsonParseError",
    "MpvError",
    "UnexpectedResult",
    "UnexpectedValue",
    "JsonContainsUnexpectedType",
    "UnsupportedType",
    "ValueDoesNotContainBool",
    "ValueDoesNotContainF64",
    "ValueDoesNotContainHashMap",
    "ValueDoesNotContainPlaylist",
    "ValueDoesNotContainString",
    "ValueDoesNotContainUsize",
    "TransportError",
    "ResponseTimeout",
]
