from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    CONNECT_ERROR = "connect_error"
    JSON_PARSE_ERROR = "json_parse_error"
    MPV_ERROR = "mpv_error"
    UNEXPECTED_RESULT = "unexpected_result"
    UNEXPECTED_VALUE = "unexpected_value"
    JSON_CONTAINS_UNEXPECTED_TYPE = "json_contains_unexpected_type"
    UNSUPPORTED_TYPE = "unsupported_type"
    VALUE_DOES_NOT_CONTAIN_BOOL = "value_does_not_contain_bool"
    VALUE_DOES_NOT_CONTAIN_F64 = "value_does_not_contain_f64"
    VALUE_DOES_NOT_CONTAIN_HASHMAP = "value_does_not_contain_hashmap"
    VALUE_DOES_NOT_CONTAIN_PLAYLIST = "value_does_not_contain_playlist"
    VALUE_DOES_NOT_CONTAIN_STRING = "value_does_not_contain_string"
    VALUE_DOES_NOT_CONTAIN_USIZE = "value_does_not_contain_usize"
    TRANSPORT_ERROR = "transport_error"
    RESPONSE_TIMEOUT = "response_timeout"


class MpvctlError(Exception):
    """
    Base for every failure this package reports.

    Exactly one subclass is raised per failed operation. ``code`` lets
    callers match on the kind without importing each class.
    """

    code: ErrorCode
    default_message = ""

    def __init__(self, message: str | None = None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)


class ConnectError(MpvctlError):
    code = ErrorCode.CONNECT_ERROR


class JsonParseError(MpvctlError):
    code = ErrorCode.JSON_PARSE_ERROR


class MpvError(MpvctlError):
    """mpv answered with an error string other than "success"."""

    code = ErrorCode.MPV_ERROR


class UnexpectedResult(MpvctlError):
    code = ErrorCode.UNEXPECTED_RESULT
    default_message = "reply has no string 'error' field"


class UnexpectedValue(MpvctlError):
    code = ErrorCode.UNEXPECTED_VALUE
    default_message = "value outside the accepted range"


class JsonContainsUnexpectedType(MpvctlError):
    code = ErrorCode.JSON_CONTAINS_UNEXPECTED_TYPE
    default_message = "json contains a value of unexpected type"


class UnsupportedType(MpvctlError):
    code = ErrorCode.UNSUPPORTED_TYPE
    default_message = "unsupported argument type"


class ValueDoesNotContainBool(MpvctlError):
    code = ErrorCode.VALUE_DOES_NOT_CONTAIN_BOOL
    default_message = "value is not a bool"


class ValueDoesNotContainF64(MpvctlError):
    code = ErrorCode.VALUE_DOES_NOT_CONTAIN_F64
    default_message = "value is not a number"


class ValueDoesNotContainHashMap(MpvctlError):
    code = ErrorCode.VALUE_DOES_NOT_CONTAIN_HASHMAP
    default_message = "value is not an object"


class ValueDoesNotContainPlaylist(MpvctlError):
    code = ErrorCode.VALUE_DOES_NOT_CONTAIN_PLAYLIST
    default_message = "value is not a playlist"


class ValueDoesNotContainString(MpvctlError):
    code = ErrorCode.VALUE_DOES_NOT_CONTAIN_STRING
    default_message = "value is not a string"


class ValueDoesNotContainUsize(MpvctlError):
    code = ErrorCode.VALUE_DOES_NOT_CONTAIN_USIZE
    default_message = "value is not a non-negative integer"


class TransportError(MpvctlError):
    """Socket write/read failed or the stream is gone."""

    code = ErrorCode.TRANSPORT_ERROR


class ResponseTimeout(MpvctlError):
    code = ErrorCode.RESPONSE_TIMEOUT
    default_message = "no reply from mpv"
