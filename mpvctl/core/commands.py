from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any

from mpvctl.core.connection import Connection
from mpvctl.core.errors import (
    JsonContainsUnexpectedType,
    UnexpectedValue,
    ValueDoesNotContainBool,
    ValueDoesNotContainF64,
    ValueDoesNotContainHashMap,
    ValueDoesNotContainPlaylist,
    ValueDoesNotContainString,
    ValueDoesNotContainUsize,
)
from mpvctl.core.protocol import execute, request

# ------------------------------------------------------------
# Time stamps
# ------------------------------------------------------------

SEEK_MODES = ("relative", "absolute", "absolute-percent")

_CLOCK = re.compile(r"^(?:(\d+):)?(\d+):(\d+(?:\.\d+)?)$")
_NUMBER = re.compile(r"^\d+(?:\.\d+)?$")


@dataclass(frozen=True)
class TimeStamp:
    seconds: float
    mode: str = "absolute"

    def __post_init__(self) -> None:
        if self.mode not in SEEK_MODES:
            raise ValueError(f"unknown seek mode: {self.mode}")


def parse_timestamp(text: str) -> TimeStamp:
    """
    "+10" / "-5"   relative seconds
    "83", "1:23", "1:02:03"   absolute position
    "50%"          absolute percent
    """
    s = (text or "").strip()
    if not s:
        raise ValueError("empty time stamp")

    if s.endswith("%"):
        body = s[:-1]
        if not _NUMBER.match(body):
            raise ValueError(f"bad percentage: {text}")
        pct = float(body)
        if pct > 100:
            raise ValueError(f"percentage out of range: {text}")
        return TimeStamp(pct, "absolute-percent")

    if s[0] in "+-":
        body = s[1:]
        if not _NUMBER.match(body):
            raise ValueError(f"bad relative offset: {text}")
        offset = float(body)
        return TimeStamp(-offset if s[0] == "-" else offset, "relative")

    if _NUMBER.match(s):
        return TimeStamp(float(s))

    m = _CLOCK.match(s)
    if not m:
        raise ValueError(f"bad time stamp: {text}")
    hours, minutes, seconds = m.groups()
    if float(seconds) >= 60 or (hours is not None and int(minutes) >= 60):
        raise ValueError(f"bad time stamp: {text}")
    total = int(hours or 0) * 3600 + int(minutes) * 60 + float(seconds)
    return TimeStamp(total)


# ------------------------------------------------------------
# Playback
# ------------------------------------------------------------

def pause(conn: Connection, **kw: Any) -> None:
    set_property(conn, "pause", True, **kw)


def play(conn: Connection, **kw: Any) -> None:
    set_property(conn, "pause", False, **kw)


def toggle_pause(conn: Connection, **kw: Any) -> None:
    execute(conn, "cycle", ["pause"], **kw)


def seek(conn: Connection, stamp: TimeStamp | str, **kw: Any) -> None:
    if isinstance(stamp, str):
        stamp = parse_timestamp(stamp)
    execute(conn, "seek", [stamp.seconds, stamp.mode], **kw)


def stop(conn: Connection, **kw: Any) -> None:
    execute(conn, "stop", **kw)


def quit_player(conn: Connection, **kw: Any) -> None:
    execute(conn, "quit", **kw)


# ------------------------------------------------------------
# Properties
# ------------------------------------------------------------

def get_property(conn: Connection, name: str, **kw: Any) -> Any:
    return request(conn, "get_property", [name], **kw).get("data")


def set_property(conn: Connection, name: str, value: Any, **kw: Any) -> None:
    execute(conn, "set_property", [name, value], **kw)


# ------------------------------------------------------------
# Typed extraction
# ------------------------------------------------------------

@dataclass(frozen=True)
class PlaylistEntry:
    filename: str
    title: str | None = None
    current: bool = False


def as_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueDoesNotContainBool()
    return value


def as_f64(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueDoesNotContainF64()
    return float(value)


def as_string(value: Any) -> str:
    if not isinstance(value, str):
        raise ValueDoesNotContainString()
    return value


def as_usize(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueDoesNotContainUsize()
    if value < 0:
        raise UnexpectedValue(f"negative count: {value}")
    return value


def as_hashmap(value: Any) -> dict[str, str]:
    """
    Flat string map, e.g. the "metadata" property.
    """
    if not isinstance(value, dict):
        raise ValueDoesNotContainHashMap()
    for k, v in value.items():
        if not isinstance(v, str):
            raise JsonContainsUnexpectedType(f"{k}: {type(v).__name__}")
    return dict(value)


def as_playlist(value: Any) -> list[PlaylistEntry]:
    if not isinstance(value, list):
        raise ValueDoesNotContainPlaylist()

    entries = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("filename"), str):
            raise ValueDoesNotContainPlaylist()
        title = item.get("title")
        if title is not None and not isinstance(title, str):
            raise JsonContainsUnexpectedType(f"title: {type(title).__name__}")
        entries.append(
            PlaylistEntry(
                filename=item["filename"],
                title=title,
                current=bool(item.get("current", False)),
            )
        )
    return entries


# ------------------------------------------------------------
# Name lookup (CLI / TUI)
# ------------------------------------------------------------

SIMPLE_COMMANDS = {
    "pause": pause,
    "play": play,
    "toggle": toggle_pause,
    "stop": stop,
    "quit": quit_player,
}


def dispatch(conn: Connection, name: str, args: list[str], **kw: Any) -> Any:
    if name in SIMPLE_COMMANDS:
        if args:
            raise ValueError(f"{name} takes no arguments")
        return SIMPLE_COMMANDS[name](conn, **kw)

    if name == "seek":
        if len(args) != 1:
            raise ValueError("seek takes exactly one time stamp")
        return seek(conn, args[0], **kw)

    if name == "get":
        if len(args) != 1:
            raise ValueError("get takes exactly one property name")
        return get_property(conn, args[0], **kw)

    if name == "set":
        if len(args) != 2:
            raise ValueError("set takes a property name and a value")
        return set_property(conn, args[0], coerce_arg(args[1]), **kw)

    if name == "raw":
        if not args:
            raise ValueError("raw needs a command name")
        return request(conn, args[0], [coerce_arg(a) for a in args[1:]], **kw).get("data")

    raise ValueError(f"unknown command: {name}")


def coerce_arg(text: str) -> str | int | float | bool:
    """
    Command line words stay strings unless they read as a JSON
    number or boolean.
    """
    if text in ("true", "false"):
        return text == "true"
    try:
        return int(text)
    except ValueError:
        pass
    try:
        f = float(text)
    except ValueError:
        return text
    if not math.isfinite(f):
        return text
    return f
