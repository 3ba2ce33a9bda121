"""
mpv JSON IPC round trips.

A request is one JSON object per line:

    {"command": ["set_property", "pause", true]}

mpv answers with an object carrying an "error" string ("success" or a
message). Event notifications can arrive on the same stream before the
answer; they are skipped.
"""

from __future__ import annotations

import json
import logging
import math
import time
from typing import Any, Iterable

from mpvctl.core.connection import Connection
from mpvctl.core.errors import (
    JsonParseError,
    MpvError,
    ResponseTimeout,
    TransportError,
    UnexpectedResult,
    UnsupportedType,
)

logger = logging.getLogger(__name__)

ERROR_MARKER = '"error"'
SUCCESS = "success"
DEFAULT_MAX_LINES = 1000

Arg = str | int | float | bool


# ------------------------------------------------------------
# Framing
# ------------------------------------------------------------

def _check_arg(value: Any) -> Arg:
    if isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise UnsupportedType(f"non-finite float argument: {value!r}")
        return value
    raise UnsupportedType(f"unsupported argument type: {type(value).__name__}")


def serialize_command(
    name: str,
    args: Iterable[Any] = (),
    request_id: int | None = None,
) -> bytes:
    if not isinstance(name, str):
        raise UnsupportedType(f"command name must be a string, not {type(name).__name__}")

    payload: dict[str, Any] = {"command": [name, *(_check_arg(a) for a in args)]}
    if request_id is not None:
        payload["request_id"] = request_id
    return (json.dumps(payload) + "\n").encode("utf-8")


def parse_command(line: str | bytes) -> tuple[str, list[Arg]]:
    """Inverse of serialize_command (name and arguments only)."""
    try:
        obj = json.loads(line)
    except json.JSONDecodeError as e:
        raise JsonParseError(str(e)) from e

    cmd = obj.get("command") if isinstance(obj, dict) else None
    if not isinstance(cmd, list) or not cmd or not isinstance(cmd[0], str):
        raise UnexpectedResult("not a command object")
    return cmd[0], cmd[1:]


# ------------------------------------------------------------
# Reply handling
# ------------------------------------------------------------

def _is_candidate(line: str) -> bool:
    return ERROR_MARKER in line


def _parse_reply(line: str) -> Any:
    try:
        return json.loads(line)
    except json.JSONDecodeError as e:
        raise JsonParseError(str(e)) from e


def _should_skip(reply: Any, request_id: int | None) -> bool:
    if not isinstance(reply, dict):
        return False
    # Event whose payload only happens to contain the marker text.
    if "event" in reply and "error" not in reply:
        return True
    if request_id is not None and "error" in reply:
        rid = reply.get("request_id")
        if rid is not None and rid != request_id:
            return True
    return False


def classify_reply(reply: Any) -> dict[str, Any]:
    """
    Return the reply if mpv reported success, raise otherwise.
    """
    if not isinstance(reply, dict):
        raise UnexpectedResult()

    error = reply.get("error")
    if not isinstance(error, str):
        raise UnexpectedResult()
    if error != SUCCESS:
        raise MpvError(error)
    return reply


def _await_reply(
    connection: Connection,
    max_lines: int | None,
    deadline: float | None,
    request_id: int | None,
) -> Any:
    seen = 0
    while True:
        if max_lines is not None and seen >= max_lines:
            # the reply may still arrive and would answer the next command
            connection.invalidate()
            raise ResponseTimeout(f"no reply within {max_lines} lines")

        line = connection.read_line(deadline)
        if line is None:
            raise TransportError(f"{connection.address} closed before replying")
        seen += 1

        if not _is_candidate(line):
            logger.debug("skip: %s", line.rstrip())
            continue

        reply = _parse_reply(line)
        if _should_skip(reply, request_id):
            logger.debug("skip: %s", line.rstrip())
            continue

        logger.debug("response: %s", line.rstrip())
        return reply


# ------------------------------------------------------------
# Public API
# ------------------------------------------------------------

def request(
    connection: Connection,
    name: str,
    args: Iterable[Any] = (),
    *,
    max_lines: int | None = DEFAULT_MAX_LINES,
    timeout: float | None = None,
    request_id: int | None = None,
) -> dict[str, Any]:
    """
    One round trip: write the command, block until its reply, classify it.

    Returns the whole reply object on success so callers can read "data".
    ``max_lines`` bounds how many lines are read while waiting and
    ``timeout`` is an overall deadline in seconds; either one running out
    raises ResponseTimeout.
    """
    payload = serialize_command(name, args, request_id)
    logger.debug("command: %s", payload.decode("utf-8").rstrip())
    connection.raw_write(payload)

    deadline = None if timeout is None else time.monotonic() + timeout
    reply = _await_reply(connection, max_lines, deadline, request_id)
    return classify_reply(reply)


def execute(
    connection: Connection,
    name: str,
    args: Iterable[Any] = (),
    *,
    max_lines: int | None = DEFAULT_MAX_LINES,
    timeout: float | None = None,
    request_id: int | None = None,
) -> None:
    request(
        connection,
        name,
        args,
        max_lines=max_lines,
        timeout=timeout,
        request_id=request_id,
    )
