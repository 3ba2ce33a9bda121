from __future__ import annotations

import json
import os
import shutil
import socket
import tempfile
import threading
from pathlib import Path
from typing import Callable

import pytest

from mpvctl.core.connection import Connection

Handler = Callable[[dict], list[str]]

PROPS = {
    "pause": False,
    "time-pos": 83.5,
    "volume": 70.0,
    "media-title": "test.mkv",
}


def mpv_like(request: dict) -> list[str]:
    """Answer like mpv does, with an event line in front of each reply."""
    cmd = request.get("command") or []
    lines = ['{"event":"property-change","id":1,"name":"pause"}\n']

    if cmd and cmd[0] == "get_property":
        name = cmd[1] if len(cmd) > 1 else None
        if name in PROPS:
            reply = {"data": PROPS[name], "error": "success"}
        else:
            reply = {"error": "property not found"}
    elif cmd and cmd[0] == "fail":
        reply = {"error": "invalid parameter"}
    else:
        reply = {"data": None, "error": "success"}

    if "request_id" in request:
        reply["request_id"] = request["request_id"]
    lines.append(json.dumps(reply) + "\n")
    return lines


class FakeMpv:
    """Threaded Unix socket server speaking a little of mpv's IPC."""

    def __init__(self, path: Path, handler: Handler = mpv_like) -> None:
        self.path = str(path)
        self.handler = handler
        self.requests: list[dict] = []
        self._srv = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        self._srv.bind(self.path)
        self._srv.listen(4)
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self) -> None:
        while True:
            try:
                conn, _ = self._srv.accept()
            except OSError:
                return
            threading.Thread(target=self._client, args=(conn,), daemon=True).start()

    def _client(self, conn: socket.socket) -> None:
        try:
            with conn, conn.makefile("rb") as reader:
                for raw in reader:
                    req = json.loads(raw)
                    self.requests.append(req)
                    for line in self.handler(req):
                        conn.sendall(line.encode("utf-8"))
        except OSError:
            pass

    def commands(self) -> list[list]:
        return [r["command"] for r in self.requests]

    def close(self) -> None:
        try:
            self._srv.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._srv.close()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_RUNTIME_DIR", str(tmp_path / "run"))
    for key in list(os.environ):
        if key.startswith("MPVCTL_"):
            monkeypatch.delenv(key)


@pytest.fixture
def sock_dir():
    # AF_UNIX paths are limited to ~108 bytes; keep them short.
    d = Path(tempfile.mkdtemp(prefix="mpvctl-", dir="/tmp"))
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def fake_mpv(sock_dir):
    server = FakeMpv(sock_dir / "mpv.sock")
    yield server
    server.close()


@pytest.fixture
def pair():
    """(Connection, peer socket) over a socketpair."""
    a, b = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    conn = Connection(a, "socketpair")
    yield conn, b
    conn.release()
    b.close()


def feed(peer: socket.socket, *lines: str) -> None:
    peer.sendall("".join(lines).encode("utf-8"))


def sent(peer: socket.socket) -> list[dict]:
    """Every request the Connection has written so far."""
    peer.settimeout(0.2)
    data = b""
    try:
        while True:
            chunk = peer.recv(4096)
            if not chunk:
                break
            data += chunk
    except socket.timeout:
        pass
    return [json.loads(line) for line in data.splitlines() if line.strip()]
