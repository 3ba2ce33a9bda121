from __future__ import annotations

import os
import socket
import stat

import pytest

from conftest import feed
from mpvctl.core.connection import Connection, connect
from mpvctl.core.errors import ConnectError, ErrorCode, ResponseTimeout, TransportError
from mpvctl.core.protocol import execute


def test_connect_to_missing_socket(sock_dir) -> None:
    with pytest.raises(ConnectError) as info:
        connect(str(sock_dir / "missing.sock"))

    assert info.value.code is ErrorCode.CONNECT_ERROR
    assert "missing.sock" in str(info.value)


def test_connect_to_plain_file(sock_dir) -> None:
    path = sock_dir / "not-a-socket"
    path.write_text("")

    with pytest.raises(ConnectError):
        connect(path)


def test_connect_with_no_listener(sock_dir) -> None:
    path = str(sock_dir / "stale.sock")
    s = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    s.bind(path)
    s.close()
    assert stat.S_ISSOCK(os.stat(path).st_mode)

    with pytest.raises(ConnectError):
        connect(path)


def test_connect_and_round_trip(fake_mpv) -> None:
    with connect(fake_mpv.path, timeout=2.0) as conn:
        assert isinstance(conn, Connection)
        assert conn.address == fake_mpv.path
        execute(conn, "cycle", ["pause"])
        execute(conn, "seek", [10, "relative"])

    assert conn.closed
    assert fake_mpv.commands() == [["cycle", "pause"], ["seek", 10, "relative"]]


def test_release_runs_when_block_raises(fake_mpv) -> None:
    with pytest.raises(RuntimeError):
        with connect(fake_mpv.path) as conn:
            raise RuntimeError("caller bailed")

    assert conn.closed


def test_release_twice_is_harmless(pair) -> None:
    conn, peer = pair
    feed(peer, '{"event":"idle"}\n' * 50)

    conn.release()
    conn.release()
    conn.disconnect()

    assert conn.closed


def test_use_after_release(pair) -> None:
    conn, _peer = pair
    conn.release()

    with pytest.raises(TransportError):
        conn.read_line()
    with pytest.raises(TransportError):
        conn.raw_write(b"{}\n")


def test_release_after_peer_vanished(pair) -> None:
    conn, peer = pair
    peer.close()

    conn.release()

    assert conn.closed


def test_read_line_end_of_stream_is_not_empty_line(pair) -> None:
    conn, peer = pair
    feed(peer, "\n")
    peer.shutdown(socket.SHUT_WR)

    assert conn.read_line() == "\n"
    assert conn.read_line() is None


def test_raw_write_reaches_peer(pair) -> None:
    conn, peer = pair
    payload = b"x" * 20_000 + b"\n"

    conn.raw_write(payload)

    received = b""
    while len(received) < len(payload):
        received += peer.recv(65536)
    assert received == payload


def test_end_of_stream_breaks_connection(pair) -> None:
    conn, peer = pair
    peer.shutdown(socket.SHUT_WR)

    assert conn.read_line() is None
    assert conn.closed
    with pytest.raises(TransportError):
        conn.read_line()


def test_overlong_line() -> None:
    a, peer = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    with peer, Connection(a, "socketpair", max_line_length=1024) as conn:
        peer.sendall(b"x" * 2048)

        with pytest.raises(ResponseTimeout):
            conn.read_line()

        assert conn.closed


def test_line_at_length_limit_is_read() -> None:
    a, peer = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    with peer, Connection(a, "socketpair", max_line_length=1024) as conn:
        peer.sendall(b"x" * 1023 + b"\n")

        assert conn.read_line() == "x" * 1023 + "\n"


@pytest.mark.parametrize("timeout", [0, -1.5])
def test_connect_rejects_non_positive_timeout(fake_mpv, timeout) -> None:
    with pytest.raises(ValueError):
        connect(fake_mpv.path, timeout=timeout)
