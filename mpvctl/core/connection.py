from __future__ import annotations

import logging
import socket
import time

from mpvctl.core.errors import ConnectError, ResponseTimeout, TransportError

logger = logging.getLogger(__name__)

READ_CHUNK = 4096
# mpv's playlist/track-list replies can be large; anything past this is junk.
MAX_LINE_LENGTH = 4 * 1024 * 1024

# Teardown drain: bytes mpv was mid-write on when we shut down.
DRAIN_CHUNK = 4096
DRAIN_MAX_READS = 64
DRAIN_TIMEOUT = 0.05


class Connection:
    """
    One duplex session with mpv's IPC socket.

    Writes go straight to the socket; reads go through a buffered reader
    made from the same socket. Use as a context manager so release()
    runs on every exit path:

        with connect("/tmp/mpv.sock") as conn:
            execute(conn, "cycle", ["pause"])

    Once a read times out, hits end of stream or an overlong line, a
    write fails or a reply is left unread (invalidate()), the Connection
    is broken and every further read/write raises TransportError.
    """

    def __init__(
        self,
        sock: socket.socket,
        address: str,
        max_line_length: int | None = MAX_LINE_LENGTH,
    ):
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._pending = bytearray()
        self._timeout = sock.gettimeout()
        self.address = address
        self.max_line_length = max_line_length
        self._broken = False
        self._released = False

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<Connection {self.address!r} {state}>"

    @property
    def closed(self) -> bool:
        return self._released or self._broken

    def _check_usable(self) -> None:
        if self._released:
            raise TransportError(f"connection to {self.address} was released")
        if self._broken:
            raise TransportError(f"connection to {self.address} is broken")

    def invalidate(self) -> None:
        """
        Mark the stream out of step with mpv (e.g. a reply is still
        queued). The socket stays open until release().
        """
        self._broken = True

    # ------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------

    def raw_write(self, data: bytes) -> None:
        self._check_usable()
        try:
            self._sock.sendall(data)
        except OSError as e:
            self._broken = True
            logger.warning("write to %s failed: %s", self.address, e)
            raise TransportError(f"could not write to socket: {e}") from e

    def read_line(self, deadline: float | None = None) -> str | None:
        """
        Next line including its terminator, or None at end of stream.

        ``deadline`` is a time.monotonic() value; it is checked between
        chunks, so a peer trickling bytes cannot hold the call past it.
        """
        self._check_usable()
        try:
            while True:
                nl = self._pending.find(b"\n")
                if nl >= 0:
                    self._check_length(nl + 1)
                    raw = bytes(self._pending[: nl + 1])
                    del self._pending[: nl + 1]
                    return raw.decode("utf-8", errors="replace")

                self._check_length(len(self._pending))
                chunk = self._read_chunk(deadline)
                if not chunk:
                    # partial line at end of stream is dropped
                    self._broken = True
                    self._pending.clear()
                    return None
                self._pending += chunk
        finally:
            if not self._broken and deadline is not None:
                self._sock.settimeout(self._timeout)

    def _check_length(self, size: int) -> None:
        if self.max_line_length is not None and size > self.max_line_length:
            self._broken = True
            raise ResponseTimeout(f"line from {self.address} exceeds {self.max_line_length} bytes")

    def _read_chunk(self, deadline: float | None) -> bytes:
        timeout = self._timeout
        if deadline is not None:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self._broken = True
                raise ResponseTimeout(f"timed out waiting for {self.address}")
            if timeout is None or remaining < timeout:
                timeout = remaining

        try:
            self._sock.settimeout(timeout)
            return self._reader.read1(READ_CHUNK)
        except socket.timeout as e:
            # A timed out socket file cannot be read again.
            self._broken = True
            raise ResponseTimeout(f"timed out waiting for {self.address}") from e
        except OSError as e:
            self._broken = True
            raise TransportError(f"could not read from socket: {e}") from e

    def set_read_timeout(self, timeout: float | None) -> None:
        self._check_usable()
        self._timeout = timeout
        self._sock.settimeout(timeout)

    def get_read_timeout(self) -> float | None:
        return self._timeout

    # ------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------

    def release(self) -> None:
        """
        Shut down both directions, drain what the peer already sent,
        close. Only the first call does anything.
        """
        if self._released:
            return
        self._released = True

        try:
            self._sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # peer already gone
            pass

        self._drain()

        try:
            self._reader.close()
        finally:
            self._sock.close()
        logger.debug("released connection to %s", self.address)

    disconnect = release

    def _drain(self) -> None:
        try:
            self._sock.settimeout(DRAIN_TIMEOUT)
            for _ in range(DRAIN_MAX_READS):
                if not self._sock.recv(DRAIN_CHUNK):
                    break
        except OSError:
            pass


def connect(
    address: str,
    timeout: float | None = None,
    max_line_length: int | None = MAX_LINE_LENGTH,
) -> Connection:
    """
    Open mpv's IPC socket at ``address``.

    Raises ConnectError with the system message on any failure; nothing
    is retried. ``timeout`` must be positive or None (blocking).
    """
    if timeout is not None and timeout <= 0:
        raise ValueError(f"timeout must be positive, not {timeout}")
    address = str(address)
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    try:
        sock.connect(address)
    except (OSError, ValueError) as e:
        sock.close()
        logger.warning("could not connect to %s: %s", address, e)
        raise ConnectError(f"{address}: {e}") from e

    sock.settimeout(timeout)
    logger.debug("connected to %s", address)
    return Connection(sock, address, max_line_length=max_line_length)
