"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket for its whole, short life: read one
request, write one response, close.

=============================================================================
CONNECTION LIFECYCLE
=============================================================================

    ┌──────────┐   ┌─────────┐   ┌────────┐   ┌─────────────┐   ┌────────────┐
    │ ACCEPTED │──►│ READING │──►│ PARSED │──►│ DISPATCHING │──►│ RESPONDING │
    └────┬─────┘   └────┬────┘   └───┬────┘   └─────────────┘   └─────┬──────┘
         │              │            │                                │
         │   empty read, read error, │ parse failure                  │
         │   server stop             │ (best-effort 400 first)        │
         ▼              ▼            ▼                                ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                               CLOSED                                │
    └─────────────────────────────────────────────────────────────────────┘

CLOSED is the only terminal state and is entered exactly once, whichever
thread gets there first: the connection's own handler thread after the
response, or the server's stop() tearing everything down.

No keep-alive: every response carries "Connection: close" and the socket
is closed right after it is written.

=============================================================================
"""

import logging
import socket
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..http.request import HEADER_SEPARATOR


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its single request/response exchange."""

    ACCEPTED = "accepted"        # Just accepted, nothing read yet
    READING = "reading"          # Receiving request bytes
    PARSED = "parsed"            # Request bytes parsed into HTTPRequest
    DISPATCHING = "dispatching"  # Handler running (may wait on a recognizer)
    RESPONDING = "responding"    # Writing the response
    CLOSED = "closed"            # Socket released


@dataclass(eq=False)
class Connection:
    """
    One accepted client connection.

    Compared and hashed by identity so the server can keep live
    connections in a set.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier for log lines.
        state: Current ConnectionState.
        buffer_size: Bytes requested per recv().
        timeout: Socket timeout in seconds (None = block indefinitely).
        max_request_size: Read ceiling; bytes past it are never read.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.ACCEPTED
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 8192
    timeout: Optional[float] = None
    max_request_size: int = 10 * 1024 * 1024

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self):
        # None = blocking, no deadline
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    def advance(self, state: ConnectionState) -> bool:
        """
        Move to `state` unless the connection is already CLOSED.

        Returns:
            False if the connection was closed (possibly by another thread).
        """
        with self._lock:
            if self.state == ConnectionState.CLOSED:
                return False
            self.state = state
            return True

    # ─────────────────────────────────────────────────────────────────────
    # READING
    # ─────────────────────────────────────────────────────────────────────

    def read_request(self) -> Optional[bytes]:
        """
        Read one HTTP request from the socket.

        ┌─────────────────────────────────────────────────────────────────┐
        │   while no \\r\\n\\r\\n in buffer:   recv() → buffer              │
        │   parse Content-Length from the header block                    │
        │   while body shorter than Content-Length:   recv() → buffer     │
        │                                                                  │
        │   Every loop also stops when the peer stops sending or the       │
        │   buffer reaches max_request_size (extra bytes are dropped).     │
        └─────────────────────────────────────────────────────────────────┘

        The bytes are returned as-is even if incomplete; deciding whether
        they form a valid request is the parser's job.

        Returns:
            Request bytes, or None if the peer closed without sending
            anything.

        Raises:
            OSError: On a socket error or timeout (TimeoutError).
        """
        if not self.advance(ConnectionState.READING):
            return None
        buffer = b""

        while HEADER_SEPARATOR not in buffer:
            chunk = self._recv()
            if not chunk:
                return buffer or None
            buffer += chunk
            if len(buffer) > self.max_request_size:
                return self._truncate(buffer)

        header_end = buffer.find(HEADER_SEPARATOR)
        body_start = header_end + len(HEADER_SEPARATOR)
        expected = body_start + self._parse_content_length(buffer[:header_end])

        while len(buffer) < expected:
            chunk = self._recv()
            if not chunk:
                break  # Peer stopped mid-body
            buffer += chunk
            if len(buffer) > self.max_request_size:
                return self._truncate(buffer)

        return buffer

    def _recv(self) -> bytes:
        if self.closed:
            return b""
        try:
            return self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""

    def _truncate(self, buffer: bytes) -> bytes:
        logger.warning(
            f"[{self.id}] Request reached the {self.max_request_size} byte ceiling; "
            f"ignoring the rest"
        )
        return buffer[:self.max_request_size]

    @staticmethod
    def _parse_content_length(headers: bytes) -> int:
        """
        Find Content-Length in a raw header block (0 if missing or bad).

        A plain scan is enough here; full header parsing happens later.
        """
        text = headers.decode("utf-8", errors="replace")
        for line in text.split("\r\n")[1:]:
            name, sep, value = line.partition(":")
            if sep and name.strip().lower() == "content-length":
                try:
                    return max(int(value.strip()), 0)
                except ValueError:
                    return 0
        return 0

    # ─────────────────────────────────────────────────────────────────────
    # WRITING
    # ─────────────────────────────────────────────────────────────────────

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes with sendall().

        Returns:
            True if every byte was handed to the kernel, False if the
            connection was already closed or the write failed.
        """
        if not self.advance(ConnectionState.RESPONDING):
            return False
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # ─────────────────────────────────────────────────────────────────────
    # CLOSING
    # ─────────────────────────────────────────────────────────────────────

    def close(self, graceful: bool = True) -> bool:
        """
        Close the connection. Safe to call from any thread, any number of
        times; only the first call does anything.

        Graceful close sends FIN (shutdown SHUT_WR) and drains what the
        client still sends, so the response is not cut off by a reset.

        Returns:
            True if this call closed the connection.
        """
        with self._lock:
            if self.state == ConnectionState.CLOSED:
                return False
            self.state = ConnectionState.CLOSED

        if graceful:
            try:
                self.socket.shutdown(socket.SHUT_WR)
                self.socket.settimeout(0.5)
                while self.socket.recv(1024):
                    pass
            except OSError:
                pass  # Peer already gone

        try:
            self.socket.close()
        except OSError:
            pass

        logger.debug(f"[{self.id}] Connection closed after {self.age * 1000:.1f}ms")
        return True

    def abort(self) -> bool:
        """
        Tear the connection down immediately (used on server stop).

        shutdown(SHUT_RDWR) wakes the handler thread if it is blocked in
        recv(); it then finds the connection closed and winds down.
        """
        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        return self.close(graceful=False)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
