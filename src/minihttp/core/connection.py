"""
=============================================================================
CONNECTION
=============================================================================

Wraps one accepted client socket for a single request/response exchange.

=============================================================================
ONE READ, ONE WRITE, CLOSE
=============================================================================

TCP is a byte stream, so a "request" is whatever arrives. This server
does not loop on recv() looking for \\r\\n\\r\\n or Content-Length. It
performs ONE bounded read:

    recv(buffer_size)
        │
        ├── returns up to buffer_size bytes
        │   (may be less than the client sent if it was slow or split)
        │
        └── anything beyond buffer_size stays unread in the kernel

    Client sends 3000 bytes, buffer_size = 1024:

        ┌──────────── read ────────────┐┌────────── never read ─────────┐
        │ GET / HTTP/1.1\\r\\n ...       ││ ...                           │
        └──────────────────────────────┘└───────────────────────────────┘

That truncation is the documented capacity policy, not an accident.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
     │         │                                      ▲
     │         └──────── read error ──────────────────┤
     └──────────────────────────────── close() ───────┘

There is no KEEP_ALIVE state: every connection is closed after exactly
one response.

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)

# Limits on reading leftover client data in close(): total time, and
# total bytes as a multiple of buffer_size
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT_FACTOR = 4


class ConnectionState(Enum):
    """Lifecycle of a connection, tracked for logging and debugging."""
    NEW = "new"                # Accepted, nothing read yet
    READING = "reading"        # Waiting on recv()
    PROCESSING = "processing"  # Parsing and running the handler
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    A client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short random identifier used in log lines.
        state: Current ConnectionState.
        created_at: Accept timestamp.
        buffer_size: Capacity of the single request read.
        timeout: Socket timeout in seconds, None for blocking.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)

    buffer_size: int = 1024
    timeout: Optional[float] = None

    def __post_init__(self):
        # settimeout(None) also puts the socket in blocking mode
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Client IP address."""
        return self.address[0]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_request(self) -> bytes:
        """
        Read the request with a single recv() of buffer_size bytes.

        Returns:
            The bytes received. Empty if the client closed without
            sending anything.

        Raises:
            OSError: On socket errors (reset, timeout, ...).
        """
        self.state = ConnectionState.READING
        data = self.socket.recv(self.buffer_size)

        if len(data) == self.buffer_size:
            logger.debug(
                f"[{self.id}] Read filled the {self.buffer_size}-byte buffer, "
                f"request may be truncated"
            )
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def sendall(self, data: bytes) -> None:
        """
        Send all of data to the client.

        socket.sendall() keeps calling send() until every byte is out.
        Failures are raised, never swallowed.

        Raises:
            OSError: If the client went away or the socket broke.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR) sends FIN: the client sees end of response.
        2. Drain what the client still has in flight (for instance the
           part of a request past buffer_size). Closing with unread data
           makes the kernel answer with RST, which can destroy the
           response before the client has read it. The drain stops after
           DRAIN_TIMEOUT seconds or DRAIN_LIMIT_FACTOR * buffer_size
           bytes, whichever comes first.
        3. close() releases the file descriptor.

        Safe to call more than once. Errors here are expected (the
        peer may already be gone) and ignored.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self._drain()
        except OSError:
            pass  # socket.timeout is an OSError too

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def _drain(self) -> int:
        """
        Discard leftover client data, bounded in time and bytes.

        Returns:
            Number of bytes discarded.

        Raises:
            OSError: On socket errors, including the per-recv timeout.
        """
        deadline = time.monotonic() + DRAIN_TIMEOUT
        limit = DRAIN_LIMIT_FACTOR * self.buffer_size
        drained = 0

        while drained < limit:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            self.socket.settimeout(remaining)
            chunk = self.socket.recv(min(1024, limit - drained))
            if not chunk:
                break
            drained += len(chunk)

        if drained >= limit:
            logger.debug(f"[{self.id}] Drain limit reached, closing with unread data")
        return drained

    def __enter__(self):
        """
        Allows:

            with conn:
                data = conn.read_request()
                ...
            # closed here, even on error
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
