"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps one accepted client socket with the two operations the
server needs (one read, one write) plus a proper close.

=============================================================================
ONE READ, ONE WRITE
=============================================================================

TCP is a byte stream, not a message protocol. A single recv() may return
the whole request, half of it, or nothing at all:

    Client sends:
        GET / HTTP/1.1\r\n
        Host: localhost:8080\r\n
        \r\n

    One recv(4096) might return:
        "GET / HTTP/1.1\r\nHost: localhost:8080\r\n\r\n"   (all of it)
        "GET / HT"                                        (partial)
        ""                                                (client sent nothing
                                                           and half-closed)

A real HTTP server would loop until it sees \r\n\r\n. This one does NOT.
The request is never parsed, only logged, so whatever the first recv()
returns is good enough. Every one of the cases above still gets a response.

The write side is symmetric: send() is called exactly once. If the kernel
takes fewer bytes than the full response (a "short write"), that is
reported as ShortWriteError instead of looping like sendall() would.

    ┌─────────────────────────────────────────────────────────────────┐
    │                    Connection Lifecycle                          │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   NEW ──► READING ──► WRITING ──► CLOSING ──► CLOSED            │
    │            │            │                        ▲               │
    │            │ ReadError  │ WriteError             │               │
    │            └────────────┴────── with conn: ──────┘               │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

No timeouts are set on client sockets. A client that connects and never
sends anything blocks its own handler thread forever, and nothing else.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
import uuid

from ..errors import ReadError, WriteError, ShortWriteError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, used in log lines."""
    NEW = "new"              # Just accepted, nothing read yet
    READING = "reading"      # Inside the single recv()
    WRITING = "writing"      # Inside the single send()
    CLOSING = "closing"      # Shutdown sequence running
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents one client connection.

    Owned by exactly one handler thread from accept() to close().

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short connection identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when connection was accepted.
        buffer_size: Size of the single read.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    buffer_size: int = 4096

    def __post_init__(self):
        # Blocking with no timeout. accept() on a listener that has a
        # timeout can hand back a socket that inherited it.
        self.socket.settimeout(None)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0] if self.address else ""

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    @property
    def closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_once(self) -> bytes:
        """
        Do exactly one recv() of up to buffer_size bytes.

        Returns:
            Whatever the kernel had. b"" means the client closed (or
            half-closed) its side without sending anything.

        Raises:
            ReadError: If recv() itself failed (reset, bad fd, ...).
        """
        self.state = ConnectionState.READING
        try:
            return self.socket.recv(self.buffer_size)
        except OSError as e:
            raise ReadError(f"Unable to read stream: {e}") from e

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_once(self, data: bytes) -> int:
        """
        Do exactly one send() of the full response.

        Args:
            data: Response bytes to send.

        Returns:
            Number of bytes sent (always len(data) on success).

        Raises:
            ShortWriteError: If send() took only part of the data.
            WriteError: If send() failed outright.
        """
        self.state = ConnectionState.WRITING
        try:
            sent = self.socket.send(data)
        except OSError as e:
            raise WriteError(f"Failed sending response: {e}") from e

        if sent < len(data):
            raise ShortWriteError(sent, len(data))
        return sent

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees end-of-response
        2. close(): release the file descriptor

        Nothing more is read. Request bytes beyond the single read_once()
        are left unread and discarded with the socket.

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows using Connection with 'with' for guaranteed cleanup:

            with conn:
                conn.read_once()
                conn.send_once(response)
            # Closed here, even if the body raised
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
