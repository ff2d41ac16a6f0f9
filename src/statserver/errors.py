"""
=============================================================================
SERVER ERRORS
=============================================================================

Every failure the server can hit falls into one of four buckets. Where it
happens decides how far it is allowed to travel:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        FAILURE DOMAINS                              │
    ├──────────────────┬─────────────────────────┬────────────────────────┤
    │  Error           │  Raised by              │  Effect                │
    ├──────────────────┼─────────────────────────┼────────────────────────┤
    │  BindError       │  SocketServer.bind()    │  Fatal, process exits  │
    │  AcceptError     │  SocketServer._accept() │  Logged, loop goes on  │
    │  ReadError       │  Connection.read_once() │  Logged, write runs    │
    │  WriteError      │  Connection.send_once() │  Logged, conn closed   │
    └──────────────────┴─────────────────────────┴────────────────────────┘

Only BindError ever leaves the server. The other three are caught inside
the accept loop or inside the handler thread that owns the connection, so
one broken client can never take down another.

=============================================================================
"""

from typing import Optional


class StatServerError(Exception):
    """Base class for all server errors."""


class BindError(StatServerError):
    """
    The listening socket could not be bound.

    Typical causes:
    - Address already in use: another process owns the port
    - Permission denied: ports < 1024 need root
    """

    def __init__(self, host: str, port: int, reason: Optional[BaseException] = None):
        self.host = host
        self.port = port
        self.reason = reason
        message = f"Failed to bind to {host}:{port}"
        if reason is not None:
            message += f": {reason}"
        super().__init__(message)


class AcceptError(StatServerError):
    """accept() failed for one pending connection."""


class ReadError(StatServerError):
    """The single read of a connection's request bytes failed."""


class WriteError(StatServerError):
    """The response could not be written to the connection."""


class ShortWriteError(WriteError):
    """
    send() accepted fewer bytes than the full response.

    There is no retry loop. A short write is treated like any other
    write failure for that connection.
    """

    def __init__(self, sent: int, expected: int):
        self.sent = sent
        self.expected = expected
        super().__init__(f"Short write: sent {sent} of {expected} bytes")
