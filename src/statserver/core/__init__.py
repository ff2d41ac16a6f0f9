"""
Core networking components.

- SocketServer: owns the listening socket and the accept loop
- Connection: one accepted client socket (one read, one write, close)
- ConnectionHandler: the per-connection read phase / write phase
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .handler import ConnectionHandler

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ConnectionHandler",
]
