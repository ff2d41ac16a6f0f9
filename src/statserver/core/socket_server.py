"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

This module owns the listening socket: it binds it, accepts connections
from it, and hands each one off. It never reads or writes client data.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    Create a socket file descriptor
    2. bind()      Associate the socket with an IP:PORT       ← BindError
    3. listen()    OS starts queueing incoming connections
    4. accept()    Wait for a connection, get a NEW socket    ← AcceptError
                   back just for that client
    5. close()     Release the listening socket (process exit)

                    ┌───────────────────────┐
                    │   Listening Socket    │ ◄── Created once at startup
                    │   (Server Socket)     │     Bound to 0.0.0.0:8080
                    └───────────┬───────────┘     Never sends/receives data
                                │
        ┌───────────────────────┼───────────────────────┐
        ▼                       ▼                       ▼
    ┌───────────┐         ┌───────────┐         ┌───────────┐
    │ Client    │         │ Client    │         │ Client    │
    │ Socket 1  │         │ Socket 2  │         │ Socket 3  │
    └───────────┘         └───────────┘         └───────────┘

=============================================================================
SOCKET OPTIONS
=============================================================================

SO_REUSEADDR:
    Lets a restarted server bind immediately instead of waiting out
    TIME_WAIT. It does NOT let two live servers share a port on Linux,
    so "address already in use" is still reported as a BindError.

SO_REUSEPORT is not set. With it, a second server would silently bind
the same port and split traffic instead of failing.

TCP_NODELAY:
    Disables Nagle's algorithm so the single response write goes out
    immediately.

=============================================================================
SIGNAL HANDLING
=============================================================================

SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) stop the accept loop and
close the listening socket. Handler threads are daemons and are not
waited on. Signal handlers can only be installed from the main thread,
so a server started from any other thread (tests, embedding) skips them.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from ..errors import AcceptError, BindError
from .connection import Connection


logger = logging.getLogger(__name__)


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    bind()            Create socket, bind, listen                     │
    │        │             (BindError if the address is taken)             │
    │        ▼                                                             │
    │    serve(callback)   Accept loop (blocks here!)                      │
    │        │                                                             │
    │        └──► while running:                                           │
    │                accept()       Wait for connection                    │
    │                Connection()   Wrap client socket                     │
    │                callback(conn) Hand off, do NOT wait                  │
    │                                                                      │
    │    shutdown()        Flip _running, loop exits within                │
    │                      accept_timeout seconds                          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def dispatch(conn: Connection):
            threading.Thread(target=..., args=(conn,), daemon=True).start()

        server = SocketServer(config)
        server.bind()              # Raises BindError
        server.serve(dispatch)     # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        Note: This does NOT create the socket. That happens in bind().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening, cleared on cleanup
        self._listening_event = threading.Event()

        # Original signal handlers, restored on cleanup
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        """Check if the accept loop is running."""
        return self._running

    @property
    def address(self) -> Tuple[str, int]:
        """
        Get the server's bound address (IP, port).

        Before bind() this is the configured address. After bind() it is
        the real one, so port 0 resolves to the port the OS picked.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return (self.config.host, self.config.port)

    def _create_socket(self) -> socket.socket:
        """Create and configure the listening socket."""
        # AF_INET = IPv4, SOCK_STREAM = TCP
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() wakes up this often to check whether we should stop
        sock.settimeout(self.config.accept_timeout)

        return sock

    def bind(self) -> None:
        """
        Create the listening socket, bind it and start listening.

        Raises:
            BindError: If the address can't be bound. Nothing is left open.
        """
        sock = self._create_socket()

        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            sock.close()
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            raise BindError(self.config.host, self.config.port, e) from e

        self._socket = sock
        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")

    def serve(self, connection_handler: Callable[[Connection], None]) -> None:
        """
        Run the accept loop on the bound socket.

        Args:
            connection_handler: Called with each new Connection. Must not
                                block: it is expected to hand the
                                connection to another thread and return.
        """
        if self._socket is None:
            raise RuntimeError("serve() called before bind()")

        self._running = True
        self._setup_signals()
        self._listening_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept(self) -> Connection:
        """
        Accept one connection.

        Raises:
            socket.timeout: Nothing arrived within accept_timeout (normal).
            AcceptError: accept() failed for any other reason.
        """
        try:
            client_socket, client_address = self._socket.accept()
        except socket.timeout:
            raise
        except OSError as e:
            raise AcceptError(f"Unable to connect: {e}") from e

        logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

        return Connection(
            socket=client_socket,
            address=client_address,
            buffer_size=self.config.buffer_size,
        )

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Main loop for accepting connections.

        ┌─────────────────────────────────────────────────────────────────┐
        │                     Accept Loop Flow                             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   while self._running:                                           │
        │       │                                                          │
        │       ├──► accept()                                              │
        │       │       ├── timeout      → loop (check _running)           │
        │       │       ├── AcceptError  → log, loop                       │
        │       │       └── Connection                                     │
        │       │                                                          │
        │       └──► connection_handler(conn)                              │
        │               └── spawns a thread and returns immediately        │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘
        """
        while self._running:
            try:
                conn = self._accept()
            except socket.timeout:
                continue
            except AcceptError as e:
                if not self._running:
                    break  # Socket closed under us during shutdown
                logger.error(str(e))
                continue

            connection_handler(conn)

    def _setup_signals(self):
        """Install SIGTERM/SIGINT handlers (main thread only)."""
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def shutdown(self):
        """
        Stop the accept loop.

        Safe to call from a signal handler, another thread, or more than
        once. In-flight handler threads keep running.
        """
        logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        """Restore signals and close the listening socket."""
        self._restore_signals()
        self._listening_event.clear()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        logger.info("Socket server stopped")

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running. Returns False on timeout."""
        return self._listening_event.wait(timeout)
