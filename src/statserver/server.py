"""
=============================================================================
STATS SERVER
=============================================================================

Ties the pieces together: one listening socket, one thread per connection.

=============================================================================
THREAD-PER-CONNECTION
=============================================================================

    Main thread                         Handler threads
    ───────────                         ───────────────
    bind()
    print banner
    accept() ──► conn 1 ──spawn──────►  [conn 1] read → write → close
    accept() ──► conn 2 ──spawn──────►  [conn 2] read → write → close
    accept() ──► conn 3 ──spawn──────►  [conn 3] read ... (client stalls)
    accept() ──► conn 4 ──spawn──────►  [conn 4] read → write → close
    ...

- The accept loop never waits for a handler. A stalled client ties up
  one thread and nothing else.
- Threads are daemons and are never joined. The socket is still always
  closed because ConnectionHandler.handle() runs inside `with conn:`.
- There is no cap on the number of threads and no admission control.
- Connections share no mutable state, so there are no locks.
- Responses can finish in any order relative to accept order.

=============================================================================
"""

import logging
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionHandler
from .stats import StatsProvider


logger = logging.getLogger(__name__)


WELCOME_MESSAGE = "Welcome to the ADGSTUDIOS - Unikernel World!"


class StatsServer:
    """
    HTTP server that answers every request with a host memory stats page.

    Usage:
        server = StatsServer(ServerConfig(port=8080))
        server.run()   # Blocks until Ctrl+C / SIGTERM
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        stats_provider: Optional[StatsProvider] = None,
    ):
        """
        Args:
            config: Server configuration. Uses defaults (0.0.0.0:8080) if not provided.
            stats_provider: Memory stats source. Uses psutil if not provided.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._handler = ConnectionHandler(stats_provider or StatsProvider())

    @property
    def address(self) -> Tuple[str, int]:
        """The bound (host, port), or the configured one before run()."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        """Check if the accept loop is running."""
        return self._socket_server.is_running

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self):
        """
        Start the server (blocking).

        Raises:
            BindError: If the listening socket can't be bound. The accept
                       loop is never entered.
        """
        self._setup_logging()

        self._socket_server.bind()
        self._print_startup_banner()

        try:
            self._socket_server.serve(self._dispatch)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")

        logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. In-flight handlers keep running."""
        self._socket_server.shutdown()

    def wait_until_listening(self, timeout: Optional[float] = None) -> bool:
        """Block until the accept loop is running. Returns False on timeout."""
        return self._socket_server.wait_until_listening(timeout)

    def _print_startup_banner(self):
        """Print server startup information."""
        _, port = self.address
        print(WELCOME_MESSAGE)
        print(f"Listening for connections on port {port}")
        print(f"  http://{self.config.display_host()}:{port}  (Ctrl+C to stop)")

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("statserver").setLevel(level)

    # =========================================================================
    # CONNECTION DISPATCH
    # =========================================================================

    def _dispatch(self, conn: Connection):
        """
        Hand a connection to a new handler thread and return immediately.

        Called by SocketServer for each accepted connection. The thread is
        not tracked or joined.
        """
        thread = threading.Thread(
            target=self._handler.handle,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )

        try:
            thread.start()
        except RuntimeError as e:
            # "can't start new thread": out of OS thread capacity
            logger.error(f"[{conn.id}] Unable to start handler thread: {e}")
            conn.close()
