"""
=============================================================================
CONNECTION HANDLER
=============================================================================

Runs in its own thread, one per accepted connection.

    ┌─────────────────────────────────────────────────────────────────┐
    │                    handle(conn) Flow                             │
    ├─────────────────────────────────────────────────────────────────┤
    │                                                                  │
    │   with conn:                                                     │
    │       │                                                          │
    │       ├──► READ PHASE                                            │
    │       │       recv() once → decode (lossy) → log                 │
    │       │       ReadError? log it, carry on                        │
    │       │                                                          │
    │       ├──► WRITE PHASE                                           │
    │       │       StatsProvider.snapshot()                           │
    │       │       build_stats_response(snapshot)                     │
    │       │       send() once                                        │
    │       │       WriteError / stats failure? log it                 │
    │       │                                                          │
    │       └──► close (always, via __exit__)                          │
    │                                                                  │
    └─────────────────────────────────────────────────────────────────┘

The two phases fail independently. A broken read never stops the write
from being attempted, and nothing raised here ever leaves the thread.

=============================================================================
"""

import logging
from typing import Optional

from .connection import Connection
from ..errors import ReadError, WriteError
from ..handlers.stats_page import build_stats_response
from ..stats import StatsProvider


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Serves the stats page on one connection, then closes it.

    One instance is shared by every handler thread. It holds only the
    StatsProvider, which is itself stateless.

    Usage:
        handler = ConnectionHandler(StatsProvider())
        threading.Thread(target=handler.handle, args=(conn,), daemon=True).start()
    """

    def __init__(self, stats_provider: Optional[StatsProvider] = None):
        self.stats_provider = stats_provider or StatsProvider()

    def handle(self, conn: Connection) -> None:
        """Run the read phase then the write phase. Always closes conn."""
        with conn:
            self.read_phase(conn)
            self.write_phase(conn)

    def read_phase(self, conn: Connection) -> Optional[str]:
        """
        Read the request once and log it.

        Returns:
            The decoded request text, or None if the read failed.
        """
        try:
            data = conn.read_once()
        except ReadError as e:
            logger.warning(f"[{conn.id}] {e}")
            return None

        # Invalid UTF-8 becomes U+FFFD instead of raising
        request_text = data.decode("utf-8", errors="replace")
        logger.info(f"[{conn.id}] Request from {conn.client_ip} ({len(data)} bytes):\n{request_text}")
        return request_text

    def write_phase(self, conn: Connection) -> bool:
        """
        Build the stats response and send it once.

        Returns:
            True if the whole response was sent.
        """
        try:
            snapshot = self.stats_provider.snapshot()
            response_bytes = build_stats_response(snapshot).to_bytes()
            conn.send_once(response_bytes)
        except WriteError as e:
            logger.error(f"[{conn.id}] {e}")
            return False
        except Exception as e:
            # Stats source failed: same outcome as a failed write
            logger.exception(f"[{conn.id}] Failed building response: {e}")
            return False

        logger.info(f"[{conn.id}] Response sent")
        return True
