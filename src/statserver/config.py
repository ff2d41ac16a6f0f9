"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the stats server.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m statserver --port 3000                          │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── STATSERVER_PORT=3000 python -m statserver                 │
    │                                                                      │
    │   3. Defaults (this file)                                           │
    │      └── 0.0.0.0:8080                                               │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There are no configuration files. The server has one job and
a handful of knobs.

=============================================================================
"""

import os
from dataclasses import dataclass


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ServerConfig:
    """
    Configuration for the stats server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, accept_timeout

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """
    The IP address to bind to.
    - "0.0.0.0" - All network interfaces (default)
    - "127.0.0.1" - Localhost only
    """

    port: int = 8080
    """
    The port number to listen on.
    - 8080 - Default
    - 0 - Let the OS pick a free port (handy for tests)
    """

    backlog: int = 128
    """
    Maximum number of queued connections waiting for accept().
    """

    buffer_size: int = 4096
    """
    Size of the single read done for each request, in bytes.
    Anything the client sends beyond this is never looked at.
    """

    accept_timeout: float = 1.0
    """
    How often the accept loop wakes up to check for shutdown, in seconds.
    Applies to the listening socket only. Client connections never time out.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    INFO shows every request and every response sent.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        STATSERVER_HOST       Server host (default: 0.0.0.0)
        STATSERVER_PORT       Server port (default: 8080)
        STATSERVER_LOG_LEVEL  Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("STATSERVER_HOST", "0.0.0.0"),
            port=int(os.getenv("STATSERVER_PORT", "8080")),
            log_level=os.getenv("STATSERVER_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called at startup so a bad value fails before the socket exists.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")

        if self.accept_timeout <= 0:
            raise ValueError("accept_timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. Must be one of {', '.join(LOG_LEVELS)}."
            )

    def display_host(self) -> str:
        """Host to show in the startup banner."""
        return "localhost" if self.host in ("0.0.0.0", "") else self.host
