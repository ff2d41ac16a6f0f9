"""
=============================================================================
STATSERVER - Concurrent HTTP Server Reporting Host Memory Stats
=============================================================================

A small raw-socket HTTP/1.1 server. Every connection gets its own thread,
every request gets the same answer: an HTML page with the host's total
and used memory.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    STATSERVER ARCHITECTURE                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer        bind 0.0.0.0:8080, accept loop                │
    │        │                                                             │
    │        ▼  one daemon thread per connection                           │
    │   ConnectionHandler   read once → log, then write once              │
    │        │                                                             │
    │        ├──► StatsProvider        psutil.virtual_memory() in kB       │
    │        └──► build_stats_response HTML page + HTTP/1.1 200 OK         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    statserver/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m statserver)
    ├── server.py            # StatsServer: wiring + per-connection threads
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # BindError, AcceptError, ReadError, WriteError
    ├── stats.py             # StatsSnapshot, StatsProvider (psutil)
    ├── core/
    │   ├── socket_server.py # Listening socket + accept loop
    │   ├── connection.py    # One client socket: read_once/send_once/close
    │   └── handler.py       # Read phase + write phase
    ├── http/
    │   └── response.py      # HTTPResponse, ResponseBuilder
    └── handlers/
        └── stats_page.py    # HTML page for a StatsSnapshot

=============================================================================
QUICK START
=============================================================================

    from statserver import StatsServer, ServerConfig

    server = StatsServer(ServerConfig(port=8080))
    server.run()

    $ curl http://localhost:8080/

=============================================================================
"""

__version__ = "1.0.0"

from .server import StatsServer
from .config import ServerConfig
from .stats import StatsProvider, StatsSnapshot

__all__ = [
    "StatsServer",
    "ServerConfig",
    "StatsProvider",
    "StatsSnapshot",
    "__version__",
]
