"""
=============================================================================
STATSERVER CLI ENTRY POINT
=============================================================================

    # Run with defaults (0.0.0.0:8080)
    python -m statserver

    # Custom port
    python -m statserver --port 3000

    # Localhost only, verbose
    python -m statserver --host 127.0.0.1 --log-level DEBUG

Environment variables (STATSERVER_HOST, STATSERVER_PORT,
STATSERVER_LOG_LEVEL) supply the defaults; flags override them.

Exit status is 1 if the server can't start (port taken, bad config).

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import LOG_LEVELS, ServerConfig
from .errors import StatServerError
from .server import StatsServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Command-line parser, with defaults taken from the environment."""
    parser = argparse.ArgumentParser(
        prog="statserver",
        description="Concurrent HTTP server that reports host memory stats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m statserver                       # 0.0.0.0:8080
  python -m statserver --port 3000           # Custom port
  python -m statserver --host 127.0.0.1      # Localhost only
        """
    )

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"statserver {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Parse arguments, build the server, run it until stopped."""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        sys.exit(1)

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )

    try:
        server = StatsServer(config)
        server.run()
    except (StatServerError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
