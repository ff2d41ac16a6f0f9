"""
pytest configuration and fixtures.
"""

import socket
import threading
from collections import namedtuple
from typing import Dict, Generator, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from statserver import StatsServer, ServerConfig
from statserver.stats import StatsProvider


# Same shape as psutil.virtual_memory(), only the fields we read
FakeMemory = namedtuple("FakeMemory", ["total", "used"])


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return b"GET / HTTP/1.1\r\n\r\n"


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        accept_timeout=0.1,
        log_level="WARNING",
    )


@pytest.fixture
def fake_stats() -> StatsProvider:
    """StatsProvider reporting 16 GiB total, 4 GiB used."""
    return StatsProvider(memory_reader=lambda: FakeMemory(total=16 * 1024 ** 3, used=4 * 1024 ** 3))


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class

    def __init__(self, server: StatsServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_listening(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(config: ServerConfig, fake_stats: StatsProvider) -> Generator[TestServer, None, None]:
    """A live server on an ephemeral localhost port."""
    test_srv = TestServer(StatsServer(config, stats_provider=fake_stats))
    test_srv.start()

    yield test_srv

    test_srv.stop()


# =============================================================================
# RAW CLIENT HELPERS
# =============================================================================

def recv_all(sock: socket.socket) -> bytes:
    """Read until the server closes its side."""
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def fetch(port: int, payload: bytes = b"GET / HTTP/1.1\r\n\r\n", timeout: float = 5.0) -> bytes:
    """Connect, send payload, half-close, return the full response."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        if payload:
            sock.sendall(payload)
        sock.shutdown(socket.SHUT_WR)
        return recv_all(sock)


def split_response(raw: bytes) -> Tuple[str, Dict[str, str], bytes]:
    """Split raw response bytes into (status line, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("ascii").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return lines[0], headers, body
