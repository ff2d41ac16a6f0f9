"""
End-to-end tests against a live server on an ephemeral localhost port.
"""

import logging
import socket
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from statserver import StatsServer, ServerConfig
from statserver.__main__ import main
from statserver.errors import BindError
from statserver.stats import StatsProvider

from conftest import FakeMemory, TestServer, fetch, recv_all, split_response


class TestRequests:
    """Single-connection scenarios."""

    def test_get_returns_stats_page(self, running_server: TestServer):
        raw = fetch(running_server.port, b"GET / HTTP/1.1\r\n\r\n")

        status_line, headers, body = split_response(raw)

        assert status_line == "HTTP/1.1 200 OK"
        assert headers["Content-Type"] == "text/html; charset=UTF-8"
        assert int(headers["Content-Length"]) == len(body)
        assert b"Unikernel World" in body

    def test_zero_bytes_then_half_close(self, running_server: TestServer):
        raw = fetch(running_server.port, b"")

        status_line, headers, body = split_response(raw)

        assert status_line == "HTTP/1.1 200 OK"
        assert int(headers["Content-Length"]) == len(body)

    @pytest.mark.parametrize("payload", [
        b"POST /anything HTTP/1.0\r\nContent-Length: 100\r\n\r\nabc",
        b"GET / HT",
        b"\xff\xfe\x00\x80 not utf-8",
        b"x" * 4096,
    ])
    def test_any_input_gets_the_same_response(self, running_server: TestServer, payload: bytes):
        status_line, headers, body = split_response(fetch(running_server.port, payload))

        assert status_line == "HTTP/1.1 200 OK"
        assert int(headers["Content-Length"]) == len(body)
        assert b"16777216 kB" in body

    def test_response_without_client_half_close(self, running_server: TestServer):
        """A client that keeps its write side open still gets a full response."""
        with socket.create_connection(("127.0.0.1", running_server.port), timeout=5.0) as sock:
            sock.sendall(b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")
            raw = recv_all(sock)

        _, headers, body = split_response(raw)
        assert int(headers["Content-Length"]) == len(body)


class TestConcurrency:
    """Multi-connection scenarios."""

    @pytest.mark.parametrize("n", [1, 8, 50])
    def test_all_concurrent_connections_get_responses(self, running_server: TestServer, n: int):
        with ThreadPoolExecutor(max_workers=n) as pool:
            responses = list(pool.map(lambda _: fetch(running_server.port), range(n)))

        assert len(responses) == n
        for raw in responses:
            status_line, headers, body = split_response(raw)
            assert status_line == "HTTP/1.1 200 OK"
            assert int(headers["Content-Length"]) == len(body)

    def test_stalled_client_does_not_block_others(self, running_server: TestServer):
        stalled = socket.create_connection(("127.0.0.1", running_server.port), timeout=5.0)
        try:
            # stalled never sends: its handler sits in recv() indefinitely
            for _ in range(3):
                status_line, _, _ = split_response(fetch(running_server.port))
                assert status_line == "HTTP/1.1 200 OK"
        finally:
            stalled.close()

    def test_repeated_requests_are_sampled_independently(self, config: ServerConfig):
        readings = iter(FakeMemory(total=8 * 1024 * 1024, used=used * 1024) for used in (100, 200))
        server = TestServer(StatsServer(config, stats_provider=StatsProvider(lambda: next(readings))))
        server.start()
        try:
            first = split_response(fetch(server.port))
            second = split_response(fetch(server.port))
        finally:
            server.stop()

        for status_line, headers, body in (first, second):
            assert status_line == "HTTP/1.1 200 OK"
            assert int(headers["Content-Length"]) == len(body)

        assert b"100 kB" in first[2]
        assert b"200 kB" in second[2]


class TestStartup:
    """Bind failures and the CLI entry point."""

    @pytest.fixture
    def occupied_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            s.listen(1)
            yield s.getsockname()[1]

    def test_run_raises_bind_error(self, occupied_port: int, fake_stats: StatsProvider):
        server = StatsServer(
            ServerConfig(host="127.0.0.1", port=occupied_port, log_level="WARNING"),
            stats_provider=fake_stats,
        )

        with pytest.raises(BindError):
            server.run()

        assert not server.is_running

    def test_main_exits_on_bind_failure(self, occupied_port: int, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--host", "127.0.0.1", "--port", str(occupied_port), "--log-level", "warning"])

        assert exc_info.value.code == 1
        captured = capsys.readouterr()
        assert f"Failed to bind to 127.0.0.1:{occupied_port}" in captured.err
        assert "Listening for connections" not in captured.out

    def test_main_rejects_invalid_port(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--port", "70000"])

        assert exc_info.value.code == 1
        assert "Invalid port" in capsys.readouterr().err

    def test_banner(self, config: ServerConfig, fake_stats: StatsProvider, capsys):
        server = TestServer(StatsServer(config, stats_provider=fake_stats))
        server.start()
        port = server.port
        server.stop()

        out = capsys.readouterr().out
        assert "Welcome to the ADGSTUDIOS - Unikernel World!" in out
        assert f"Listening for connections on port {port}" in out


class TestDispatch:
    """Handler-thread start failures."""

    def test_thread_start_failure_closes_connection_and_keeps_accepting(
        self, running_server: TestServer, monkeypatch, caplog
    ):
        real_start = threading.Thread.start
        failures = {"left": 1}

        def flaky_start(thread):
            if thread.name.startswith("conn-") and failures["left"]:
                failures["left"] -= 1
                raise RuntimeError("can't start new thread")
            return real_start(thread)

        monkeypatch.setattr(threading.Thread, "start", flaky_start)

        with caplog.at_level(logging.ERROR, logger="statserver"):
            try:
                refused = fetch(running_server.port, b"")
            except ConnectionError:
                refused = b""
            status_line, _, _ = split_response(fetch(running_server.port))

        assert refused == b""
        assert "Unable to start handler thread" in caplog.text
        assert status_line == "HTTP/1.1 200 OK"
