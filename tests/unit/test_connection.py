"""
Unit tests for Connection and the per-connection request cycle.

Uses socket.socketpair() so no port is bound.
"""

import logging
import socket
import threading
import time
from typing import Generator, Tuple

import pytest

from minihttp.core.connection import (
    Connection,
    ConnectionState,
    DRAIN_LIMIT_FACTOR,
    DRAIN_TIMEOUT,
)
from minihttp.http.request import RequestParser
from minihttp.http.response import ok_html
from minihttp.http.router import Router
from minihttp.server import handle_connection


CLIENT_ADDRESS = ("127.0.0.1", 50000)


@pytest.fixture
def pair() -> Generator[Tuple[socket.socket, socket.socket], None, None]:
    """A connected (server side, client side) socket pair."""
    server_side, client_side = socket.socketpair()
    client_side.settimeout(5.0)
    yield server_side, client_side
    server_side.close()
    client_side.close()


@pytest.fixture
def router() -> Router:
    router = Router()
    router.add_route("GET", "/", lambda req: ok_html("<p>home</p>"))

    def broken(req):
        raise ValueError("handler bug")

    router.add_route("GET", "/broken", broken)
    return router.freeze()


def read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


class TestConnection:
    """Tests for the Connection wrapper."""

    def test_initial_state(self, pair):
        """Test a freshly accepted connection."""
        server_side, _ = pair
        conn = Connection(server_side, CLIENT_ADDRESS)

        assert conn.state == ConnectionState.NEW
        assert conn.client_ip == "127.0.0.1"
        assert len(conn.id) == 8
        assert conn.age >= 0

    def test_single_bounded_read(self, pair):
        """Test that one read returns at most buffer_size bytes."""
        server_side, client_side = pair
        client_side.sendall(b"X" * 100)
        conn = Connection(server_side, CLIENT_ADDRESS, buffer_size=16)

        data = conn.read_request()

        assert data == b"X" * 16
        assert conn.state == ConnectionState.READING

    def test_read_timeout_raises(self, pair):
        """Test that a silent client makes the read fail with OSError."""
        server_side, _ = pair
        conn = Connection(server_side, CLIENT_ADDRESS, timeout=0.1)

        with pytest.raises(OSError):
            conn.read_request()

    def test_close_is_idempotent(self, pair):
        """Test that close() can be called twice."""
        server_side, client_side = pair
        client_side.close()
        conn = Connection(server_side, CLIENT_ADDRESS)

        conn.close()
        conn.close()

        assert conn.state == ConnectionState.CLOSED

    def test_context_manager_closes(self, pair):
        """Test that leaving the with-block closes the connection."""
        server_side, client_side = pair
        client_side.close()

        with Connection(server_side, CLIENT_ADDRESS) as conn:
            assert conn.state == ConnectionState.NEW

        assert conn.state == ConnectionState.CLOSED

    def test_drain_stops_at_byte_limit(self, pair):
        """Test that leftover data is only read up to the byte limit."""
        server_side, client_side = pair
        client_side.sendall(b"y" * 2000)
        conn = Connection(server_side, CLIENT_ADDRESS, buffer_size=64)

        assert conn._drain() == DRAIN_LIMIT_FACTOR * 64

    def test_close_does_not_wait_on_endless_sender(self, pair):
        """Test that a client that never stops sending cannot hold close() open."""
        server_side, client_side = pair
        conn = Connection(server_side, CLIENT_ADDRESS, buffer_size=1 << 20)
        stop = threading.Event()

        def flood():
            try:
                while not stop.is_set():
                    client_side.sendall(b"z" * 512)
                    time.sleep(0.001)
            except OSError:
                pass

        sender = threading.Thread(target=flood, daemon=True)
        sender.start()
        try:
            started = time.monotonic()
            conn.close()
            elapsed = time.monotonic() - started
        finally:
            stop.set()
            sender.join(timeout=5.0)

        assert conn.state == ConnectionState.CLOSED
        assert elapsed < DRAIN_TIMEOUT + 1.0


class TestHandleConnection:
    """Tests for handle_connection()."""

    def serve(self, pair, router, raw: bytes, buffer_size: int = 1024) -> bytes:
        server_side, client_side = pair
        client_side.sendall(raw)
        conn = Connection(server_side, CLIENT_ADDRESS, buffer_size=buffer_size)

        handle_connection(conn, router, RequestParser(buffer_size))

        assert conn.state == ConnectionState.CLOSED
        return read_all(client_side)

    def test_routed_request(self, pair, router):
        """Test a request that matches a route."""
        data = self.serve(pair, router, b"GET / HTTP/1.1\r\nHost: x\r\n\r\n")

        assert data == (
            b"HTTP/1.1 200 OK\r\n"
            b"Content-Type: text/html\r\n"
            b"\r\n"
            b"<p>home</p>"
        )

    def test_unrouted_request(self, pair, router):
        """Test that an unknown route gets the 404 response."""
        data = self.serve(pair, router, b"DELETE / HTTP/1.1\r\n\r\n")

        assert data == b"HTTP/1.1 404 Not Found\r\n\r\n404 - Route Not Found"

    def test_malformed_request(self, pair, router, caplog):
        """Test that a bad request line gets a 400 and is logged."""
        with caplog.at_level(logging.WARNING, logger="minihttp.server"):
            data = self.serve(pair, router, b"BADLINE\r\n\r\n")

        assert data == b"HTTP/1.1 400 Bad Request\r\n\r\n400 - Bad Request"
        assert "Bad request" in caplog.text

    def test_empty_read_is_bad_request(self, pair, router):
        """Test that a client closing without data still gets a 400."""
        server_side, client_side = pair
        client_side.shutdown(socket.SHUT_WR)
        conn = Connection(server_side, CLIENT_ADDRESS)

        handle_connection(conn, router, RequestParser())

        assert read_all(client_side) == b"HTTP/1.1 400 Bad Request\r\n\r\n400 - Bad Request"

    def test_handler_exception_becomes_500(self, pair, router, caplog):
        """Test that a raising handler yields a 500 and a logged traceback."""
        with caplog.at_level(logging.ERROR, logger="minihttp.server"):
            data = self.serve(pair, router, b"GET /broken HTTP/1.1\r\n\r\n")

        assert data == (
            b"HTTP/1.1 500 Internal Server Error\r\n\r\n500 - Internal Server Error"
        )
        assert "handler bug" in caplog.text

    def test_truncated_request_still_answered(self, pair, router):
        """Test that a request longer than the buffer is cut, not rejected."""
        raw = b"GET / HTTP/1.1\r\nX-Pad: " + b"p" * 500 + b"\r\n\r\n"

        data = self.serve(pair, router, raw, buffer_size=64)

        assert data.startswith(b"HTTP/1.1 200 OK\r\n")

    def test_access_log(self, pair, router, caplog):
        """Test that each answered request produces one access log line."""
        with caplog.at_level(logging.INFO, logger="minihttp.access"):
            self.serve(pair, router, b"GET / HTTP/1.1\r\n\r\n")

        records = [r for r in caplog.records if r.name == "minihttp.access"]
        assert len(records) == 1
        assert records[0].getMessage() == '127.0.0.1 "GET /" 200'

    def test_read_failure_is_logged(self, pair, router, caplog):
        """Test that a read error closes the connection without a response."""
        server_side, _ = pair
        conn = Connection(server_side, CLIENT_ADDRESS, timeout=0.1)

        with caplog.at_level(logging.WARNING, logger="minihttp.server"):
            handle_connection(conn, router, RequestParser())

        assert "Read failed" in caplog.text
        assert conn.state == ConnectionState.CLOSED

    def test_write_failure_is_logged(self, pair, router, caplog):
        """Test that a client gone before the reply is logged, not raised."""
        server_side, client_side = pair
        client_side.sendall(b"GET / HTTP/1.1\r\n\r\n")
        client_side.close()
        conn = Connection(server_side, CLIENT_ADDRESS)

        with caplog.at_level(logging.WARNING, logger="minihttp.server"):
            handle_connection(conn, router, RequestParser())

        assert "Write failed" in caplog.text
        assert conn.state == ConnectionState.CLOSED
