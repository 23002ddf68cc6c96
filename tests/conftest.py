"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttp import HTTPServer, ServerConfig
from minihttp.http import HTTPRequest, HTTPResponse, ok_html, ok_json


INDEX_HTML = "<html><body><h1>Test Home</h1></body></html>"


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with a two-line body."""
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        b"\r\n"
        b'{"name": "John",\r\n'
        b' "email": "john@example.com"}'
    )


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        log_level="WARNING",
    )


def send_raw(address: tuple[str, int], data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes to the server and read the response until it closes."""
    with socket.create_connection(address, timeout=timeout) as s:
        s.sendall(data)
        chunks = []
        while True:
            chunk = s.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class, despite the name

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def address(self) -> tuple[str, int]:
        return self.server.server_address

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def request(self, data: bytes) -> bytes:
        return send_raw(self.address, data)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(config: ServerConfig) -> Generator[TestServer, None, None]:
    """Create a running test server with a few routes."""
    server = HTTPServer(config)

    @server.get("/")
    def index(request: HTTPRequest) -> HTTPResponse:
        return ok_html(INDEX_HTML)

    @server.get("/users")
    def users(request: HTTPRequest) -> HTTPResponse:
        return ok_json('[{"id":1,"name":"Alice"}]')

    @server.post("/echo")
    def echo(request: HTTPRequest) -> HTTPResponse:
        headers = {"X-Echo-Path": request.path}
        headers.update({f"X-Req-{name}": value for name, value in request.headers.items()})
        return HTTPResponse(200, "OK", headers, request.body.encode("utf-8"))

    @server.get("/boom")
    def boom(request: HTTPRequest) -> HTTPResponse:
        raise RuntimeError("handler failure")

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
