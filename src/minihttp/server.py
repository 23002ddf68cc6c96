"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         REQUEST FLOW                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer.accept()                    (accept thread)          │
    │        │                                                             │
    │        ▼                                                             │
    │   threading.Thread(handle_connection)      (one per connection)     │
    │        │                                                             │
    │        ├── conn.read_request()      one recv(buffer_size)           │
    │        ├── parser.parse()                                           │
    │        │      ├── ok     → router.handle_request() → response       │
    │        │      └── error  → bad_request()                            │
    │        ├── write_response(conn, response)                           │
    │        └── conn.close()                                             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The router is frozen before the first accept(), so all connection
threads share it read-only.

=============================================================================
"""

import logging
import threading
from typing import Optional

from .config import ServerConfig
from .core.socket_server import SocketServer
from .core.connection import Connection, ConnectionState
from .http.request import RequestParser, HTTPParseError
from .http.response import HTTPResponse, write_response, bad_request, internal_error
from .http.router import Router, Handler


logger = logging.getLogger(__name__)
access_logger = logging.getLogger("minihttp.access")


def handle_connection(conn: Connection, router: Router, parser: RequestParser) -> None:
    """
    Serve exactly one request on conn, then close it.

    Two outcomes:

        read → parse ok     → router → write → close
        read → parse failed → 400    → write → close

    Nothing escapes this function: I/O errors and handler exceptions are
    logged and only end this connection.

    Args:
        conn: The accepted connection.
        router: Frozen router shared by all connections.
        parser: Shared, stateless request parser.
    """
    with conn:
        try:
            data = conn.read_request()
        except OSError as e:
            logger.warning(f"[{conn.id}] Read failed: {e}")
            return

        conn.state = ConnectionState.PROCESSING
        request = None

        try:
            request = parser.parse(data, conn.address)
        except HTTPParseError as e:
            logger.warning(f"[{conn.id}] Bad request from {conn.client_ip}: {e}")
            response = bad_request()
        else:
            response = _dispatch(conn, router, request)

        try:
            write_response(conn, response)
        except OSError as e:
            logger.warning(f"[{conn.id}] Write failed: {e}")
            return

        if request is not None:
            access_logger.info(
                f'{conn.client_ip} "{request.method} {request.path}" {response.status_code}'
            )
        else:
            access_logger.info(f'{conn.client_ip} "-" {response.status_code}')


def _dispatch(conn: Connection, router: Router, request) -> HTTPResponse:
    """Run the router, turning a handler exception into a 500."""
    try:
        return router.handle_request(request)
    except Exception:
        # Handlers must not raise; if one does, the client still gets a reply
        logger.exception(f"[{conn.id}] Handler error for {request.method} {request.path}")
        return internal_error()


class HTTPServer:
    """
    Minimal HTTP/1.1 server.

    Usage:
        server = HTTPServer(ServerConfig(port=8080))

        @server.get("/")
        def index(request):
            return ok_html("<h1>Hello</h1>")

        server.run()   # blocks until Ctrl+C / SIGTERM / shutdown()

    Routes must be registered before run(); the router is frozen when the
    server starts listening.
    """

    def __init__(self, config: Optional[ServerConfig] = None, router: Optional[Router] = None):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().
            router: Pre-built router. A new empty one is created if omitted.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser(buffer_size=self.config.buffer_size)
        self._router = router or Router()

    @property
    def router(self) -> Router:
        """The router, for registration code that wants it directly."""
        return self._router

    @property
    def server_address(self) -> tuple[str, int]:
        """Bound (host, port); the real port once listening with port=0."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(self, method: str, path: str, handler: Handler) -> None:
        """Register handler for the exact (method, path) pair."""
        self._router.add_route(method, path, handler)

    register = add_route

    def route(self, method: str, path: str):
        """Decorator form of add_route()."""
        return self._router.route(method, path)

    def get(self, path: str):
        """Register a GET route."""
        return self._router.get(path)

    def post(self, path: str):
        """Register a POST route."""
        return self._router.post(path)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, setup_logging: bool = True):
        """
        Start serving. BLOCKS until shutdown.

        Args:
            setup_logging: Configure the root logger from config.log_level.
                           Pass False when the application configures
                           logging itself.

        Raises:
            OSError: If the listening address cannot be bound.
        """
        if setup_logging:
            self._setup_logging()

        self._router.freeze()
        for route in self._router.routes():
            logger.info(f"Route: {route}")

        try:
            self._socket_server.start(self._spawn_worker)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
            self._socket_server.shutdown()
        logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. In-flight connections finish on their own."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the server is listening. False on timeout."""
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("minihttp").setLevel(level)

    def _spawn_worker(self, conn: Connection):
        """
        Start a dedicated thread for conn.

        Daemon threads: a connection stuck on a slow client never keeps
        the process alive after the accept loop has stopped.
        """
        worker = threading.Thread(
            target=handle_connection,
            args=(conn, self._router, self._parser),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        worker.start()
