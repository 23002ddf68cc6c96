"""
=============================================================================
LISTENER AND ACCEPT LOOP
=============================================================================

Owns the listening socket and the accept loop. It knows nothing about
HTTP: every accepted client is wrapped in a Connection and handed to a
callback, and the callback decides what happens next.

=============================================================================
SOCKET LIFECYCLE (server side)
=============================================================================

    1. socket()   create the TCP socket
    2. bind()     claim host:port          ← failure here is fatal
    3. listen()   start queueing clients (backlog)
    4. accept()   loop: one new socket per client
    5. close()    on shutdown

    listening socket (1s timeout)
        │
        │ accept() ─► (client_socket, address)
        ▼
    Connection(client_socket, address, buffer_size, timeout)
        │
        ▼
    connection_handler(conn)     must return quickly; HTTPServer
                                 starts a thread per connection

=============================================================================
ERROR POLICY
=============================================================================

    bind() fails             log + re-raise, the process cannot serve
    accept() fails once      log + keep accepting
    accept() times out       normal: re-check the running flag (1s poll)

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

# How often accept() wakes up to notice shutdown()
ACCEPT_POLL_INTERVAL = 1.0


class SocketServer:
    """
    Listening socket plus accept loop.

        __init__()        store config
        start(callback)   create, bind, listen, then accept loop (BLOCKS)
        shutdown()        ask the loop to stop; safe from any thread

    Usage:
        def handle(conn: Connection):
            ...

        server = SocketServer(config)
        server.start(handle)
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Host, port, backlog and per-connection settings.

        The socket itself is created in start().
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False

        # Set once the socket is listening, cleared again on cleanup
        self._ready_event = threading.Event()

        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        """True while the accept loop is active."""
        return self._running

    @property
    def address(self) -> tuple[str, int]:
        """
        The bound (host, port).

        After binding this is the real address, which matters when the
        configured port is 0 and the OS picked one.
        """
        if self._socket is not None:
            host, port = self._socket.getsockname()[:2]
            return (host, port)
        return self.config.address

    def _create_socket(self) -> socket.socket:
        """Create the listening socket and set its options."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Rebind right after a restart instead of waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Small responses should leave immediately (no Nagle batching)
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        # accept() gives up every second so the loop can check _running
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        return sock

    def _setup_signals(self):
        """
        Turn SIGTERM and SIGINT into a graceful shutdown.

        Python only allows installing signal handlers from the main
        thread; when the server runs elsewhere (tests, embedding) the
        caller is expected to use shutdown() instead.
        """
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread, signal handlers not installed")
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Put back the handlers that were installed before start()."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def start(self, connection_handler: Callable[[Connection], None]):
        """
        Bind, listen and run the accept loop. BLOCKS until shutdown().

        Args:
            connection_handler: Called on the accept thread with each new
                                Connection. It must return quickly (hand
                                the work to another thread).

        Raises:
            OSError: If the address cannot be bound. Nothing is served.
        """
        self._socket = self._create_socket()

        try:
            self._socket.bind(self.config.address)
            self._socket.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            self._socket.close()
            self._socket = None
            raise

        self._running = True
        self._setup_signals()

        host, port = self.address
        logger.info(f"Server listening on {host}:{port}")
        self._ready_event.set()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        """
        Accept clients until shutdown() is called.

            while running:
                accept()                 ← up to 1s, then loop again
                Connection(...)          ← wrap the client socket
                connection_handler(conn) ← hand it off
        """
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break  # Socket closed by shutdown
                # One bad accept (e.g. client reset while queued) must not
                # take the whole server down
                logger.error(f"Accept error: {e}")
                continue

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
            )

            try:
                connection_handler(conn)
            except Exception:
                logger.exception(f"[{conn.id}] Failed to dispatch connection")
                conn.close()

    def shutdown(self):
        """
        Stop the accept loop.

        Idempotent and thread-safe: it only flips a flag; the loop
        notices within ACCEPT_POLL_INTERVAL.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False

    def _cleanup(self):
        """Restore signal handlers and close the listening socket."""
        self._restore_signals()

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass
            self._socket = None

        self._ready_event.clear()
        logger.info("Socket server stopped")

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the socket is listening.

        Returns:
            True if the server is ready, False on timeout.
        """
        return self._ready_event.wait(timeout)
