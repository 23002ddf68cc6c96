"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables live in one dataclass, validated once at startup.

=============================================================================
SOURCES
=============================================================================

    1. Defaults         ServerConfig()                 127.0.0.1:8080
    2. Environment      ServerConfig.from_env()        MINIHTTP_* variables
    3. Command line     python -m minihttp --port 3000 (see __main__.py)

Validation happens in ServerConfig.validate(), which HTTPServer calls in
its constructor: a bad port or buffer size fails before a socket is
ever created.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    Development:
        ServerConfig()                          # 127.0.0.1:8080

    Inside a container:
        ServerConfig(host="0.0.0.0", port=80)
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    Interface to bind to.
    - "127.0.0.1" - localhost only
    - "0.0.0.0"   - all interfaces
    """

    port: int = 8080
    """Port to listen on. 0 asks the OS for a free ephemeral port."""

    backlog: int = 128
    """Maximum number of connections queued by the kernel before accept()."""

    buffer_size: int = 1024
    """
    Capacity of the single read done per connection, in bytes.
    The request is whatever one recv() of this size returns; bytes past
    it are never read (truncation, not rejection).
    """

    timeout: Optional[float] = None
    """
    Socket timeout for each client connection, in seconds.
    None (the default) blocks without limit: a slow client only holds up
    its own thread.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    static_dir: Optional[str] = None
    """Directory served under /static/ by the example routes (CLI only)."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level name: DEBUG, INFO, WARNING, ERROR or CRITICAL."""

    @property
    def address(self) -> tuple[str, int]:
        """The (host, port) pair to bind."""
        return (self.host, self.port)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

        MINIHTTP_HOST         bind host (default 127.0.0.1)
        MINIHTTP_PORT         bind port (default 8080)
        MINIHTTP_BUFFER_SIZE  request read size (default 1024)
        MINIHTTP_STATIC_DIR   static files directory (default unset)
        MINIHTTP_LOG_LEVEL    logging level (default INFO)

        Raises:
            ValueError: If a numeric variable is not a number.
        """
        return cls(
            host=os.getenv("MINIHTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("MINIHTTP_PORT", "8080")),
            buffer_size=int(os.getenv("MINIHTTP_BUFFER_SIZE", "1024")),
            static_dir=os.getenv("MINIHTTP_STATIC_DIR"),
            log_level=os.getenv("MINIHTTP_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Check values, raising ValueError on the first bad one.

        Called at startup so that misconfiguration fails fast.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0 or None")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log_level: {self.log_level}")
