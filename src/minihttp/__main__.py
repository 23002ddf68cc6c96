"""
=============================================================================
MINIHTTP CLI ENTRY POINT
=============================================================================

    # Defaults (127.0.0.1:8080, ./static served under /static/)
    python -m minihttp

    # Custom address
    python -m minihttp --host 0.0.0.0 --port 3000

    # Bigger request buffer, different static directory
    python -m minihttp --buffer-size 4096 --static ./public

Settings not given on the command line come from MINIHTTP_* environment
variables (see ServerConfig.from_env), then from the defaults.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import HTTPServer
from .config import ServerConfig
from .handlers import register_routes


def build_parser() -> argparse.ArgumentParser:
    """Command-line arguments. Defaults are None so the environment can fill gaps."""
    parser = argparse.ArgumentParser(
        prog="minihttp",
        description="Minimal HTTP/1.1 server built on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttp                        # 127.0.0.1:8080
  python -m minihttp --port 3000            # Custom port
  python -m minihttp --host 0.0.0.0         # Listen on all interfaces
  python -m minihttp --static ./public      # Serve ./public under /static/
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--buffer-size", "-b",
        type=int,
        default=None,
        help="Bytes read per request; longer requests are truncated (default: 1024)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT / LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--static", "-s",
        default=None,
        help="Directory served under /static/ (default: ./static)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttp {__version__}"
    )

    return parser


def load_config(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then command-line overrides."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.buffer_size is not None:
        config.buffer_size = args.buffer_size
    if args.static is not None:
        config.static_dir = args.static
    if args.log_level is not None:
        config.log_level = args.log_level

    return config


def main(argv=None) -> int:
    """
    Parse arguments, register the example routes and serve.

    Returns:
        Process exit status: 0 after a clean shutdown, 1 if the server
        could not start (bad configuration, address already in use).
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    register_routes(server.router, static_dir=config.static_dir or "static")

    try:
        server.run()
    except OSError as e:
        # Bind failure: nothing can be served
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
