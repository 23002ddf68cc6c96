"""
=============================================================================
MINIHTTP - Minimal HTTP/1.1 Server on Raw Sockets
=============================================================================

One request per connection, exact-match routing, one thread per client.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ARCHITECTURE                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer ── accept ──► Connection ──► thread                  │
    │                                               │                      │
    │                       RequestParser ◄── bytes ┘                      │
    │                             │                                        │
    │                   HTTPRequest / 400                                  │
    │                             │                                        │
    │                       Router (frozen) ──► handler ──► HTTPResponse  │
    │                                                          │           │
    │                                     to_bytes() + sendall ┘           │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

What it does NOT do: keep-alive, chunked encoding, pipelining, path
parameters, streaming bodies, TLS, Content-Length handling.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    minihttp/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m minihttp)
    ├── server.py            # HTTPServer + handle_connection
    ├── config.py            # ServerConfig dataclass
    ├── core/
    │   ├── socket_server.py # Listening socket, accept loop
    │   └── connection.py    # One client socket
    ├── http/
    │   ├── request.py       # HTTPRequest, RequestParser
    │   ├── response.py      # HTTPResponse, serializer, constructors
    │   ├── router.py        # Exact-match Router
    │   └── status_codes.py  # HTTPStatus
    └── handlers/
        ├── static.py        # Static file serving
        └── pages.py         # Example routes

=============================================================================
QUICK START
=============================================================================

    from minihttp import HTTPServer, ServerConfig
    from minihttp.http import ok_html, ok_json

    server = HTTPServer(ServerConfig(port=8080))

    @server.get("/")
    def index(request):
        return ok_html("<h1>Hello</h1>")

    server.register("GET", "/users", lambda request: ok_json("[]"))

    server.run()

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, handle_connection
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "handle_connection", "__version__"]
