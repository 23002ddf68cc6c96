"""
=============================================================================
CORE NETWORKING COMPONENTS
=============================================================================

    socket_server.py   listening socket + accept loop
    connection.py      one client socket, one read, one write, close

THREAD-PER-CONNECTION MODEL
───────────────────────────
The accept loop runs on one thread. Each accepted connection gets a
fresh thread that handles its single exchange and then exits. There is
no pool and no cap on concurrent connections; a slow handler only
stalls its own thread.

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState

__all__ = [
    "SocketServer",     # Accepts connections
    "Connection",       # Wraps a client socket
    "ConnectionState",  # Connection lifecycle states
]
