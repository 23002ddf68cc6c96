"""
=============================================================================
HANDLERS
=============================================================================

A handler is any callable taking an HTTPRequest and returning an
HTTPResponse:

    def hello(request):
        return ok_html("<h1>Hi</h1>")

Handlers run concurrently on connection threads. They must not keep
unsynchronised mutable state and must return a response instead of
raising (a missing resource is not_found(), not an exception).

    static.py   StaticFileHandler / serve_static()
    pages.py    register_routes(): the example routes used by the CLI

=============================================================================
"""

from .static import StaticFileHandler, serve_static
from .pages import register_routes

__all__ = [
    "StaticFileHandler",
    "serve_static",
    "register_routes",
]
