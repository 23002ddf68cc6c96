"""
Example routes: a welcome page, a canned JSON user list and static files.

These are collaborators of the core, not part of it. They only show how
registration code plugs handlers into a Router.
"""

import json

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok_html, ok_json
from ..http.router import Router
from .static import StaticFileHandler


INDEX_HTML = "<html><body><h1>Welcome to minihttp!</h1></body></html>"

USERS = [
    {"id": 1, "name": "Alice"},
    {"id": 2, "name": "Bob"},
]


def index(request: HTTPRequest) -> HTTPResponse:
    return ok_html(INDEX_HTML)


def list_users(request: HTTPRequest) -> HTTPResponse:
    return ok_json(json.dumps(USERS, separators=(",", ":")))


def register_routes(router: Router, static_dir: str = "static") -> None:
    """
    Register the example routes on router.

        GET /            → INDEX_HTML
        GET /users       → USERS as JSON
        GET /static/...  → files under static_dir (prefix rule)

    /static/ is a prefix rule, not an exact route: an exact "/static/"
    would only ever match that literal path.
    """
    router.add_route("GET", "/", index)
    router.add_route("GET", "/users", list_users)

    static = StaticFileHandler(static_dir, url_prefix="/static")
    router.add_prefix_route("GET", "/static/", static.handle)
