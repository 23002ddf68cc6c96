"""
=============================================================================
HTTP PROTOCOL COMPONENTS
=============================================================================

    request.py       HTTPRequest + RequestParser (bytes → request)
    response.py      HTTPResponse + serializer (response → bytes)
    router.py        Router ((method, path) → handler)
    status_codes.py  HTTPStatus enum for the codes the server emits

    REQUEST:                          RESPONSE:
    ─────────                         ──────────
    GET /path HTTP/1.1\\r\\n            HTTP/1.1 200 OK\\r\\n
    Header: Value\\r\\n                 Header: Value\\r\\n
    \\r\\n                              \\r\\n
    [body]                            [body]

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    InvalidRequestLine,
    parse_request,
)
from .response import (
    HTTPResponse,
    write_response,
    ok_html,        # 200 text/html
    ok_json,        # 200 application/json
    bad_request,    # 400
    not_found,      # 404
    internal_error, # 500
)
from .router import Router, Handler
from .status_codes import HTTPStatus

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "InvalidRequestLine",
    "parse_request",

    # Responses
    "HTTPResponse",
    "write_response",
    "ok_html",
    "ok_json",
    "bad_request",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Handler",

    # Status codes
    "HTTPStatus",
]
