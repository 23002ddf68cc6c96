"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server emits on its own, with their reason phrases.

Handlers are free to build responses with any integer code and message;
this enum only covers the responses the core constructs itself:

    200 OK                     canned pages, JSON, static files
    400 Bad Request            request line could not be parsed
    404 Not Found              no route matched / file missing
    500 Internal Server Error  a handler raised instead of returning

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    Status codes used by the built-in response constructors.

    IntEnum so that ``HTTPStatus.OK == 200`` holds and a member can be
    passed anywhere an integer status code is expected.
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    INTERNAL_SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line:

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── phrase
                      └───────── code
        """
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}
