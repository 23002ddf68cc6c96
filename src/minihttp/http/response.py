"""
=============================================================================
HTTP RESPONSE MODEL AND SERIALIZER
=============================================================================

Holds the outgoing response and turns it into wire bytes.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE ON THE WIRE                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.1 200 OK\r\n                 ← status line                 │
    │   Content-Type: text/html\r\n         ← one line per header         │
    │   \r\n                                ← blank line                  │
    │   <html>...</html>                    ← raw body, no terminator     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The serializer writes exactly what the response holds. It does NOT add
Content-Length, Date, Server or Connection headers: the connection is
closed after every response, and the close is what tells the client the
body has ended.

Request bodies are text but response bodies are bytes, because static
files may be binary.

=============================================================================
CONVENIENCE CONSTRUCTORS
=============================================================================

    ok_html(body)     200 OK, Content-Type: text/html
    ok_json(body)     200 OK, Content-Type: application/json
    not_found()       404 Not Found, body "404 - Route Not Found"
    bad_request()     400 Bad Request, body "400 - Bad Request"
    internal_error()  500 Internal Server Error

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from .status_codes import HTTPStatus


HTTP_VERSION = "HTTP/1.1"

NOT_FOUND_BODY = b"404 - Route Not Found"
BAD_REQUEST_BODY = b"400 - Bad Request"
INTERNAL_ERROR_BODY = b"500 - Internal Server Error"


@dataclass(frozen=True)
class HTTPResponse:
    """
    An HTTP response ready to be serialized.

    Frozen: a response is built once by a handler (or one of the
    constructors below) and consumed straight away by the serializer.

        HTTPResponse(200, "OK", {"Content-Type": "text/plain"}, b"hi")
            │
            │ to_bytes()
            ▼
        b"HTTP/1.1 200 OK\\r\\nContent-Type: text/plain\\r\\n\\r\\nhi"

    Attributes:
        status_code:    Integer status code
        status_message: Reason phrase. Not checked against the code.
        headers:        Header name → value, written in insertion order
        body:           Raw body bytes
    """

    status_code: int
    status_message: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        # headers=None is accepted and means "no headers"
        if self.headers is None:
            object.__setattr__(self, "headers", {})

    @classmethod
    def from_status(
        cls,
        status: HTTPStatus,
        headers: Optional[Dict[str, str]] = None,
        body: bytes = b""
    ) -> "HTTPResponse":
        """Build a response whose message is the standard phrase for status."""
        return cls(int(status), status.phrase, headers or {}, body)

    @property
    def status_line(self) -> str:
        """
        The first line of the response, without the trailing CRLF.

        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{HTTP_VERSION} {self.status_code} {self.status_message}"

    def to_bytes(self) -> bytes:
        """
        Serialize the response to wire bytes.

        Returns:
            Status line, header lines, blank line and body, exactly as
            stored; nothing is added or reordered.
        """
        lines = [self.status_line]
        for name, value in self.headers.items():
            lines.append(f"{name}: {value}")

        # Trailing "" + CRLF join gives the blank line after the headers
        lines.append("")
        head = "\r\n".join(lines) + "\r\n"

        return head.encode("utf-8") + self.body


def write_response(stream, response: HTTPResponse) -> None:
    """
    Write a response to a socket-like stream.

    Uses sendall(), which only returns once every byte has been handed to
    the OS. Errors are not caught here: an OSError reaches the caller so
    the connection worker can log it.

    Args:
        stream: Anything with a sendall(bytes) method (a socket, a Connection).
        response: The response to serialize.
    """
    stream.sendall(response.to_bytes())


# =============================================================================
# CONVENIENCE CONSTRUCTORS
# =============================================================================

def ok_html(body: str) -> HTTPResponse:
    """200 OK with an HTML body."""
    return HTTPResponse.from_status(
        HTTPStatus.OK,
        {"Content-Type": "text/html"},
        body.encode("utf-8"),
    )


def ok_json(body: str) -> HTTPResponse:
    """
    200 OK with a JSON body.

    The body is an already-serialized JSON string; it is sent as-is.
    """
    return HTTPResponse.from_status(
        HTTPStatus.OK,
        {"Content-Type": "application/json"},
        body.encode("utf-8"),
    )


def not_found() -> HTTPResponse:
    """
    404 Not Found.

    Returned by the router when no route matches, and by handlers when
    the resource they look up does not exist. No headers.
    """
    return HTTPResponse.from_status(HTTPStatus.NOT_FOUND, body=NOT_FOUND_BODY)


def bad_request() -> HTTPResponse:
    """400 Bad Request, sent when the request line cannot be parsed. No headers."""
    return HTTPResponse.from_status(HTTPStatus.BAD_REQUEST, body=BAD_REQUEST_BODY)


def internal_error() -> HTTPResponse:
    """500 Internal Server Error, sent when a handler raises."""
    return HTTPResponse.from_status(
        HTTPStatus.INTERNAL_SERVER_ERROR, body=INTERNAL_ERROR_BODY
    )
