"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the bytes of a single bounded read into a structured HTTPRequest.

This is a deliberately lenient parser. It is NOT a validating RFC 7230
implementation: it never rejects an unknown method, never looks at the
path, and never reads Content-Length. The only hard failure is a request
line with fewer than three tokens.

=============================================================================
WHAT THE PARSER SEES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 ONE READ OF AT MOST buffer_size BYTES               │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   POST /users HTTP/1.1\r\n        ← request line (3+ tokens)        │
    │   Host: localhost\r\n             ← header                          │
    │   X-Broken-Header\r\n             ← no ": " → skipped               │
    │   Content-Type: text/plain\r\n    ← header                          │
    │   \r\n                            ← first empty line                │
    │   hello\r\n                       ← body line                       │
    │   world                           ← body line                       │
    │                                                                      │
    │   Result:                                                            │
    │     method  = "POST"                                                 │
    │     path    = "/users"                                               │
    │     headers = {"Host": "localhost", "Content-Type": "text/plain"}   │
    │     body    = "helloworld"        ← lines joined, no separator      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Anything the client sent past buffer_size is never read. That is a known
capacity limit, kept on purpose: requests are truncated, not rejected and
not grown.

=============================================================================
PARSING STEPS
=============================================================================

    1. Decode as UTF-8, replacing invalid sequences with U+FFFD
    2. Split on "\\n", strip one trailing "\\r" per line
    3. Request line: split on whitespace, need >= 3 tokens
       (method, path, version; version is read and dropped)
    4. Header lines until the first empty line, split at the first ": "
    5. Every line after the empty line is concatenated into the body

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List


# Capacity of the single read performed per connection.
DEFAULT_BUFFER_SIZE = 1024

HEADER_SEPARATOR = ": "


class HTTPParseError(Exception):
    """
    Raised when request bytes cannot be turned into an HTTPRequest.

    The status_code tells the connection handler which error response
    to send back. Every parse failure in this server maps to 400.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestLine(HTTPParseError):
    """The first line had fewer than three whitespace-separated tokens."""

    def __init__(self, line: str):
        super().__init__(f"Invalid request line: {line!r}")
        self.line = line


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed HTTP request.

    Built once per connection by RequestParser and never modified after
    that, hence frozen. Handlers only read from it.

    Attributes:
        method:         Request method token exactly as sent ("GET", "get", ...)
        path:           Request target exactly as sent, query string included
        headers:        Header name → value. Names keep the client's casing
                        and a repeated name keeps only its last value.
        body:           Text after the first empty line, lines concatenated
        client_address: (ip, port) of the peer, only used for logging
    """

    method: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    client_address: tuple[str, int] = ("", 0)

    def get_header(self, name: str, default: str = "") -> str:
        """
        Look up a header by its exact name.

        Lookups are case-sensitive because headers are stored as written:
        "Content-Type" and "content-type" are different keys here.
        """
        return self.headers.get(name, default)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    The parser holds no per-request state, so one instance is shared by
    every connection worker.

    Usage:
        parser = RequestParser(buffer_size=1024)
        request = parser.parse(b"GET / HTTP/1.1\\r\\n\\r\\n")
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """
        Args:
            buffer_size: Maximum number of bytes considered. Longer input
                         is truncated to this size before decoding, the
                         same cut-off a single socket read imposes.
        """
        if buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")
        self.buffer_size = buffer_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse one request.

        Args:
            data: Bytes from a single read of the connection.
            client_address: Peer (ip, port), copied onto the request.

        Returns:
            The parsed HTTPRequest.

        Raises:
            InvalidRequestLine: If the first line has fewer than 3 tokens.
        """
        # Lossy decode: invalid bytes become U+FFFD instead of an error
        text = data[:self.buffer_size].decode("utf-8", errors="replace")
        lines = self._split_lines(text)

        request_line = lines[0] if lines else ""
        method, path = self._parse_request_line(request_line)

        headers: Dict[str, str] = {}
        body_parts: List[str] = []
        in_body = False

        for line in lines[1:]:
            if in_body:
                body_parts.append(line)
            elif not line:
                in_body = True
            else:
                self._parse_header_line(line, headers)

        return HTTPRequest(
            method=method,
            path=path,
            headers=headers,
            body="".join(body_parts),
            client_address=client_address,
        )

    def _split_lines(self, text: str) -> List[str]:
        """
        Split on line feeds, accepting both "\\n" and "\\r\\n" endings.

        str.splitlines() is not used because it also breaks on form feeds,
        vertical tabs and Unicode separators, which are ordinary characters
        inside a header value or body here.
        """
        lines = [
            line[:-1] if line.endswith("\r") else line
            for line in text.split("\n")
        ]
        # A final "\n" terminates the last line, it does not open a new one
        if lines and lines[-1] == "":
            lines.pop()
        return lines

    def _parse_request_line(self, line: str) -> tuple[str, str]:
        """
        Extract method and path from the request line.

            GET /index.html HTTP/1.1
            ─┬─ ─────┬───── ────┬───
             │       │          └── version, required but discarded
             │       └───────────── path
             └───────────────────── method

        Tokens past the third are ignored.
        """
        parts = line.split()
        if len(parts) < 3:
            raise InvalidRequestLine(line)
        return parts[0], parts[1]

    def _parse_header_line(self, line: str, headers: Dict[str, str]) -> None:
        """
        Add one "Name: Value" line to headers.

        Only the exact two-character separator ": " is recognised, so
        "Name:Value" is not a header. Such lines are dropped and parsing
        goes on with the next line.
        """
        name, sep, value = line.partition(HEADER_SEPARATOR)
        if not sep:
            return
        headers[name] = value  # last one wins


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    buffer_size: int = DEFAULT_BUFFER_SIZE
) -> HTTPRequest:
    """
    Parse a request with a throwaway RequestParser.

    Handy in tests and one-off scripts; the server keeps a single parser.
    """
    return RequestParser(buffer_size=buffer_size).parse(data, client_address)
