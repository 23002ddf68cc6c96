"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves files from a directory on disk.

    GET /static/css/site.css
          │
          │ strip url_prefix "/static"
          ▼
    root_dir / "css/site.css"  ──►  200 OK + raw file bytes

Any failure (missing file, a directory, unreadable file, a path that
resolves outside root_dir) becomes not_found(). The handler never raises,
so a bad path can't take down the connection thread.

=============================================================================
SECURITY: PATH TRAVERSAL
=============================================================================

    GET /static/../../etc/passwd

    root_dir / "../../etc/passwd"  → resolve() → /etc/passwd
    /etc/passwd.relative_to(root_dir)  → ValueError → 404

=============================================================================
"""

import logging
import mimetypes
from pathlib import Path

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, not_found
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "text/plain"


def get_content_type(path: Path) -> str:
    """
    Guess the Content-Type from the file extension.

    Falls back to text/plain for unknown extensions.
    """
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or DEFAULT_CONTENT_TYPE


class StaticFileHandler:
    """
    Handler for serving static files.

    The instance only holds configuration, so one object can serve many
    threads at once.

    Usage:
        static = StaticFileHandler("./static", url_prefix="/static")
        router.add_prefix_route("GET", "/static/", static.handle)
    """

    def __init__(self, root_dir: str, url_prefix: str = "/static"):
        """
        Args:
            root_dir: Directory files are served from. Does not have to
                      exist yet; until it does every request is a 404.
            url_prefix: Stripped from the request path to get the file path.
        """
        self.root_dir = Path(root_dir).resolve()
        self.url_prefix = url_prefix.rstrip("/")

        if not self.root_dir.is_dir():
            logger.warning(f"Static root directory does not exist: {self.root_dir}")

    def resolve(self, request_path: str):
        """
        Map a request path to a file inside root_dir.

        Returns:
            The resolved Path, or None if the path escapes root_dir or
            cannot be a filesystem path at all (embedded NUL byte).
        """
        file_path = request_path
        if file_path.startswith(self.url_prefix):
            file_path = file_path[len(self.url_prefix):]
        file_path = file_path.lstrip("/")

        try:
            full_path = (self.root_dir / file_path).resolve()
        except (ValueError, OSError) as e:
            logger.warning(f"Unresolvable path {request_path!r}: {e}")
            return None

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {request_path}")
            return None
        return full_path

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Serve the file named by request.path.

        Returns:
            200 with the file bytes and a guessed Content-Type, or 404.
        """
        full_path = self.resolve(request.path)
        if full_path is None or not full_path.is_file():
            return not_found()

        try:
            contents = full_path.read_bytes()
        except OSError as e:
            logger.warning(f"Cannot read {full_path}: {e}")
            return not_found()

        return HTTPResponse.from_status(
            HTTPStatus.OK,
            {"Content-Type": get_content_type(full_path)},
            contents,
        )

    __call__ = handle


def serve_static(root_dir: str, **kwargs) -> StaticFileHandler:
    """Create a StaticFileHandler; kwargs go to its constructor."""
    return StaticFileHandler(root_dir, **kwargs)
