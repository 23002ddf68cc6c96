"""
=============================================================================
EXACT-MATCH ROUTER
=============================================================================

Maps a (method, path) pair to the handler that produces the response.

=============================================================================
ROUTING RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        ROUTING FLOW                                 │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /users                                                         │
    │        │                                                             │
    │        ▼                                                             │
    │   1. Exact table: ("GET", "/users") ?          ── hit → handler      │
    │        │ miss                                                        │
    │        ▼                                                             │
    │   2. Prefix rules for "GET", longest first     ── hit → handler      │
    │        │ miss                                                        │
    │        ▼                                                             │
    │   3. not_found()                                                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

EXACT ROUTES compare strings, nothing else:

    Registered: GET /static/
    Matches:    GET /static/
    No match:   GET /static/app.css, GET /static, get /static/

No parameters, no wildcards, no trailing-slash normalisation, no case
folding of the method.

PREFIX ROUTES are a separate, explicit rule type for handlers that serve
a whole subtree (static files). They are only consulted when no exact
route matched, so registering one never changes what an exact route does.

Registering the same key twice replaces the first handler. Last
registration wins, silently.

=============================================================================
SHARING ACROSS THREADS
=============================================================================

Routes are registered at startup, then freeze() swaps both tables for
read-only MappingProxyType views. From then on every connection thread
reads the same tables with no locking, and add_route() raises.

=============================================================================
"""

from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from .request import HTTPRequest
from .response import HTTPResponse, not_found


# A handler turns a request into a response. Any callable qualifies:
# plain functions, lambdas, bound methods of handler objects.
Handler = Callable[[HTTPRequest], HTTPResponse]

# (method, path) lookup key
RouteKey = Tuple[str, str]


class Router:
    """
    HTTP request router with exact (method, path) matching.

    Usage:
        router = Router()

        router.add_route("GET", "/", index)

        @router.get("/users")
        def list_users(request):
            return ok_json("[]")

        router.freeze()
        response = router.handle_request(request)
    """

    def __init__(self):
        self._routes: Mapping[RouteKey, Handler] = {}
        self._prefix_routes: Mapping[RouteKey, Handler] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        """True once freeze() has been called."""
        return self._frozen

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(self, method: str, path: str, handler: Handler) -> None:
        """
        Register handler for the exact pair (method, path).

        An existing handler for the same pair is replaced.

        Args:
            method: Request method, compared as-is ("GET" != "get")
            path: Request path, compared as-is
            handler: Callable taking an HTTPRequest, returning an HTTPResponse

        Raises:
            RuntimeError: If the router has been frozen.
        """
        self._check_not_frozen()
        self._routes[(method, path)] = handler

    # Name used by route-registration code outside the core
    register = add_route

    def add_prefix_route(self, method: str, prefix: str, handler: Handler) -> None:
        """
        Register handler for every path starting with prefix.

        Used for subtree handlers such as static file serving. The handler
        receives the full request path and strips the prefix itself.

        Raises:
            RuntimeError: If the router has been frozen.
        """
        self._check_not_frozen()
        self._prefix_routes[(method, prefix)] = handler

    def _check_not_frozen(self) -> None:
        if self._frozen:
            raise RuntimeError("Router is frozen; register routes before the server starts")

    def freeze(self) -> "Router":
        """
        Make the routing tables read-only.

        Idempotent. Returns self so the call can be chained.
        """
        if not self._frozen:
            self._routes = MappingProxyType(dict(self._routes))
            self._prefix_routes = MappingProxyType(dict(self._prefix_routes))
            self._frozen = True
        return self

    # =========================================================================
    # DECORATORS
    # =========================================================================
    #
    #     @router.get("/users")
    #     def list_users(request):
    #         ...
    #
    # is the same as router.add_route("GET", "/users", list_users).
    # The handler is returned unchanged so decorators can be stacked.
    # =========================================================================

    def route(self, method: str, path: str) -> Callable[[Handler], Handler]:
        """Decorator registering the function for (method, path)."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(method, path, handler)
            return handler
        return decorator

    def get(self, path: str) -> Callable[[Handler], Handler]:
        """Register a GET route."""
        return self.route("GET", path)

    def post(self, path: str) -> Callable[[Handler], Handler]:
        """Register a POST route."""
        return self.route("POST", path)

    def put(self, path: str) -> Callable[[Handler], Handler]:
        """Register a PUT route."""
        return self.route("PUT", path)

    def delete(self, path: str) -> Callable[[Handler], Handler]:
        """Register a DELETE route."""
        return self.route("DELETE", path)

    # =========================================================================
    # MATCHING AND DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[Handler]:
        """
        Find the handler for (method, path).

        Exact routes first, then the longest matching prefix rule for the
        same method.

        Returns:
            The handler, or None when nothing matches.
        """
        handler = self._routes.get((method, path))
        if handler is not None:
            return handler

        best: Optional[Handler] = None
        best_len = -1
        for (rule_method, prefix), rule_handler in self._prefix_routes.items():
            if rule_method == method and path.startswith(prefix) and len(prefix) > best_len:
                best, best_len = rule_handler, len(prefix)
        return best

    def handle_request(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request to its handler.

        A missing route is a normal outcome and yields not_found(); the
        lookup itself never raises. Exceptions raised inside a handler are
        not caught here, the connection worker deals with them.
        """
        handler = self.match(request.method, request.path)
        if handler is None:
            return not_found()
        return handler(request)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[str]:
        """
        Describe registered routes, exact ones first.

        Example:
            ["GET /", "GET /users", "GET /static/*"]
        """
        exact = [f"{method} {path}" for method, path in self._routes]
        prefixed = [f"{method} {prefix}*" for method, prefix in self._prefix_routes]
        return exact + prefixed

    def __len__(self) -> int:
        return len(self._routes) + len(self._prefix_routes)
