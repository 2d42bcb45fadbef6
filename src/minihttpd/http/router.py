"""
=============================================================================
HTTP ROUTER
=============================================================================

Maps (method, path) to a handler function.

=============================================================================
ROUTE PATTERNS
=============================================================================

    "/"               exact match
    "/user-agent"     exact match
    "/echo/*text"     prefix match; everything after "/echo/" is captured
                      as path_params["text"], slashes included, and may be
                      empty
    "/users/:id"      one path segment captured as path_params["id"]

Patterns compile to anchored regular expressions:

    "/echo/*text"  →  ^/echo/(?P<text>.*)$
    "/users/:id"   →  ^/users/(?P<id>[^/]+)$

The request path is matched exactly as received: no percent-decoding, no
trailing-slash normalization, query string included.

=============================================================================
FALLBACKS
=============================================================================

    Method no route is registered for   → 405 Method Not Allowed
    Known method, no pattern matches    → 404 Not Found

So with only GET and POST routes registered, ``PUT /`` is a 405 while
``POST /echo/x`` is a 404.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import logging
import re

from .request import HTTPRequest
from .response import HTTPResponse, not_found, method_not_allowed


logger = logging.getLogger(__name__)


Handler = Callable[[HTTPRequest], HTTPResponse]


@dataclass
class Route:
    """A registered route: pattern + method + handler."""
    path: str
    method: str
    handler: Handler
    name: Optional[str] = None

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """A matched route and the parameters captured from the path."""
    route: Route
    params: Dict[str, str]


class Router:
    """
    First-match-wins request router.

        router = Router()

        @router.get("/echo/*text")
        def echo(request):
            return ResponseBuilder().text(request.path_params["text"]).build()

        response = router.handle(request)
    """

    def __init__(self):
        self._routes: List[Route] = []

    @property
    def routes(self) -> List[Route]:
        return list(self._routes)

    @property
    def methods(self) -> set:
        """Every method at least one route is registered for."""
        return {route.method for route in self._routes}

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: str,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register ``handler`` for ``method`` requests matching ``path``.

        Routes are tried in registration order.
        """
        pattern, param_names = self._compile_pattern(path)
        route = Route(
            path=path,
            method=method.upper(),
            handler=handler,
            name=name or getattr(handler, "__name__", None),
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple:
        """
        Compile a route pattern to a regex.

        Segments: ``:name`` captures one segment, ``*name`` captures the
        rest of the path (must be last), anything else matches literally.

        Returns:
            (compiled regex, list of parameter names)
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                name = segment[1:]
                param_names.append(name)
                regex_parts.append(f"(?P<{name}>[^/]+)")
            elif segment.startswith("*"):
                name = segment[1:] or "wildcard"
                param_names.append(name)
                regex_parts.append(f"(?P<{name}>.*)")
                break
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")  # the root pattern "/"

        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    # =========================================================================
    # MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """Find the first route for ``method`` whose pattern matches ``path``."""
        for route in self._routes:
            if route.method != method:
                continue
            found = route._pattern.match(path)
            if found:
                return RouteMatch(route=route, params=found.groupdict())
        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        Sets ``request.path_params`` from the match before calling the
        handler.
        """
        if request.method not in self.methods:
            return method_not_allowed()

        matched = self.match(request.method, request.path)
        if matched is None:
            logger.debug(f"No route for {request.method} {request.path}")
            return not_found()

        request.path_params = matched.params
        return matched.route.handler(request)

    # =========================================================================
    # DECORATORS
    # =========================================================================

    def route(self, path: str, method: str, name: Optional[str] = None):
        """Decorator form of add_route(); returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None):
        """Register a GET route."""
        return self.route(path, "GET", name)

    def post(self, path: str, name: Optional[str] = None):
        """Register a POST route."""
        return self.route(path, "POST", name)

    def describe(self) -> List[str]:
        """One "METHOD pattern" line per route, in matching order."""
        return [f"{route.method:<6} {route.path}" for route in self._routes]
