"""Router module for organizing routes with mounting support."""

import logging
import re
from typing import Awaitable, Callable, Dict, List, Optional, Pattern, Tuple

from .models import HTTPMethod, Request, Response

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]

# {name} or {name:regex}; the regex must not contain braces or slashes
_PARAM = re.compile(r"\{(\w+)(?::([^{}]+))?\}")
_DEFAULT_PARAM_REGEX = "[^/]+"


def compile_segment(segment: str) -> Pattern:
    """Compile a path segment with parameters into an anchored regex.

    Examples:
        compile_segment("{id}")              matches "1", "1.xml"
        compile_segment("{id:[^.]+}")        matches "1", not "1.xml"
        compile_segment("{id}.{ext:[^.]+}")  matches "1.xml" as id=1, ext=xml
        compile_segment("users.{ext:[^.]+}") matches "users.yml" as ext=yml
    """
    pattern = []
    position = 0
    for match in _PARAM.finditer(segment):
        pattern.append(re.escape(segment[position:match.start()]))
        pattern.append(f"(?P<{match.group(1)}>{match.group(2) or _DEFAULT_PARAM_REGEX})")
        position = match.end()
    pattern.append(re.escape(segment[position:]))
    return re.compile("^" + "".join(pattern) + "$")


def is_pattern_segment(segment: str) -> bool:
    return _PARAM.search(segment) is not None


class RouteHandler:
    """A registered route: method, full path and the coroutine handling it.

    ``mount_prefix`` is the prefix of the router the route was mounted with,
    which generated endpoints use as the base of the URLs they return.
    """

    def __init__(self, method: HTTPMethod, path: str, handler: Handler, mount_prefix: str = ""):
        self.method = method
        self.path = path
        self.handler = handler
        self.mount_prefix = mount_prefix

    def __repr__(self) -> str:
        return f"RouteHandler({self.method.value} {self.path})"


class RouteNode:
    """A node in the route trie structure.

    Each node represents a path segment and can have:
    - static_children: Dict mapping exact segment strings to child nodes
    - pattern_children: Segments with parameters (``{id}``, ``{id}.{ext}``),
      tried in registration order after the static children
    - handlers: Dict mapping HTTP methods to RouteHandlers at this path
    """

    def __init__(self):
        self.static_children: Dict[str, "RouteNode"] = {}
        self.pattern_children: List[Tuple[str, Pattern, "RouteNode"]] = []
        self.handlers: Dict[HTTPMethod, RouteHandler] = {}

    def _pattern_child(self, segment: str) -> "RouteNode":
        for source, _, node in self.pattern_children:
            if source == segment:
                return node
        node = RouteNode()
        self.pattern_children.append((segment, compile_segment(segment), node))
        return node

    def add_route(self, segments: List[str], method: HTTPMethod, handler: RouteHandler) -> None:
        """Add a route to the trie.

        Args:
            segments: Path segments (e.g., ['users', '{id:[^.]+}', '{field}.{ext}'])
            method: HTTP method
            handler: RouteHandler instance
        """
        if not segments:
            if method in self.handlers:
                raise ValueError(f"Route {method.value} {handler.path} is already registered")
            self.handlers[method] = handler
            return

        segment = segments[0]
        remaining = segments[1:]

        if is_pattern_segment(segment):
            child = self._pattern_child(segment)
        else:
            child = self.static_children.setdefault(segment, RouteNode())
        child.add_route(remaining, method, handler)

    def match(self, segments: List[str], method: HTTPMethod) -> Optional[Tuple[RouteHandler, Dict[str, str]]]:
        """Match a path against the trie.

        Returns:
            Tuple of (RouteHandler, path_params) if matched, None otherwise
        """
        if not segments:
            handler = self.handlers.get(method)
            return (handler, {}) if handler else None

        segment = segments[0]
        remaining = segments[1:]

        # Static segments are more specific than patterns
        if segment in self.static_children:
            result = self.static_children[segment].match(remaining, method)
            if result:
                return result

        for _, regex, child in self.pattern_children:
            captured = regex.match(segment)
            if captured is None:
                continue
            result = child.match(remaining, method)
            if result:
                handler, params = result
                params.update(captured.groupdict())
                return (handler, params)

        return None

    def methods(self, segments: List[str]) -> List[HTTPMethod]:
        """All methods registered for a path, in any matching branch."""
        if not segments:
            return list(self.handlers)

        segment = segments[0]
        remaining = segments[1:]
        found: List[HTTPMethod] = []

        if segment in self.static_children:
            found.extend(self.static_children[segment].methods(remaining))
        for _, regex, child in self.pattern_children:
            if regex.match(segment):
                found.extend(child.methods(remaining))
        return found


def normalize_path(prefix: str, path: str) -> str:
    """Normalize a path by combining prefix and path, handling double slashes.

    Examples:
        normalize_path("/", "/users") -> "/users"
        normalize_path("/api", "users") -> "/api/users"
        normalize_path("/api/", "/users") -> "/api/users"
    """
    if not prefix.startswith('/'):
        prefix = '/' + prefix

    if prefix != '/' and prefix.endswith('/'):
        prefix = prefix.rstrip('/')

    if not path.startswith('/'):
        path = '/' + path

    if prefix == '/':
        return path

    return prefix + path


def split_path(path: str) -> List[str]:
    return [segment for segment in path.split('/') if segment]


class Router:
    """Router class for organizing routes with mounting support.

    Routers allow you to organize routes by functionality and mount them
    with different prefixes. Routers can also be nested (mounted into other routers).

    Example::

        router = Router()

        @router.get("/users/{id}")
        async def get_user(request):
            return Response(200, request.path_params["id"])
    """

    def __init__(self):
        self._routes: List[RouteHandler] = []
        self._mounted_routers: List[Tuple[str, "Router"]] = []
        self._route_tree = RouteNode()

    def mount(self, prefix: str, router: "Router") -> None:
        """Mount another router with a given prefix.

        Routes of the mounted router keep the prefix they were mounted with
        as their ``mount_prefix``.
        """
        self._mounted_routers.append((prefix, router))
        routes = router.get_all_routes(prefix)
        logger.debug(f"Mounting {len(routes)} route(s) at {prefix}")

        for route_path, route in routes:
            self._route_tree.add_route(split_path(route_path), route.method, route)

    def get_all_routes(self, prefix: str = "") -> List[Tuple[str, RouteHandler]]:
        """Get all routes from this router and mounted routers.

        Returns:
            List of (path, route_handler) tuples
        """
        routes = []
        mount_prefix = normalize_path(prefix, "/").rstrip('/') if prefix else ""

        for route in self._routes:
            normalized_path = normalize_path(prefix, route.path) if prefix else route.path
            routes.append((
                normalized_path,
                RouteHandler(route.method, normalized_path, route.handler, mount_prefix),
            ))

        for child_prefix, mounted_router in self._mounted_routers:
            combined_prefix = normalize_path(prefix or "/", child_prefix)
            routes.extend(mounted_router.get_all_routes(combined_prefix))

        return routes

    def add_route(self, method: HTTPMethod, path: str, handler: Handler) -> RouteHandler:
        """
        Raises:
            ValueError: If a segment has unbalanced braces (a parameter regex
                containing ``/``) or the route is already registered
        """
        segments = split_path(path)
        for segment in segments:
            if segment.count("{") != segment.count("}"):
                raise ValueError(f"Malformed segment '{segment}' in route {path}")
        route = RouteHandler(method, path, handler)
        self._route_tree.add_route(segments, method, route)
        self._routes.append(route)
        return route

    def get(self, path: str):
        """Decorator to register a GET route handler."""
        return self._route_decorator(HTTPMethod.GET, path)

    def post(self, path: str):
        """Decorator to register a POST route handler."""
        return self._route_decorator(HTTPMethod.POST, path)

    def put(self, path: str):
        """Decorator to register a PUT route handler."""
        return self._route_decorator(HTTPMethod.PUT, path)

    def delete(self, path: str):
        """Decorator to register a DELETE route handler."""
        return self._route_decorator(HTTPMethod.DELETE, path)

    def options(self, path: str):
        """Decorator to register an OPTIONS route handler."""
        return self._route_decorator(HTTPMethod.OPTIONS, path)

    def _route_decorator(self, method: HTTPMethod, path: str):
        def decorator(func: Handler):
            self.add_route(method, path, func)
            return func

        return decorator

    def match_route(self, path: str, method: HTTPMethod) -> Optional[Tuple[RouteHandler, Dict[str, str]]]:
        """Match a route using the trie structure.

        Args:
            path: Request path (e.g., "/api/users/123")
            method: HTTP method

        Returns:
            Tuple of (RouteHandler, path_params) if matched, None otherwise
        """
        return self._route_tree.match(split_path(path), method)

    def has_path(self, path: str) -> bool:
        """Check if any route exists at the given path (regardless of method)."""
        return bool(self._route_tree.methods(split_path(path)))

    def get_methods_for_path(self, path: str) -> List[HTTPMethod]:
        """HTTP methods that have registered routes at this path, sorted by name."""
        methods = set(self._route_tree.methods(split_path(path)))
        return sorted(methods, key=lambda m: m.value)
