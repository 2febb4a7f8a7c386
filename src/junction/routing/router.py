"""Compiled router with ordered pattern matching.

Routes are registered during setup and compiled into an immutable
per-route-type table when the app freezes. Matching walks a route
type's routes in registration order and returns the first whose pattern
and method both match, so when two patterns overlap the one registered
first wins.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any
from urllib.parse import urlencode

from junction.errors import DuplicateRouteName, MethodNotAllowed, NotFound, UnresolvableUrl
from junction.routing.pattern import join_paths
from junction.routing.route import RouteDefinition, RouteMatch, RouteType

logger = logging.getLogger("junction.routing")


class Router:
    """Ordered route table, one list per route type.

    Usage::

        router = Router()
        router.add(definition)
        router.compile()
        match = router.match(RouteType.API, "GET", "/v1/users/42")
        match.path_params  # {"id": "42"}
    """

    __slots__ = ("_compiled", "_names", "_routes")

    def __init__(self) -> None:
        self._routes: dict[RouteType, list[RouteDefinition]] = {t: [] for t in RouteType}
        self._names: dict[RouteType, dict[str, RouteDefinition]] = {t: {} for t in RouteType}
        self._compiled = False

    def add(self, route: RouteDefinition) -> None:
        """Add a route. Must be called before ``compile()``.

        Raises ``DuplicateRouteName`` when another route of the same type
        already carries the route's name.
        """
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)
        if route.name is not None:
            existing = self._names[route.route_type].get(route.name)
            if existing is not None:
                msg = (
                    f"Route name {route.name!r} is used by both "
                    f"{'/'.join(sorted(existing.methods))} {existing.full_path!r} and "
                    f"{'/'.join(sorted(route.methods))} {route.full_path!r} ({route.route_type!s})"
                )
                raise DuplicateRouteName(msg)
            self._names[route.route_type][route.name] = route
        self._routes[route.route_type].append(route)

    def add_all(self, routes: Iterable[RouteDefinition]) -> None:
        for route in routes:
            self.add(route)

    def compile(self) -> None:
        """Freeze the table. No routes may be added afterwards."""
        self._compiled = True
        logger.debug("compiled %d routes", sum(len(r) for r in self._routes.values()))

    @property
    def compiled(self) -> bool:
        return self._compiled

    # -- Matching --

    def match(self, route_type: RouteType | str, method: str, path: str) -> RouteMatch:
        """Match a request to a route.

        Raises ``NotFound`` when no pattern matches the path, and
        ``MethodNotAllowed`` when some pattern matches but none for
        *method*. An unknown route type matches nothing.
        """
        try:
            route_type = RouteType(route_type)
        except ValueError:
            msg = f"Unknown route type {route_type!r}"
            raise NotFound(msg) from None
        method = method.upper()
        allowed: set[str] = set()
        path = path.strip("/")

        for route in self._routes[route_type]:
            target = self._match_target(route, path)
            params = None if target is None else route.pattern.match(target)
            if params is None:
                continue
            if method in route.methods:
                return RouteMatch(route=route, path_params=params)
            allowed.update(route.methods)

        if allowed:
            raise MethodNotAllowed(frozenset(allowed))
        raise NotFound()

    @staticmethod
    def _match_target(route: RouteDefinition, path: str) -> str | None:
        """The part of *path* the route's own pattern applies to."""
        if route.route_type is not RouteType.API or not route.namespace:
            return path
        namespace = route.namespace
        if path == namespace:
            return ""
        if path.startswith(namespace + "/"):
            return path[len(namespace) + 1 :]
        return None

    # -- Introspection --

    def routes(self, route_type: RouteType | str | None = None) -> list[RouteDefinition]:
        """Registered routes in registration order, optionally of one type."""
        if route_type is not None:
            return list(self._routes[RouteType(route_type)])
        return [route for routes in self._routes.values() for route in routes]

    def named(self, name: str, route_type: RouteType | str | None = None) -> RouteDefinition:
        """Look a route up by name. Without a type, API routes are searched first."""
        types = (RouteType(route_type),) if route_type is not None else tuple(RouteType)
        for t in types:
            route = self._names[t].get(name)
            if route is not None:
                return route
        raise UnresolvableUrl(name)

    # -- URL generation --

    def url_for(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        *,
        route_type: RouteType | str | None = None,
        admin_endpoint: str = "/admin",
        ajax_endpoint: str = "/ajax",
    ) -> str:
        """Build the URL for the route called *name*.

        Path parameters are substituted into the pattern; any others are
        appended as a query string. Raises ``UnresolvableUrl`` when no
        route carries the name or a required parameter is missing.
        """
        route = self.named(name, route_type)
        params = dict(params or {})
        used = set(route.pattern.param_names)
        extra = {k: v for k, v in params.items() if k not in used and v is not None}

        if route.route_type is RouteType.ADMIN:
            return _with_query(admin_endpoint, {"page": route.path, **extra})
        if route.route_type is RouteType.AJAX:
            return _with_query(ajax_endpoint, {"action": route.path, **extra})

        built = route.pattern.build(params, route_name=name)
        if route.route_type is RouteType.API:
            built = join_paths(route.namespace, built)
        return _with_query("/" + built, extra)


def _with_query(base: str, query: Mapping[str, Any]) -> str:
    if not query:
        return base
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{urlencode(query, doseq=True)}"
