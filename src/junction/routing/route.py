"""Route definitions — frozen descriptions of one endpoint each."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from junction.middleware.spec import MiddlewareEntry, entry_name
from junction.routing.pattern import PathPattern, join_paths


class RouteType(StrEnum):
    """The four dispatch contexts sharing one matcher and pipeline."""

    API = "api"
    WEB = "web"
    ADMIN = "admin"
    AJAX = "ajax"


@dataclass(frozen=True, slots=True)
class AdminMenu:
    """Menu placement for an admin page."""

    page_title: str
    menu_title: str | None = None
    icon: str = "dashicons-admin-generic"
    position: int | None = None
    parent: str | None = None

    @property
    def label(self) -> str:
        return self.menu_title or self.page_title


@dataclass(frozen=True, slots=True)
class HandlerRef:
    """A handler resolved once at freeze time.

    ``description`` is what introspection shows: the ``"Class@method"``
    string it came from, or the function's qualified name.
    """

    target: Callable[..., Any]
    description: str
    # (name, annotation) per parameter, read from the signature once
    params: tuple[tuple[str, Any], ...] = ()
    var_keyword: bool = False

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.target(*args, **kwargs)


@dataclass(frozen=True, slots=True)
class RouteDefinition:
    """A frozen route definition.

    Identity is ``(route_type, methods, path)``. ``path`` already carries
    the accumulated group prefix; API routes are matched against
    ``namespace/path``.
    """

    route_type: RouteType
    methods: frozenset[str]
    path: str
    pattern: PathPattern
    handler: HandlerRef
    name: str | None = None
    namespace: str = ""
    prefix: str = ""
    middleware: tuple[MiddlewareEntry, ...] = ()
    capability: str | None = None
    template: str | None = None
    title: str | None = None
    priority: str = "top"
    menu: AdminMenu | None = None
    public: bool = False
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def full_path(self) -> str:
        """The path the router matches against."""
        if self.route_type is RouteType.API:
            return join_paths(self.namespace, self.path)
        return join_paths(self.path)

    @property
    def identity(self) -> tuple[RouteType, frozenset[str], str]:
        return (self.route_type, self.methods, self.full_path)

    @property
    def middleware_names(self) -> tuple[str, ...]:
        """Names of the middleware attached to this route, for display."""
        return tuple(entry_name(m) for m in self.middleware)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: RouteDefinition
    path_params: dict[str, str]
