"""Fluent route builders.

Every registration call on ``App`` returns a ``RouteBuilder``. Chained
calls record options; nothing is checked against other routes until the
app freezes and ``build()`` produces the immutable ``RouteDefinition``::

    app.get("users/{id:int}", show_user).name("users.show").middleware("auth")
    app.admin("reports", "Reports", reports).can("view_reports").icon("dashicons-chart-bar")
    app.ajax("save_draft", save_draft).nopriv()
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from junction.errors import ConfigurationError
from junction.middleware.pipeline import merge_middleware, without
from junction.middleware.spec import MiddlewareEntry, MiddlewareSpec, to_entry
from junction.routing.group import GroupAttributes
from junction.routing.pattern import compile_pattern, join_paths
from junction.routing.route import AdminMenu, HandlerRef, RouteDefinition, RouteType

if TYPE_CHECKING:
    from junction.config import RouterConfig
    from junction.validation import RuleSet

_PRIORITIES = frozenset({"top", "bottom"})


@dataclass(frozen=True, slots=True)
class InlineRules:
    """Rules attached with ``RouteBuilder.validate`` rather than by name."""

    rules: Mapping[str, Any]
    messages: Mapping[str, str]
    attributes: Mapping[str, str]


class RouteBuilder:
    """Collects one route's options until the app freezes."""

    __slots__ = (
        "_attributes",
        "_auth",
        "_capability",
        "_icon",
        "_inline_rules",
        "_menu_title",
        "_middleware",
        "_name",
        "_namespace",
        "_parent",
        "_position",
        "_priority",
        "_rule_set_ref",
        "_template",
        "_title",
        "group",
        "handler",
        "index",
        "methods",
        "path",
        "route_type",
    )

    def __init__(
        self,
        route_type: RouteType,
        methods: Iterable[str],
        path: str,
        handler: Callable[..., Any] | str,
        *,
        group: GroupAttributes,
        index: int = 0,
        title: str | None = None,
    ) -> None:
        self.route_type = route_type
        self.methods = frozenset(m.upper() for m in methods)
        self.path = path
        self.handler = handler
        self.group = group
        self.index = index
        self._name: str | None = None
        self._middleware: list[MiddlewareEntry] = []
        self._capability: str | None = None
        self._auth: bool | None = None
        self._template: str | None = None
        self._title = title
        self._priority = "top"
        self._icon = "dashicons-admin-generic"
        self._position: int | None = None
        self._parent: str | None = None
        self._menu_title: str | None = None
        self._namespace: str | None = None
        self._attributes: dict[str, Any] = {}
        self._inline_rules: InlineRules | None = None
        self._rule_set_ref: str | None = None
        if not self.methods:
            msg = f"Route {path!r} needs at least one HTTP method"
            raise ConfigurationError(msg)

    def __repr__(self) -> str:
        methods = ",".join(sorted(self.methods))
        return f"RouteBuilder({self.route_type!s} {methods} {self.path!r})"

    # -- Common options --

    def name(self, name: str) -> RouteBuilder:
        self._name = name
        return self

    def middleware(self, *entries: Any) -> RouteBuilder:
        """Append middleware. Accepts specs, lists of specs, or middleware objects."""
        for entry in entries:
            if isinstance(entry, list):
                self._middleware.extend(to_entry(e) for e in entry)
            else:
                self._middleware.append(to_entry(entry))
        return self

    def can(self, capability: str) -> RouteBuilder:
        """Require *capability* (adds ``capability:<cap>``)."""
        self._capability = capability
        return self

    def public(self) -> RouteBuilder:
        """Allow anonymous callers: drops any ``auth`` middleware."""
        self._auth = False
        return self

    def private(self) -> RouteBuilder:
        """Require an authenticated caller (adds ``auth``)."""
        self._auth = True
        return self

    def cors(self) -> RouteBuilder:
        return self.middleware("cors")

    def rate_limit(self, requests: int, window: int = 60) -> RouteBuilder:
        return self.middleware(MiddlewareSpec("rate_limit", (requests, window)))

    def validate(
        self,
        rules: str | Mapping[str, Any] | RuleSet,
        messages: Mapping[str, str] | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> RouteBuilder:
        """Validate input before the handler runs.

        A string names a rule set registered with ``app.rule_set()``; a
        mapping (or ``RuleSet``) is attached to this route only.
        """
        if isinstance(rules, str):
            self._rule_set_ref = rules
            self._inline_rules = None
            return self
        if not isinstance(rules, Mapping):
            messages = {**rules.messages, **(messages or {})}
            attributes = {**rules.attributes, **(attributes or {})}
            rules = rules.rules
        self._inline_rules = InlineRules(dict(rules), dict(messages or {}), dict(attributes or {}))
        self._rule_set_ref = None
        return self

    def namespace(self, namespace: str) -> RouteBuilder:
        """Set the API namespace, appended to the group's."""
        self._namespace = namespace
        return self

    def attribute(self, key: str, value: Any) -> RouteBuilder:
        self._attributes[key] = value
        return self

    # -- Page options (web and admin) --

    def template(self, template: str) -> RouteBuilder:
        self._template = template
        return self

    def title(self, title: str) -> RouteBuilder:
        self._title = title
        return self

    def priority(self, priority: str) -> RouteBuilder:
        if priority not in _PRIORITIES:
            msg = f"priority must be 'top' or 'bottom', got {priority!r}"
            raise ConfigurationError(msg)
        self._priority = priority
        return self

    # -- Admin menu options --

    def icon(self, icon: str) -> RouteBuilder:
        self._icon = icon
        return self

    def position(self, position: int) -> RouteBuilder:
        self._position = position
        return self

    def parent(self, parent_slug: str) -> RouteBuilder:
        """Show this page as a submenu entry under *parent_slug*."""
        self._parent = parent_slug
        return self

    def menu(self, menu_title: str) -> RouteBuilder:
        self._menu_title = menu_title
        return self

    # -- Ajax options --

    def nopriv(self) -> RouteBuilder:
        """Ajax action open to anonymous callers as well."""
        return self.public()

    # -- Build --

    @property
    def inline_rules(self) -> InlineRules | None:
        return self._inline_rules

    def effective_path(self) -> str:
        """Route path with the group prefix applied (API and web routes only)."""
        if self.route_type in (RouteType.API, RouteType.WEB):
            return join_paths(self.group.prefix, self.path)
        return self.path.strip("/")

    def effective_namespace(self, config: RouterConfig) -> str:
        if self.route_type is not RouteType.API:
            return ""
        namespace = join_paths(self.group.namespace, self._namespace or "")
        return namespace or config.default_namespace.strip("/")

    def build(
        self,
        handler: HandlerRef,
        config: RouterConfig,
        *,
        rule_set_ref: str | None = None,
    ) -> RouteDefinition:
        """Produce the frozen definition.

        *rule_set_ref* names the rule set registered for this route's
        inline rules, if any.
        """
        implied: list[MiddlewareEntry] = []
        requires_auth = self._auth if self._auth is not None else self.route_type is RouteType.AJAX
        if requires_auth:
            implied.append(MiddlewareSpec("auth"))
        capability = self._capability
        if capability is None and self.route_type is RouteType.ADMIN:
            capability = config.default_admin_capability
        if capability:
            implied.append(MiddlewareSpec("capability", (capability,)))

        own = list(self._middleware)
        ref = rule_set_ref or self._rule_set_ref
        if ref is not None:
            own.append(MiddlewareSpec("validate", (ref,)))

        entries = merge_middleware(self.group.middleware, implied, own)
        if self._auth is False:
            entries = without(entries, "auth")

        path = self.effective_path()
        if self.route_type in (RouteType.ADMIN, RouteType.AJAX) and not path:
            msg = f"{self.route_type!s} routes need a slug or action"
            raise ConfigurationError(msg)

        menu = None
        if self.route_type is RouteType.ADMIN:
            menu = AdminMenu(
                page_title=self._title or path,
                menu_title=self._menu_title,
                icon=self._icon,
                position=self._position,
                parent=self._parent,
            )

        return RouteDefinition(
            route_type=self.route_type,
            methods=self.methods,
            path=path,
            pattern=compile_pattern(path),
            handler=handler,
            name=self._name,
            namespace=self.effective_namespace(config),
            prefix=self.group.prefix,
            middleware=entries,
            capability=capability,
            template=self._template,
            title=self._title,
            priority=self._priority,
            menu=menu,
            public=not requires_auth,
            attributes=MappingProxyType({**self.group.attributes, **self._attributes}),
        )
