"""Junction application class.

Mutable during setup (route registration, groups, middleware, rule sets).
Frozen on the first match, dispatch, or URL lookup.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from junction.config import RouterConfig
from junction.dispatch import Dispatcher
from junction.errors import ConfigurationError
from junction.handlers import HandlerResolver
from junction.middleware.nonce import NonceManager
from junction.middleware.pipeline import MiddlewarePipeline, merge_middleware
from junction.middleware.rate_limit import CounterStore, InMemoryCounterStore
from junction.middleware.registry import MiddlewareRegistry, install_builtins
from junction.middleware.spec import to_entry
from junction.request import RequestContext
from junction.results import ErrorResult, Result
from junction.routing.builder import RouteBuilder
from junction.routing.group import ROOT, GroupAttributes
from junction.routing.menu import MenuItem, build_menu
from junction.routing.route import RouteDefinition, RouteMatch, RouteType
from junction.routing.router import Router
from junction.validation import RuleSet, StoreQuery, Validator

logger = logging.getLogger("junction.routing")

_API_VERBS = ("GET", "POST", "PUT", "PATCH", "DELETE")

# action -> (methods, path suffix)
RESOURCE_ACTIONS: dict[str, tuple[tuple[str, ...], str]] = {
    "index": (("GET",), ""),
    "create": (("GET",), "create"),
    "store": (("POST",), ""),
    "show": (("GET",), "{id:int}"),
    "edit": (("GET",), "{id:int}/edit"),
    "update": (("PUT", "PATCH"), "{id:int}"),
    "destroy": (("DELETE",), "{id:int}"),
}


class App:
    """The junction application.

    Mutable during setup (routes, groups, middleware, rule sets).
    Frozen when ``find()``, ``dispatch()`` or ``url_for()`` is first
    called; after that every registration raises ``RuntimeError``.

    Thread safety:
        The setup phase is single-threaded (registration at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app, even when several requests arrive at
        once. After freezing, the route table and middleware registry are
        read-only and shared without locking.
    """

    __slots__ = (
        "_builders",
        "_controllers",
        "_dispatcher",
        "_freeze_lock",
        "_frozen",
        "_global_middleware",
        "_groups",
        "_router",
        "_rule_sets",
        "config",
        "counter_store",
        "middleware_registry",
        "nonces",
        "validator",
    )

    def __init__(
        self,
        config: RouterConfig | None = None,
        *,
        store: StoreQuery | None = None,
        counter_store: CounterStore | None = None,
        nonces: NonceManager | None = None,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self.validator = Validator(store, strict=self.config.strict_rules)
        self.counter_store: CounterStore = counter_store if counter_store is not None else InMemoryCounterStore()
        self.nonces = nonces or NonceManager(self.config.nonce_secret, self.config.nonce_lifetime)
        self.middleware_registry = MiddlewareRegistry()
        self._rule_sets: dict[str, RuleSet] = {}
        self._controllers = HandlerResolver()
        self._builders: list[RouteBuilder] = []
        self._global_middleware: list[Any] = []
        self._groups: list[GroupAttributes] = [ROOT]
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        install_builtins(
            self.middleware_registry,
            config=self.config,
            counter_store=self.counter_store,
            nonces=self.nonces,
            rule_sets=self._rule_sets,
            validator=self.validator,
        )

        # Compiled state — set during _freeze()
        self._router: Router | None = None
        self._dispatcher: Dispatcher | None = None

    # -- Route registration --

    def add_route(
        self,
        route_type: RouteType | str,
        methods: Iterable[str],
        path: str,
        handler: Callable[..., Any] | str,
        *,
        title: str | None = None,
    ) -> RouteBuilder:
        """Register a route of any type. The other registration methods call this."""
        self._check_not_frozen()
        builder = RouteBuilder(
            RouteType(route_type),
            methods,
            path,
            handler,
            group=self._groups[-1],
            index=len(self._builders),
            title=title,
        )
        self._builders.append(builder)
        return builder

    def route(
        self,
        path: str,
        handler: Callable[..., Any] | str,
        *,
        methods: Iterable[str] = ("GET",),
        route_type: RouteType | str | None = None,
    ) -> RouteBuilder:
        """Register a route of the enclosing group's ``type`` (API by default)."""
        resolved = route_type or self._groups[-1].route_type or RouteType.API
        return self.add_route(resolved, methods, path, handler)

    def get(self, path: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        return self.add_route(RouteType.API, ("GET",), path, handler)

    def post(self, path: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        return self.add_route(RouteType.API, ("POST",), path, handler)

    def put(self, path: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        return self.add_route(RouteType.API, ("PUT",), path, handler)

    def patch(self, path: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        return self.add_route(RouteType.API, ("PATCH",), path, handler)

    def delete(self, path: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        return self.add_route(RouteType.API, ("DELETE",), path, handler)

    def any(self, path: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        """API route answering every verb."""
        return self.add_route(RouteType.API, _API_VERBS, path, handler)

    def match(self, methods: Iterable[str], path: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        """API route answering each of *methods*."""
        return self.add_route(RouteType.API, methods, path, handler)

    def web(
        self,
        path: str,
        handler: Callable[..., Any] | str,
        *,
        methods: Iterable[str] = ("GET",),
    ) -> RouteBuilder:
        """A browser page."""
        return self.add_route(RouteType.WEB, methods, path, handler)

    def admin(self, slug: str, title: str, handler: Callable[..., Any] | str) -> RouteBuilder:
        """An admin dashboard page, reachable at ``<admin_endpoint>?page=<slug>``."""
        return self.add_route(RouteType.ADMIN, ("GET", "POST"), slug, handler, title=title)

    def ajax(self, action: str, handler: Callable[..., Any] | str, *, nopriv: bool = False) -> RouteBuilder:
        """An async in-page action. Requires a logged-in caller unless *nopriv*."""
        builder = self.add_route(RouteType.AJAX, ("POST",), action, handler)
        if nopriv:
            builder.nopriv()
        return builder

    def resource(
        self,
        name: str,
        controller: Any,
        *,
        only: Iterable[str] | None = None,
        except_: Iterable[str] | None = None,
    ) -> list[RouteBuilder]:
        """Register the CRUD routes for *name*, each named ``"<name>.<action>"``.

        *controller* is a ``"Class"`` reference string, a class, or an
        instance. ``only`` and ``except_`` filter the seven actions.
        """
        actions = list(RESOURCE_ACTIONS)
        if only is not None:
            wanted = set(only)
            unknown = wanted - set(actions)
            if unknown:
                msg = f"Unknown resource actions: {', '.join(sorted(unknown))}"
                raise ConfigurationError(msg)
            actions = [a for a in actions if a in wanted]
        if except_ is not None:
            excluded = set(except_)
            actions = [a for a in actions if a not in excluded]

        if isinstance(controller, type):
            ref = f"{controller.__module__}:{controller.__qualname__}"
            self._controllers.register(ref, controller)
            controller = ref

        builders: list[RouteBuilder] = []
        for action in actions:
            methods, suffix = RESOURCE_ACTIONS[action]
            if isinstance(controller, str):
                handler: Callable[..., Any] | str = f"{controller}@{action}"
            else:
                handler = getattr(controller, action, None)
                if handler is None:
                    msg = f"Resource {name!r}: {type(controller).__name__} has no {action!r} method"
                    raise ConfigurationError(msg)
            path = f"{name}/{suffix}" if suffix else name
            route_type = self._groups[-1].route_type or RouteType.API
            builders.append(self.add_route(route_type, methods, path, handler).name(f"{name}.{action}"))
        return builders

    # -- Groups --

    def group(
        self,
        attributes: Mapping[str, Any] | None = None,
        callback: Callable[[App], Any] | None = None,
        **kwargs: Any,
    ) -> Any:
        """Share attributes across the routes registered inside the group.

        Callback form::

            app.group({"prefix": "api/v1", "middleware": ["cors"]}, lambda app: ...)

        Context-manager form::

            with app.group(prefix="api/v1", middleware=["cors"]):
                app.get("users", list_users)
        """
        scope = self._group_scope(GroupAttributes.from_options(attributes, **kwargs))
        if callback is None:
            return scope
        with scope:
            callback(self)
        return None

    @contextmanager
    def _group_scope(self, attributes: GroupAttributes) -> Iterator[GroupAttributes]:
        self._check_not_frozen()
        merged = self._groups[-1].merge(attributes)
        self._groups.append(merged)
        try:
            yield merged
        finally:
            self._groups.pop()

    # -- Middleware, rule sets, controllers --

    def use(self, *middleware: Any) -> None:
        """Add global middleware, run before every route's own middleware."""
        self._check_not_frozen()
        self._global_middleware.extend(to_entry(m) for m in middleware)

    def rule_set(
        self,
        ref: str,
        rules: Mapping[str, Any],
        messages: Mapping[str, str] | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> None:
        """Name a rule set so ``validate:<ref>`` can use it."""
        self._check_not_frozen()
        self._rule_sets[ref] = RuleSet(dict(rules), dict(messages or {}), dict(attributes or {}))

    def controller(self, name: str, factory: Callable[[], Any]) -> None:
        """Make ``"<name>@method"`` handler strings resolve through *factory*."""
        self._check_not_frozen()
        self._controllers.register(name, factory)

    # -- Request handling --

    def find(self, route_type: RouteType | str, method: str, path: str) -> RouteMatch:
        """Match a request without dispatching it.

        Raises ``NotFound`` or ``MethodNotAllowed``.
        """
        self._ensure_frozen()
        assert self._router is not None
        return self._router.match(route_type, method, path)

    def dispatch(
        self,
        route_type: RouteType | str,
        method: str,
        path: str,
        context: RequestContext,
    ) -> Result:
        """Match, run middleware, call the handler. Never raises for request errors."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return self._dispatcher.dispatch(route_type, method, path, context)

    async def adispatch(
        self,
        route_type: RouteType | str,
        method: str,
        path: str,
        context: RequestContext,
    ) -> Result:
        """``dispatch`` for async hosts; awaits async middleware and handlers."""
        self._ensure_frozen()
        assert self._dispatcher is not None
        return await self._dispatcher.adispatch(route_type, method, path, context)

    def run_middleware(self, specs: Iterable[Any], context: RequestContext) -> ErrorResult | None:
        """Run an ad-hoc middleware list (global middleware first) over *context*."""
        self._ensure_frozen()
        entries = merge_middleware(self._global_middleware, specs)
        return MiddlewarePipeline(self.middleware_registry).run(entries, context)

    # -- Introspection --

    def url_for(self, name: str, /, *, route_type: RouteType | str | None = None, **params: Any) -> str:
        """Build the URL of the route called *name*.

        Raises ``UnresolvableUrl`` for unknown names or missing parameters.
        """
        self._ensure_frozen()
        assert self._router is not None
        return self._router.url_for(
            name,
            params,
            route_type=route_type,
            admin_endpoint=self.config.admin_endpoint,
            ajax_endpoint=self.config.ajax_endpoint,
        )

    def routes(self, route_type: RouteType | str | None = None) -> list[RouteDefinition]:
        self._ensure_frozen()
        assert self._router is not None
        return self._router.routes(route_type)

    def admin_menu(self) -> list[MenuItem]:
        """Admin pages as a menu tree, ordered by position then registration."""
        return build_menu(self.routes(RouteType.ADMIN))

    @property
    def global_middleware(self) -> tuple[Any, ...]:
        return tuple(self._global_middleware)

    @property
    def frozen(self) -> bool:
        return self._frozen

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Inline rule sets become named ones so validate:<ref> resolves
        for builder in self._builders:
            if builder.inline_rules is not None:
                inline = builder.inline_rules
                self._rule_sets[f"route#{builder.index}"] = RuleSet(
                    inline.rules, inline.messages, inline.attributes
                )

        # 2. Compile route table, resolving "Class@method" handlers once
        router = Router()
        for builder in self._builders:
            ref = f"route#{builder.index}" if builder.inline_rules is not None else None
            handler = self._controllers.resolve(builder.handler)
            router.add(builder.build(handler, self.config, rule_set_ref=ref))
        router.compile()

        # 3. Resolve every route's middleware chain, then lock the registry
        dispatcher = Dispatcher(
            router,
            MiddlewarePipeline(self.middleware_registry),
            tuple(self._global_middleware),
            self.config,
            self.validator,
        )
        self.middleware_registry.freeze()

        self._router = router
        self._dispatcher = dispatcher
        self._frozen = True
        logger.debug("app frozen with %d routes", len(router.routes()))

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started dispatching. "
                "Register routes, groups, and middleware before the first request."
            )
            raise RuntimeError(msg)
