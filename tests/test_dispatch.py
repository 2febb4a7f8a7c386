"""Tests for junction.dispatch — the Dispatcher and path-parameter binding."""

from typing import Any

from junction.app import App
from junction.dispatch import Dispatcher, bind_path_params
from junction.errors import MethodNotAllowed, NotFound
from junction.handlers import handler_ref
from junction.middleware.pipeline import MiddlewarePipeline
from junction.middleware.registry import MiddlewareRegistry
from junction.request import Request
from junction.results import ErrorKind, Ok
from junction.routing.pattern import compile_pattern
from junction.routing.route import RouteDefinition, RouteType
from junction.routing.router import Router


class MinimalContext:
    """A host-provided context without ``with_path_params``."""

    method = "GET"
    path = "/"
    content_type = None
    raw_body = b""

    def __init__(self, query: dict[str, Any] | None = None, body: dict[str, Any] | None = None) -> None:
        self.query = query or {}
        self.body = body or {}

    def path_param(self, name: str, default: Any = None) -> Any:
        return default

    def query_param(self, name: str, default: Any = None) -> Any:
        return self.query.get(name, default)

    def body_param(self, name: str, default: Any = None) -> Any:
        return self.body.get(name, default)

    def all(self) -> dict[str, Any]:
        return {**self.query, **self.body}

    def header(self, name: str, default: str | None = None) -> str | None:
        return default

    def caller_is_authenticated(self) -> bool:
        return False

    def caller_has_capability(self, capability: str) -> bool:
        return False

    def caller_key(self) -> str:
        return "ip:test"


def _dispatcher(*routes: RouteDefinition, global_middleware: tuple = ()) -> Dispatcher:
    router = Router()
    router.add_all(routes)
    router.compile()
    return Dispatcher(router, MiddlewarePipeline(MiddlewareRegistry()), global_middleware)


def _route(path: str, handler, methods: tuple[str, ...] = ("GET",), middleware: tuple = ()) -> RouteDefinition:
    return RouteDefinition(
        route_type=RouteType.API,
        methods=frozenset(methods),
        path=path,
        pattern=compile_pattern(path),
        handler=handler_ref(handler),
        middleware=middleware,
    )


class TestBindPathParams:
    def test_request_copies_itself(self) -> None:
        request = Request.build("GET", "/users/1")
        bound = bind_path_params(request, {"id": "1"})
        assert isinstance(bound, Request)
        assert bound.path_param("id") == "1"
        assert request.path_param("id") is None

    def test_no_params_returns_same_context(self) -> None:
        context = MinimalContext()
        assert bind_path_params(context, {}) is context

    def test_wraps_other_contexts(self) -> None:
        context = MinimalContext(query={"id": "query", "q": "x"}, body={"title": "T"})
        bound = bind_path_params(context, {"id": "7"})
        assert bound.path_param("id") == "7"
        assert bound.path_param("other", "d") == "d"
        assert bound.all() == {"id": "7", "q": "x", "title": "T"}
        assert bound.caller_key() == "ip:test"

    def test_body_wins_over_path_params(self) -> None:
        context = MinimalContext(body={"id": "body"})
        assert bind_path_params(context, {"id": "7"}).all()["id"] == "body"


class TestDispatcher:
    def test_dispatch(self) -> None:
        def show(id: int) -> dict:
            return {"id": id}

        dispatcher = _dispatcher(_route("items/{id:int}", show))
        assert dispatcher.dispatch("api", "GET", "items/3", Request.build()) == Ok({"id": 3})

    def test_unannotated_params_stay_strings(self) -> None:
        dispatcher = _dispatcher(_route("items/{id:int}", lambda id: id))
        assert dispatcher.dispatch("api", "GET", "items/3", Request.build()).payload == "3"

    def test_custom_context(self) -> None:
        dispatcher = _dispatcher(_route("items/{id}", lambda context: context.path_param("id")))
        assert dispatcher.dispatch(RouteType.API, "GET", "items/5", MinimalContext()).payload == "5"

    def test_not_found(self) -> None:
        result = _dispatcher().dispatch("api", "GET", "x", Request.build())
        assert result.kind is ErrorKind.ROUTE_NOT_FOUND

    def test_match_raises(self) -> None:
        dispatcher = _dispatcher(_route("x", lambda: 1, ("POST",)))
        try:
            dispatcher.match("api", "GET", "x")
        except MethodNotAllowed as exc:
            assert exc.headers == (("Allow", "POST"),)
        else:
            raise AssertionError("expected MethodNotAllowed")
        try:
            dispatcher.match("api", "GET", "y")
        except NotFound:
            pass
        else:
            raise AssertionError("expected NotFound")

    def test_chains_resolved_up_front(self) -> None:
        def gate(context) -> None:
            return None

        route = _route("x", lambda: 1, middleware=(gate,))
        dispatcher = _dispatcher(route, global_middleware=(gate,))
        assert [mw.name for mw in dispatcher.chain_for(route)] == ["gate"]

    def test_handler_headers_preserved(self) -> None:
        dispatcher = _dispatcher(_route("x", lambda: Ok("body", 200, (("X-Trace", "1"),))))
        assert dispatcher.dispatch("api", "GET", "x", Request.build()).headers == (("X-Trace", "1"),)


class TestValidationRoutes:
    def test_inline_rules(self, app: App) -> None:
        app.post("users", lambda request: request.all()).validate(
            {"email": "required|email"},
            messages={"email.email": "That is not an email."},
        )
        bad = app.dispatch("api", "POST", "users", Request.build("POST", body={"email": "nope"}))
        good = app.dispatch("api", "POST", "users", Request.build("POST", body={"email": "a@b.co"}))
        assert bad.status == 422
        assert bad.middleware == "validate:route#0"
        assert bad.field_errors == {"email": ["That is not an email."]}
        assert good.payload == {"email": "a@b.co"}

    def test_named_rule_set(self, app: App) -> None:
        app.rule_set("search", {"q": "required|min:2"}, attributes={"q": "search term"})
        app.get("search", lambda: "results").validate("search")
        result = app.dispatch("api", "GET", "search", Request.build(query={"q": "a"}))
        assert result.field_errors == {"q": ["The search term field must be at least 2."]}
        assert app.dispatch("api", "GET", "search", Request.build(query={"q": "ab"})).payload == "results"

    def test_get_ignores_body(self, app: App) -> None:
        app.get("items/{id}", lambda: "ok").validate({"id": "integer", "sort": "in:asc,desc"})
        request = Request.build("GET", query={"sort": "asc"}, body={"id": "not-a-number"})
        assert app.dispatch("api", "GET", "items/3", request).payload == "ok"

    def test_validation_runs_after_auth(self, app: App) -> None:
        app.post("notes", lambda: "ok").private().validate({"text": "required"})
        result = app.dispatch("api", "POST", "notes", Request.build("POST"))
        assert result.status == 401
