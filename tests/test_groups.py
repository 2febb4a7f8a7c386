"""Tests for route groups — prefix, namespace, middleware and attribute merging."""

import pytest

from junction.app import App
from junction.routing.group import ROOT, GroupAttributes
from junction.routing.route import RouteType


def _handler() -> str:
    return "ok"


class TestGroupAttributes:
    def test_from_options_splits_known_keys(self) -> None:
        attrs = GroupAttributes.from_options({"prefix": "api", "owner": "billing"}, middleware="auth")
        assert attrs.prefix == "api"
        assert [str(m) for m in attrs.middleware] == ["auth"]
        assert dict(attrs.attributes) == {"owner": "billing"}

    def test_type_is_parsed(self) -> None:
        assert GroupAttributes.from_options(type="web").route_type is RouteType.WEB

    def test_merge_concatenates_prefix(self) -> None:
        outer = ROOT.merge(GroupAttributes.from_options(prefix="api/v1"))
        inner = outer.merge(GroupAttributes.from_options(prefix="admin"))
        assert inner.prefix == "api/v1/admin"

    def test_merge_keeps_first_middleware(self) -> None:
        outer = GroupAttributes.from_options(middleware=["auth", "rate_limit:10,60"])
        inner = outer.merge(GroupAttributes.from_options(middleware=["rate_limit:5,1", "cors"]))
        assert [str(m) for m in inner.middleware] == ["auth", "rate_limit:10,60", "cors"]

    def test_inner_replaces_other_attributes(self) -> None:
        outer = GroupAttributes.from_options(type="web", owner="a", team="x")
        inner = outer.merge(GroupAttributes.from_options(owner="b"))
        assert inner.route_type is RouteType.WEB
        assert dict(inner.attributes) == {"owner": "b", "team": "x"}


class TestAppGroups:
    def test_nested_prefix_and_middleware(self, app: App) -> None:
        with app.group(prefix="api/v1", middleware=["cors"]):
            with app.group(prefix="admin", middleware=["auth"]):
                app.get("users", _handler).name("admin.users")

        (route,) = app.routes()
        assert route.path == "api/v1/admin/users"
        assert route.middleware_names == ("cors", "auth")

    def test_callback_form(self, app: App) -> None:
        app.group({"prefix": "api/v1"}, lambda a: a.get("status", _handler))
        (route,) = app.routes()
        assert route.path == "api/v1/status"

    def test_scope_ends_with_block(self, app: App) -> None:
        with app.group(prefix="inside"):
            app.get("a", _handler)
        app.get("b", _handler)
        assert [r.path for r in app.routes()] == ["inside/a", "b"]

    def test_scope_ends_on_error(self, app: App) -> None:
        with pytest.raises(ZeroDivisionError), app.group(prefix="inside"):
            1 / 0  # noqa: B018
        app.get("b", _handler)
        assert [r.path for r in app.routes()] == ["b"]

    def test_group_type_applies_to_route(self, app: App) -> None:
        with app.group(type="web", prefix="blog"):
            app.route("latest", _handler)
        (route,) = app.routes()
        assert route.route_type is RouteType.WEB
        assert route.full_path == "blog/latest"

    def test_namespace_joins_route_namespace(self, app: App) -> None:
        with app.group(namespace="shop"):
            app.get("orders", _handler).namespace("v1")
        (route,) = app.routes()
        assert route.namespace == "shop/v1"
        assert route.full_path == "shop/v1/orders"

    def test_prefix_does_not_apply_to_admin_or_ajax(self, app: App) -> None:
        with app.group(prefix="api"):
            app.admin("reports", "Reports", _handler)
            app.ajax("save", _handler)
        assert [r.path for r in app.routes()] == ["reports", "save"]

    def test_group_attributes_reach_route(self, app: App) -> None:
        with app.group(owner="billing"):
            app.get("invoices", _handler).attribute("cache", 60)
        (route,) = app.routes()
        assert dict(route.attributes) == {"owner": "billing", "cache": 60}

    def test_route_middleware_runs_after_group(self, app: App) -> None:
        with app.group(middleware=["auth"]):
            app.get("x", _handler).middleware("json_only", "auth")
        (route,) = app.routes()
        assert route.middleware_names == ("auth", "json_only")
