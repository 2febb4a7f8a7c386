"""Tests for App.url_for — named route URL generation across route types."""

import pytest

from junction.app import App
from junction.config import RouterConfig
from junction.errors import UnresolvableUrl


def _handler() -> str:
    return "ok"


class TestUrlFor:
    def test_api_route(self, app: App) -> None:
        app.get("users/{id:int}", _handler).name("users.show")
        assert app.url_for("users.show", id=42) == "/users/42"

    def test_default_namespace(self) -> None:
        app = App(RouterConfig(default_namespace="shop/v1"))
        app.get("orders/:id", _handler).name("orders.show")
        assert app.url_for("orders.show", id=3) == "/shop/v1/orders/3"

    def test_group_prefix(self, app: App) -> None:
        with app.group(prefix="api/v1"):
            app.get("users", _handler).name("users.index")
        assert app.url_for("users.index", page=2) == "/api/v1/users?page=2"

    def test_web_route(self, app: App) -> None:
        app.web("blog/{slug}", _handler).name("blog.post")
        assert app.url_for("blog.post", slug="hello-world") == "/blog/hello-world"

    def test_admin_route_uses_endpoint(self) -> None:
        app = App(RouterConfig(admin_endpoint="/wp-admin/admin.php"))
        app.admin("shop-settings", "Shop settings", _handler).name("shop.settings")
        assert app.url_for("shop.settings") == "/wp-admin/admin.php?page=shop-settings"

    def test_ajax_route_uses_endpoint(self, app: App) -> None:
        app.ajax("save_cart", _handler).name("cart.save")
        assert app.url_for("cart.save", cart=5) == "/ajax?action=save_cart&cart=5"

    def test_route_type_disambiguates(self, app: App) -> None:
        app.get("home", _handler).name("home")
        app.web("welcome", _handler).name("home")
        assert app.url_for("home") == "/home"
        assert app.url_for("home", route_type="web") == "/welcome"

    def test_none_params_are_dropped(self, app: App) -> None:
        app.get("search", _handler).name("search")
        assert app.url_for("search", q=None) == "/search"

    def test_unknown_name(self, app: App) -> None:
        with pytest.raises(UnresolvableUrl) as exc_info:
            app.url_for("missing")
        assert exc_info.value.name == "missing"

    def test_missing_param(self, app: App) -> None:
        app.get("users/{id}", _handler).name("users.show")
        with pytest.raises(UnresolvableUrl, match="requires parameter 'id'"):
            app.url_for("users.show")

    def test_url_for_freezes_app(self, app: App) -> None:
        app.get("a", _handler).name("a")
        app.url_for("a")
        assert app.frozen
