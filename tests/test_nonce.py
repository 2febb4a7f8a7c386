"""Tests for junction.middleware.nonce — caller-bound, time-limited tokens."""

import pytest

from junction.app import App
from junction.config import RouterConfig
from junction.middleware.nonce import NonceManager, NonceMiddleware
from junction.request import Request


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _manager(now: float = 10.0) -> tuple[NonceManager, FakeClock]:
    clock = FakeClock(now)
    return NonceManager("secret", lifetime=100, clock=clock), clock


class TestNonceManager:
    def test_current_tick(self) -> None:
        nonces, _ = _manager()
        token = nonces.create("delete_post", "user:1")
        assert len(token) == 20
        assert nonces.verify(token, "delete_post", "user:1") == 1

    def test_previous_tick(self) -> None:
        nonces, clock = _manager()
        token = nonces.create("delete_post", "user:1")
        clock.now = 60
        assert nonces.verify(token, "delete_post", "user:1") == 2

    def test_expired(self) -> None:
        nonces, clock = _manager()
        token = nonces.create("delete_post", "user:1")
        clock.now = 110
        assert nonces.verify(token, "delete_post", "user:1") == 0

    def test_bound_to_action_and_caller(self) -> None:
        nonces, _ = _manager()
        token = nonces.create("delete_post", "user:1")
        assert nonces.verify(token, "edit_post", "user:1") == 0
        assert nonces.verify(token, "delete_post", "user:2") == 0

    def test_bound_to_secret(self) -> None:
        clock = FakeClock(10)
        token = NonceManager("one", 100, clock=clock).create("a", "user:1")
        assert NonceManager("two", 100, clock=clock).verify(token, "a", "user:1") == 0

    def test_empty_token(self) -> None:
        nonces, _ = _manager()
        assert nonces.verify("", "a", "user:1") == 0

    def test_non_ascii_token(self) -> None:
        nonces, _ = _manager()
        assert nonces.verify("é", "a", "user:1") == 0

    def test_random_secret_when_empty(self) -> None:
        clock = FakeClock(10)
        token = NonceManager("", 100, clock=clock).create("a", "user:1")
        assert NonceManager("", 100, clock=clock).verify(token, "a", "user:1") == 0

    def test_lifetime_too_short(self) -> None:
        with pytest.raises(ValueError):
            NonceManager("s", lifetime=1)


class TestNonceMiddleware:
    def test_safe_methods_skip(self) -> None:
        nonces, _ = _manager()
        mw = NonceMiddleware(nonces, "save")
        for method in ("GET", "HEAD", "OPTIONS"):
            assert mw.handle(Request.build(method)) is None

    def test_anonymous(self) -> None:
        nonces, _ = _manager()
        assert NonceMiddleware(nonces, "save").handle(Request.build("POST")).status == 401

    def test_missing_token(self) -> None:
        nonces, _ = _manager()
        error = NonceMiddleware(nonces, "save").handle(Request.build("POST", user_id=1))
        assert (error.status, error.message) == (400, "Nonce is required")

    def test_invalid_token(self) -> None:
        nonces, _ = _manager()
        request = Request.build("POST", user_id=1, headers={"X-Nonce": "0" * 20})
        error = NonceMiddleware(nonces, "save").handle(request)
        assert (error.status, error.message) == (403, "Invalid nonce")

    def test_non_ascii_token_rejected(self) -> None:
        nonces, _ = _manager()
        request = Request.build("POST", user_id=1, headers={"X-Nonce": "é"})
        error = NonceMiddleware(nonces, "save").handle(request)
        assert (error.status, error.message) == (403, "Invalid nonce")

    def test_token_in_header(self) -> None:
        nonces, _ = _manager()
        token = nonces.create("save", "user:1")
        request = Request.build("POST", user_id=1, headers={"X-Nonce": token})
        assert NonceMiddleware(nonces, "save").handle(request) is None

    def test_token_in_body(self) -> None:
        nonces, _ = _manager()
        token = nonces.create("save", "user:1")
        request = Request.build("POST", user_id=1, body={"_nonce": token})
        assert NonceMiddleware(nonces, "save").handle(request) is None

    def test_name(self) -> None:
        nonces, _ = _manager()
        assert NonceMiddleware(nonces, "save").name == "nonce:save"


class TestNonceRoutes:
    def test_route_with_app_nonces(self) -> None:
        app = App(RouterConfig(nonce_secret="s3cret"))
        app.ajax("delete_post", lambda: "deleted").middleware("nonce:delete_post")
        token = app.nonces.create("delete_post", "user:9")
        good = Request.build("POST", "/ajax", user_id=9, body={"_nonce": token})
        bad = Request.build("POST", "/ajax", user_id=9, body={"_nonce": "nope"})
        assert app.dispatch("ajax", "POST", "delete_post", good).payload == "deleted"
        assert app.dispatch("ajax", "POST", "delete_post", bad).status == 403

    def test_configured_header(self) -> None:
        app = App(RouterConfig(nonce_secret="s3cret", nonce_header="x-wp-nonce"))
        app.post("posts", lambda: "ok").middleware("nonce:posts")
        token = app.nonces.create("posts", "user:1")
        request = Request.build("POST", "/posts", user_id=1, headers={"X-WP-Nonce": token})
        assert app.dispatch("api", "POST", "posts", request).payload == "ok"

    def test_non_ascii_token_through_dispatch(self) -> None:
        app = App(RouterConfig(nonce_secret="s3cret"))
        app.post("posts", lambda: "ok").middleware("nonce:save")
        request = Request.build("POST", "/posts", user_id=1, headers={"X-Nonce": "é"})
        result = app.dispatch("api", "POST", "posts", request)
        assert (result.status, result.middleware) == (403, "nonce:save")
