"""Tests for junction.middleware.pipeline — fail-fast ordered execution."""

import pytest

from junction.errors import HTTPError
from junction.middleware.pipeline import MiddlewarePipeline, merge_middleware, without
from junction.middleware.registry import MiddlewareRegistry
from junction.middleware.spec import MiddlewareSpec
from junction.request import Request
from junction.results import ErrorKind, rejected


def _recording(calls: list[str], name: str, result=None):
    def middleware(context):
        calls.append(name)
        return result

    return middleware


def _pipeline(**factories) -> MiddlewarePipeline:
    registry = MiddlewareRegistry()
    registry.register_many(factories)
    return MiddlewarePipeline(registry)


class TestRun:
    def test_all_pass(self) -> None:
        calls: list[str] = []
        pipeline = _pipeline(a=lambda: _recording(calls, "a"), b=lambda: _recording(calls, "b"))
        assert pipeline.run(["a", "b"], Request.build()) is None
        assert calls == ["a", "b"]

    def test_fail_fast(self) -> None:
        calls: list[str] = []
        pipeline = _pipeline(
            a=lambda: _recording(calls, "a"),
            b=lambda: _recording(calls, "b", rejected("Nope", 403)),
            c=lambda: _recording(calls, "c"),
        )
        error = pipeline.run(["a", "b", "c"], Request.build())
        assert error is not None
        assert error.middleware == "b"
        assert error.message == "Nope"
        assert calls == ["a", "b"]

    def test_empty_chain(self) -> None:
        assert _pipeline().run([], Request.build()) is None

    def test_true_passes_false_rejects(self) -> None:
        pipeline = _pipeline()
        assert pipeline.run([lambda ctx: True], Request.build()) is None
        error = pipeline.run([lambda ctx: False], Request.build())
        assert error is not None
        assert (error.status, error.message) == (403, "Access denied")

    def test_string_result_becomes_message(self) -> None:
        def closed(context) -> str:
            return "Registration is closed"

        error = _pipeline().run([closed], Request.build())
        assert error.message == "Registration is closed"
        assert error.middleware == "closed"

    def test_http_error_maps_to_status(self) -> None:
        def teapot(context) -> None:
            raise HTTPError(status=418, detail="I'm a teapot")

        error = _pipeline().run([teapot], Request.build())
        assert (error.kind, error.status, error.message) == (ErrorKind.MIDDLEWARE_REJECTED, 418, "I'm a teapot")

    def test_unexpected_exception(self) -> None:
        def broken(context) -> None:
            raise RuntimeError("db down")

        error = _pipeline().run([broken], Request.build())
        assert error.status == 500
        assert error.middleware == "broken"
        assert isinstance(error.error, RuntimeError)

    def test_objects_with_handle(self) -> None:
        class Gate:
            name = "gate"

            def handle(self, context):
                return rejected("closed", 423)

        error = _pipeline().run([Gate()], Request.build())
        assert (error.status, error.middleware) == (423, "gate")

    def test_unknown_name_raises(self) -> None:
        from junction.errors import UnknownMiddleware

        with pytest.raises(UnknownMiddleware):
            _pipeline().build(["missing"])


class TestAsyncRun:
    @pytest.mark.anyio
    async def test_awaits_async_middleware(self) -> None:
        calls: list[str] = []

        async def slow(context) -> None:
            calls.append("slow")

        async def deny(context):
            return rejected("later", 401)

        error = await _pipeline().arun([slow, deny, _recording(calls, "never")], Request.build())
        assert error is not None and error.status == 401
        assert calls == ["slow"]

    @pytest.mark.anyio
    async def test_sync_middleware_in_async_run(self) -> None:
        calls: list[str] = []
        assert await _pipeline().arun([_recording(calls, "sync")], Request.build()) is None
        assert calls == ["sync"]


class TestMerge:
    def test_first_spec_wins(self) -> None:
        merged = merge_middleware(["auth", "rate_limit:10,60"], ["rate_limit:5,1", "cors"])
        assert merged == (
            MiddlewareSpec("auth"),
            MiddlewareSpec("rate_limit", (10, 60)),
            MiddlewareSpec("cors"),
        )

    def test_same_object_kept_once(self) -> None:
        def gate(context) -> None:
            return None

        assert merge_middleware([gate], [gate]) == (gate,)

    def test_without(self) -> None:
        merged = merge_middleware(["auth", "cors"])
        assert without(merged, "auth") == (MiddlewareSpec("cors"),)
