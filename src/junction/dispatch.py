"""Dispatcher — match, run middleware, call the handler, normalize the result.

Nothing raised below the dispatcher reaches the host. Routing misses,
middleware rejections, validation failures and handler exceptions all
come back as ``ErrorResult`` values so the host can render them in
whatever shape the route type needs.
"""

import logging
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

from junction._internal.invoke import ensure_sync, invoke, invoke_in_thread
from junction.config import RouterConfig
from junction.context import validator_var
from junction.errors import HTTPError, MethodNotAllowed, NotFound, ValidationError
from junction.handlers import build_kwargs
from junction.middleware.pipeline import MiddlewarePipeline, ResolvedMiddleware, merge_middleware
from junction.request import RequestContext
from junction.results import ErrorKind, ErrorResult, Ok, Result
from junction.routing.route import RouteDefinition, RouteMatch, RouteType
from junction.routing.router import Router
from junction.validation.validator import Validator

logger = logging.getLogger("junction.dispatch")

type Headers = tuple[tuple[str, str], ...]


class _BoundContext:
    """Adds path parameters to a context that can't copy itself."""

    __slots__ = ("_inner", "_params")

    def __init__(self, inner: RequestContext, params: Mapping[str, str]) -> None:
        self._inner = inner
        self._params = dict(params)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._inner, name)

    def path_param(self, name: str, default: Any = None) -> Any:
        if name in self._params:
            return self._params[name]
        return self._inner.path_param(name, default)

    def all(self) -> dict[str, Any]:
        data = self._inner.all()
        body = {k: v for k, v in data.items() if self._inner.body_param(k) is not None}
        return {**data, **self._params, **body}


def bind_path_params(context: RequestContext, params: Mapping[str, str]) -> RequestContext:
    """Return *context* carrying the matched path parameters."""
    if not params:
        return context
    with_params = getattr(context, "with_path_params", None)
    if with_params is not None:
        return with_params(params)
    return _BoundContext(context, params)  # type: ignore[return-value]


def not_found(exc: NotFound) -> ErrorResult:
    return ErrorResult(kind=ErrorKind.ROUTE_NOT_FOUND, message=exc.detail, status=404)


def method_not_allowed(exc: MethodNotAllowed) -> ErrorResult:
    return ErrorResult(
        kind=ErrorKind.METHOD_NOT_ALLOWED,
        message=exc.detail,
        status=405,
        headers=exc.headers,
    )


def _with_headers(result: Result, headers: Headers) -> Result:
    if not headers:
        return result
    return replace(result, headers=(*result.headers, *headers))


def _normalize(payload: Any) -> Result:
    if isinstance(payload, Ok | ErrorResult):
        return payload
    return Ok(payload)


class Dispatcher:
    """Runs requests through a compiled router.

    Each route's middleware chain (global, then group, then route) is
    resolved once at construction, so unknown middleware names fail at
    startup rather than on the first request.
    """

    __slots__ = ("_chains", "_debug", "_offload", "_pipeline", "_router", "_validator")

    def __init__(
        self,
        router: Router,
        pipeline: MiddlewarePipeline,
        global_middleware: tuple[Any, ...] = (),
        config: RouterConfig | None = None,
        validator: Validator | None = None,
    ) -> None:
        self._router = router
        self._validator = validator if validator is not None else Validator()
        self._pipeline = pipeline
        self._debug = config.debug if config is not None else False
        self._offload = config.offload_sync_handlers if config is not None else False
        self._chains: dict[int, tuple[ResolvedMiddleware, ...]] = {}
        for route in router.routes():
            entries = merge_middleware(global_middleware, route.middleware)
            self._chains[id(route)] = pipeline.build(entries)

    def chain_for(self, route: RouteDefinition) -> tuple[ResolvedMiddleware, ...]:
        return self._chains[id(route)]

    def match(self, route_type: RouteType | str, method: str, path: str) -> RouteMatch:
        return self._router.match(route_type, method, path)

    def _match(self, route_type: RouteType | str, method: str, path: str) -> RouteMatch | ErrorResult:
        try:
            return self._router.match(route_type, method, path)
        except NotFound as exc:
            logger.debug("no %s route for %s %s", route_type, method, path)
            return not_found(exc)
        except MethodNotAllowed as exc:
            logger.debug("%s %s: method not allowed", method, path)
            return method_not_allowed(exc)

    def _contributed_headers(self, chain: tuple[ResolvedMiddleware, ...], context: RequestContext) -> Headers:
        headers: list[tuple[str, str]] = []
        for mw in chain:
            headers_for = getattr(mw.target, "headers_for", None)
            if headers_for is not None:
                headers.extend(headers_for(context))
        return tuple(headers)

    def _handler_failed(self, route: RouteDefinition, exc: Exception) -> ErrorResult:
        if isinstance(exc, ValidationError):
            return exc.result
        if isinstance(exc, HTTPError):
            return ErrorResult(
                kind=ErrorKind.HANDLER_ERROR,
                message=exc.detail or str(exc.status),
                status=exc.status,
                headers=exc.headers,
            )
        logger.exception("handler %s failed", route.handler.description)
        message = f"{type(exc).__name__}: {exc}" if self._debug else "Internal Server Error"
        return ErrorResult(kind=ErrorKind.HANDLER_ERROR, message=message, status=500, error=exc)

    def dispatch(
        self,
        route_type: RouteType | str,
        method: str,
        path: str,
        context: RequestContext,
    ) -> Result:
        """Dispatch one request synchronously."""
        match = self._match(route_type, method, path)
        if isinstance(match, ErrorResult):
            return match

        route = match.route
        context = bind_path_params(context, match.path_params)
        chain = self._chains[id(route)]
        headers = self._contributed_headers(chain, context)

        error = self._pipeline.run(chain, context)
        if error is not None:
            return _with_headers(error, headers)

        token = validator_var.set(self._validator)
        try:
            payload = route.handler(**build_kwargs(route.handler, context, match.path_params))
            ensure_sync(payload, f"Handler {route.handler.description}")
        except Exception as exc:
            return _with_headers(self._handler_failed(route, exc), headers)
        finally:
            validator_var.reset(token)
        return _with_headers(_normalize(payload), headers)

    async def adispatch(
        self,
        route_type: RouteType | str,
        method: str,
        path: str,
        context: RequestContext,
    ) -> Result:
        """Async twin of ``dispatch``; awaits async middleware and handlers."""
        match = self._match(route_type, method, path)
        if isinstance(match, ErrorResult):
            return match

        route = match.route
        context = bind_path_params(context, match.path_params)
        chain = self._chains[id(route)]
        headers = self._contributed_headers(chain, context)

        error = await self._pipeline.arun(chain, context)
        if error is not None:
            return _with_headers(error, headers)

        token = validator_var.set(self._validator)
        try:
            call = invoke_in_thread if self._offload else invoke
            payload = await call(route.handler.target, **build_kwargs(route.handler, context, match.path_params))
        except Exception as exc:
            return _with_headers(self._handler_failed(route, exc), headers)
        finally:
            validator_var.reset(token)
        return _with_headers(_normalize(payload), headers)
