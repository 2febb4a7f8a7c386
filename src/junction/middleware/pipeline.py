"""Middleware pipeline — strict chain of responsibility, fail-fast.

Each middleware runs in declared order. The first one that returns an
``ErrorResult`` stops the chain and that result is returned; nothing
after it runs. There is no rollback: side effects of middleware that
already ran (an incremented rate counter, say) stay in place.

Ordering for a dispatched route is global → group (outer to inner) →
route, de-duplicated by name with the first occurrence's parameters.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from junction._internal.invoke import ensure_sync, invoke
from junction.errors import HTTPError
from junction.middleware.spec import MiddlewareEntry, MiddlewareSpec, entry_name, to_entry
from junction.request import RequestContext
from junction.results import ErrorKind, ErrorResult, rejected

if TYPE_CHECKING:
    from junction.middleware.registry import MiddlewareRegistry

logger = logging.getLogger("junction.middleware")


@dataclass(frozen=True, slots=True)
class ResolvedMiddleware:
    """A middleware instance paired with the name it was resolved from."""

    name: str
    target: Any

    def _callable(self) -> Any:
        handle = getattr(self.target, "handle", None)
        return handle if handle is not None else self.target

    def __call__(self, context: RequestContext) -> Any:
        return self._callable()(context)

    async def acall(self, context: RequestContext) -> Any:
        return await invoke(self._callable(), context)


def merge_middleware(*lists: Iterable[Any]) -> tuple[MiddlewareEntry, ...]:
    """Concatenate middleware lists, dropping repeated names.

    The first spec seen for a name wins, parameters included. Objects and
    callables attached directly are kept unless the very same object
    already appears.
    """
    merged: list[MiddlewareEntry] = []
    seen_names: set[str] = set()
    seen_ids: set[int] = set()
    for items in lists:
        for item in items:
            entry = to_entry(item)
            if isinstance(entry, MiddlewareSpec):
                if entry.name in seen_names:
                    continue
                seen_names.add(entry.name)
            else:
                if id(entry) in seen_ids:
                    continue
                seen_ids.add(id(entry))
            merged.append(entry)
    return tuple(merged)


def without(entries: Iterable[MiddlewareEntry], name: str) -> tuple[MiddlewareEntry, ...]:
    """Drop every spec called *name*."""
    return tuple(e for e in entries if not (isinstance(e, MiddlewareSpec) and e.name == name))


def _coerce(name: str, result: Any) -> ErrorResult | None:
    """Normalize what a middleware returned into ``ErrorResult | None``."""
    if result is None or result is True:
        return None
    if isinstance(result, ErrorResult):
        return result if result.middleware else result.with_middleware(name)
    if result is False:
        return rejected("Access denied", 403).with_middleware(name)
    return rejected(str(result) or "Access denied", 403).with_middleware(name)


def _from_exception(name: str, exc: Exception) -> ErrorResult:
    if isinstance(exc, HTTPError):
        return ErrorResult(
            kind=ErrorKind.MIDDLEWARE_REJECTED,
            message=exc.detail or str(exc.status),
            status=exc.status,
            middleware=name,
            headers=exc.headers,
        )
    logger.exception("middleware %s raised", name)
    return ErrorResult(
        kind=ErrorKind.MIDDLEWARE_REJECTED,
        message=f"Middleware {name!r} failed",
        status=500,
        middleware=name,
        error=exc,
    )


class MiddlewarePipeline:
    """Runs ordered middleware over one request.

    Usage::

        pipeline = MiddlewarePipeline(registry)
        chain = pipeline.build(["auth", "rate_limit:10,60"])
        error = pipeline.run(chain, context)
        if error is not None:
            return error
    """

    __slots__ = ("_registry",)

    def __init__(self, registry: MiddlewareRegistry) -> None:
        self._registry = registry

    def build(self, entries: Iterable[Any]) -> tuple[ResolvedMiddleware, ...]:
        """Resolve entries in order. Raises ``UnknownMiddleware`` on the first unknown name."""
        chain: list[ResolvedMiddleware] = []
        for item in entries:
            if isinstance(item, ResolvedMiddleware):
                chain.append(item)
                continue
            entry = to_entry(item)
            if isinstance(entry, MiddlewareSpec):
                chain.append(self._registry.resolve(entry))
            else:
                chain.append(ResolvedMiddleware(entry_name(entry), entry))
        return tuple(chain)

    def run(self, entries: Sequence[Any], context: RequestContext) -> ErrorResult | None:
        """Run the chain; return the first error, or ``None`` if every middleware passed."""
        for mw in self.build(entries):
            try:
                result = _coerce(mw.name, ensure_sync(mw(context), f"Middleware {mw.name!r}"))
            except Exception as exc:
                result = _from_exception(mw.name, exc)
            if result is not None:
                logger.debug("%s rejected %s %s (%d)", mw.name, context.method, context.path, result.status)
                return result
        return None

    async def arun(self, entries: Sequence[Any], context: RequestContext) -> ErrorResult | None:
        """Async twin of ``run``: awaits middleware that return awaitables."""
        for mw in self.build(entries):
            try:
                result = _coerce(mw.name, await mw.acall(context))
            except Exception as exc:
                result = _from_exception(mw.name, exc)
            if result is not None:
                logger.debug("%s rejected %s %s (%d)", mw.name, context.method, context.path, result.status)
                return result
        return None
