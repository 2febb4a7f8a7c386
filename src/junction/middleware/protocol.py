"""Middleware protocol.

A middleware is any object with a ``handle`` method, or any plain
callable, matching::

    def handle(context: RequestContext) -> ErrorResult | None: ...

``None`` lets the request continue; an ``ErrorResult`` stops the
pipeline and is returned to the host as-is. No base class required.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from junction.request import RequestContext
from junction.results import ErrorResult


@runtime_checkable
class Middleware(Protocol):
    """Protocol for junction middleware.

    Accepts both classes and functions::

        # Class middleware
        class RequireBeta:
            def handle(self, context: RequestContext) -> ErrorResult | None:
                if context.header("x-beta") != "1":
                    return rejected("Beta only", 403)
                return None

        # Function middleware
        def require_beta(context: RequestContext) -> ErrorResult | None:
            ...
    """

    def handle(self, context: RequestContext) -> ErrorResult | None: ...


# A registered factory: called with the spec's parameters, returns the middleware
type MiddlewareFactory = Callable[..., Middleware | Callable[[RequestContext], Any]]
