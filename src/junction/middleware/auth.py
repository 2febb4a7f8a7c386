"""Authentication and authorization middleware.

``auth`` rejects anonymous callers with 401. ``capability:X`` rejects
anonymous callers with 401 and authenticated callers lacking ``X`` with
403. Both read the caller through the ``RequestContext`` only; how the
caller was identified is the transport's business.
"""

from junction.request import RequestContext
from junction.results import ErrorResult, rejected


class AuthMiddleware:
    """Require an authenticated caller."""

    __slots__ = ()

    name = "auth"

    def handle(self, context: RequestContext) -> ErrorResult | None:
        if not context.caller_is_authenticated():
            return rejected("You are not currently logged in.", 401)
        return None


class CapabilityMiddleware:
    """Require the caller to hold a capability."""

    __slots__ = ("capability",)

    def __init__(self, capability: str = "read") -> None:
        self.capability = capability

    @property
    def name(self) -> str:
        return f"capability:{self.capability}"

    def handle(self, context: RequestContext) -> ErrorResult | None:
        if not context.caller_is_authenticated():
            return rejected("Authentication required", 401)
        if not context.caller_has_capability(self.capability):
            return rejected(f'You need the "{self.capability}" capability to access this resource', 403)
        return None
