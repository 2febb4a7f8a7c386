"""Junction exception hierarchy.

Shared across Router, App, pipeline, and validator so every module
raises and catches the same types. Nothing in this module crosses the
dispatch boundary: the dispatcher converts ``HTTPError`` subclasses
into ``ErrorResult`` values before returning to the host.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from junction.results import ErrorResult


class JunctionError(Exception):
    """Base for all junction-specific errors."""


class ConfigurationError(JunctionError):
    """Raised when routes, middleware, or rule sets are misconfigured.

    Typically raised while registering or during ``App._freeze()`` at
    startup, never at request time.
    """


class UnknownMiddleware(ConfigurationError):  # noqa: N818 — named after the error kind
    """A middleware spec names something the registry cannot resolve."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown middleware {name!r}. Register it with app.middleware_registry.register().")


class MalformedMiddlewareSpec(ConfigurationError):
    """A middleware spec string could not be parsed."""


class UnresolvableUrl(ConfigurationError):  # noqa: N818 — named after the error kind
    """``url_for`` could not build a URL.

    Raised when no route carries the name, or when a required path
    parameter was not supplied.
    """

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail or f"No route named {name!r}"
        super().__init__(self.detail)


class UnresolvableApp(ConfigurationError):  # noqa: N818 — named after the error kind
    """A ``"module:attribute"`` string did not lead to an ``App``."""

    def __init__(self, import_string: str, detail: str) -> None:
        self.import_string = import_string
        super().__init__(f"Cannot load app {import_string!r}: {detail}")


class DuplicateRouteName(ConfigurationError):
    """Two routes of the same route type share a name."""


class ValidationError(JunctionError):
    """Raised by ``FormRequest.validated()`` when input is unauthorized or invalid.

    Carries the ``ErrorResult`` the dispatcher returns in its place.
    """

    def __init__(self, result: "ErrorResult") -> None:
        self.result = result
        super().__init__(result.message)


@dataclass(frozen=True, slots=True)
class HTTPError(JunctionError):
    """An error that maps directly to an HTTP status code.

    Raised by the router or by handlers. The dispatcher catches these
    and turns them into ``ErrorResult`` values.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods and embeds
    the allowed methods in the detail string for developer visibility.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
