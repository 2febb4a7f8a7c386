"""Dispatch results — the tagged value handed back to the host.

The core never renders responses. It returns either ``Ok`` (the handler's
payload) or ``ErrorResult`` (what went wrong, with a suggested status),
and the host turns that into a JSON body, a page, or an admin notice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """Every way a dispatch can fail."""

    ROUTE_NOT_FOUND = "route_not_found"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    MIDDLEWARE_REJECTED = "middleware_rejected"
    VALIDATION_FAILED = "validation_failed"
    UNKNOWN_MIDDLEWARE = "unknown_middleware"
    UNRESOLVABLE_URL = "unresolvable_url"
    HANDLER_ERROR = "handler_error"


@dataclass(frozen=True, slots=True)
class Ok:
    """A successful dispatch. ``payload`` is whatever the handler returned."""

    payload: Any = None
    status: int = 200
    headers: tuple[tuple[str, str], ...] = ()

    @property
    def ok(self) -> bool:
        return True

    def with_header(self, name: str, value: str) -> Ok:
        """Return a copy with an extra header."""
        return Ok(self.payload, self.status, (*self.headers, (name, value)))

    def to_dict(self) -> dict[str, Any]:
        return {"ok": self.payload}


@dataclass(frozen=True, slots=True)
class ErrorResult:
    """A failed dispatch.

    ``field_errors`` is set for validation failures, ``middleware`` names
    the middleware that rejected the request, and ``error`` keeps the
    original exception for handler failures (for logging; it is never
    serialized by ``to_dict``).
    """

    kind: ErrorKind
    message: str
    status: int
    field_errors: dict[str, list[str]] | None = None
    middleware: str | None = None
    headers: tuple[tuple[str, str], ...] = ()
    error: BaseException | None = field(default=None, compare=False, repr=False)

    @property
    def ok(self) -> bool:
        return False

    def with_middleware(self, name: str) -> ErrorResult:
        """Return a copy attributed to the middleware *name*."""
        return ErrorResult(
            kind=self.kind,
            message=self.message,
            status=self.status,
            field_errors=self.field_errors,
            middleware=name,
            headers=self.headers,
            error=self.error,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation: ``{"error": kind, "message", "status", ...}``."""
        data: dict[str, Any] = {
            "error": str(self.kind),
            "message": self.message,
            "status": self.status,
        }
        if self.field_errors is not None:
            data["field_errors"] = self.field_errors
        if self.middleware is not None:
            data["middleware"] = self.middleware
        return data


type Result = Ok | ErrorResult


def rejected(message: str, status: int = 403, *, headers: tuple[tuple[str, str], ...] = ()) -> ErrorResult:
    """Shorthand used by middleware to stop the pipeline."""
    return ErrorResult(
        kind=ErrorKind.MIDDLEWARE_REJECTED,
        message=message,
        status=status,
        headers=headers,
    )


def validation_failed(field_errors: dict[str, list[str]], message: str = "Validation failed") -> ErrorResult:
    """Shorthand for a 422 carrying per-field messages."""
    return ErrorResult(
        kind=ErrorKind.VALIDATION_FAILED,
        message=message,
        status=422,
        field_errors=field_errors,
    )
