"""Controller base — helpers for ``"Class@method"`` handlers.

Subclassing is optional; any class works as a controller. The helpers
return ``Ok`` and ``ErrorResult`` values the dispatcher passes through
unchanged. Controllers are instantiated once and shared across requests,
so they take the request as an argument rather than storing it.

Usage::

    class PostController(Controller):
        def index(self, request):
            posts = load_posts()
            page = self.pagination(request)
            return self.success(self.paginate(posts, page["page"], page["per_page"]))

        def store(self, request):
            data = self.validate(request, {"title": "required|max:200"})
            if isinstance(data, ErrorResult):
                return data
            return self.success(create_post(data), "Created", 201)
"""

import math
from collections.abc import Mapping, Sequence
from typing import Any

from junction.context import current_validator
from junction.request import RequestContext
from junction.results import ErrorKind, ErrorResult, Ok, validation_failed
from junction.validation import Validator


class Controller:
    per_page = 10
    max_per_page = 100
    validator: Validator | None = None

    # -- Responses --

    def success(self, data: Any = None, message: str = "Success", status: int = 200) -> Ok:
        payload: dict[str, Any] = {"success": True, "message": message}
        if data is not None:
            payload["data"] = data
        return Ok(payload, status)

    def error(self, message: str, status: int = 400) -> ErrorResult:
        return ErrorResult(kind=ErrorKind.HANDLER_ERROR, message=message, status=status)

    def validation_error(self, errors: dict[str, list[str]]) -> ErrorResult:
        return validation_failed(errors)

    def not_found(self, resource: str = "Resource") -> ErrorResult:
        return ErrorResult(kind=ErrorKind.HANDLER_ERROR, message=f"{resource} not found", status=404)

    def forbidden(self, message: str = "Access denied") -> ErrorResult:
        return ErrorResult(kind=ErrorKind.MIDDLEWARE_REJECTED, message=message, status=403)

    def unauthorized(self) -> ErrorResult:
        return ErrorResult(kind=ErrorKind.MIDDLEWARE_REJECTED, message="Authentication required", status=401)

    # -- Checks --

    def authorize(self, context: RequestContext, capability: str) -> ErrorResult | None:
        """``None`` if the caller holds *capability*, else a 401 or 403."""
        if not context.caller_is_authenticated():
            return self.unauthorized()
        if not context.caller_has_capability(capability):
            return self.forbidden()
        return None

    def validate(
        self,
        context: RequestContext,
        rules: Mapping[str, Any],
        messages: Mapping[str, str] | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> Mapping[str, Any] | ErrorResult:
        """The request's input if it passes *rules*, else a 422."""
        validator = self.validator or current_validator()
        data = context.all()
        result = validator.validate(data, rules, messages, attributes)
        if not result:
            return result.to_error()
        return data

    # -- Pagination --

    def pagination(self, context: RequestContext) -> dict[str, int]:
        """``page``, ``per_page`` and ``offset`` from the query string, clamped."""
        page = max(1, _to_int(context.query_param("page"), 1))
        per_page = min(self.max_per_page, max(1, _to_int(context.query_param("per_page"), self.per_page)))
        return {"page": page, "per_page": per_page, "offset": (page - 1) * per_page}

    def paginate(
        self,
        items: Sequence[Any],
        page: int = 1,
        per_page: int | None = None,
        *,
        total: int | None = None,
    ) -> dict[str, Any]:
        """Wrap one page of *items* with pagination metadata.

        Without *total*, *items* is the whole collection and is sliced
        here; with it, *items* is already the requested page.
        """
        per_page = per_page or self.per_page
        page = max(1, page)
        if total is None:
            total = len(items)
            start = (page - 1) * per_page
            items = items[start : start + per_page]
        total_pages = math.ceil(total / per_page) if per_page else 0
        return {
            "data": list(items),
            "pagination": {
                "current_page": page,
                "per_page": per_page,
                "total_items": total,
                "total_pages": total_pages,
                "has_next": page < total_pages,
                "has_prev": page > 1,
            },
        }


def _to_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
