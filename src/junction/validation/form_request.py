"""Form requests — a request's validation and authorization in one class.

Usage::

    class StorePost(FormRequest):
        def rules(self):
            return {"title": "required|max:200", "body": "required"}

        def authorize(self, context):
            return context.caller_has_capability("edit_posts")

    def store(request):
        data = StorePost(request).validated()   # raises ValidationError
        ...
"""

from collections.abc import Iterable, Mapping
from typing import Any

from junction.context import current_validator
from junction.errors import ValidationError
from junction.request import RequestContext
from junction.results import ErrorKind, ErrorResult
from junction.validation.parser import RuleInput
from junction.validation.validator import Validator


class FormRequest:
    """Base class; subclasses implement ``rules()``."""

    unauthorized_message = "This action is unauthorized."

    def __init__(self, context: RequestContext, validator: Validator | None = None) -> None:
        self.context = context
        self.validator = validator or current_validator()

    def rules(self) -> Mapping[str, RuleInput]:
        raise NotImplementedError

    def messages(self) -> Mapping[str, str]:
        return {}

    def attributes(self) -> Mapping[str, str]:
        return {}

    def authorize(self, context: RequestContext) -> bool:
        return True

    def prepare_for_validation(self, data: dict[str, Any]) -> dict[str, Any]:
        """Hook: return the data to validate. Must not mutate the request."""
        return data

    # -- Input access --

    def all(self) -> dict[str, Any]:
        return self.context.all()

    def input(self, key: str | None = None, default: Any = None) -> Any:
        data = self.all()
        if key is None:
            return data
        return data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self.all()

    def only(self, keys: Iterable[str]) -> dict[str, Any]:
        data = self.all()
        return {k: data[k] for k in keys if k in data}

    def except_(self, keys: Iterable[str]) -> dict[str, Any]:
        excluded = set(keys)
        return {k: v for k, v in self.all().items() if k not in excluded}

    # -- Validation --

    def validate(self) -> Mapping[str, Any] | ErrorResult:
        """Return the validated data, or an ``ErrorResult`` (403 or 422)."""
        if not self.authorize(self.context):
            return ErrorResult(kind=ErrorKind.MIDDLEWARE_REJECTED, message=self.unauthorized_message, status=403)
        data = self.prepare_for_validation(self.all())
        result = self.validator.validate(data, self.rules(), self.messages(), self.attributes())
        if not result:
            return result.to_error()
        return data

    def validated(self) -> Mapping[str, Any]:
        """Like ``validate`` but raises ``ValidationError`` on failure."""
        outcome = self.validate()
        if isinstance(outcome, ErrorResult):
            raise ValidationError(outcome)
        return outcome
