"""Validation result — the input as given, or errors. Never both."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from junction.results import ErrorResult, validation_failed


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """The outcome of validating input against a rule set.

    The result is falsy when invalid, so you can write::

        result = validator.validate(data, rules)
        if not result:
            return result.to_error()

    ``data`` is the input exactly as passed in (validation never coerces
    or mutates values) and is ``None`` when validation failed.

    ``errors`` maps field names to their messages, in rule order::

        {"name": ["The name field is required.",
                  "The name field must be at least 3."]}
    """

    data: Mapping[str, Any] | None
    errors: dict[str, list[str]]

    @property
    def is_valid(self) -> bool:
        """True if validation passed with no errors."""
        return not self.errors

    def __bool__(self) -> bool:
        return self.is_valid

    def passes(self) -> bool:
        return self.is_valid

    def fails(self) -> bool:
        return not self.is_valid

    def first(self, field: str) -> str | None:
        """The first message for *field*, if any."""
        messages = self.errors.get(field)
        return messages[0] if messages else None

    def to_error(self) -> ErrorResult:
        """A 422 ``ErrorResult`` carrying the field errors."""
        return validation_failed({field: list(msgs) for field, msgs in self.errors.items()})
