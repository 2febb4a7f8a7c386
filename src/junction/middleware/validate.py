"""Validation middleware — ``validate:<rule set>``.

Validates the request's input against a named rule set and stops the
pipeline with a 422 when it fails. GET and HEAD requests are validated
against query and path parameters only; other methods against all input.
"""

from typing import Any

from junction.request import RequestContext
from junction.results import ErrorResult
from junction.validation import CompiledRuleSet, RuleSet, Validator

_QUERY_ONLY = frozenset({"GET", "HEAD"})


def input_for(context: RequestContext) -> dict[str, Any]:
    """The data a request's rules are checked against."""
    data = context.all()
    if context.method.upper() not in _QUERY_ONLY:
        return data
    # all() merges the body last; rebuild from query and path params only
    merged: dict[str, Any] = {}
    for key in data:
        value = context.path_param(key)
        if value is None:
            value = context.query_param(key)
        if value is not None:
            merged[key] = value
    return merged


class ValidationMiddleware:
    """Reject requests whose input fails *rule_set*."""

    __slots__ = ("rule_set", "validator")

    def __init__(self, rule_set: RuleSet | CompiledRuleSet, validator: Validator) -> None:
        self.validator = validator
        self.rule_set = validator.compile(rule_set)

    def handle(self, context: RequestContext) -> ErrorResult | None:
        result = self.validator.validate(input_for(context), self.rule_set)
        if not result:
            return result.to_error()
        return None
