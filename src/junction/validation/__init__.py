"""Input validation — rule strings, clean results.

Usage::

    from junction.validation import validate

    result = validate(request.all(), {
        "title": "required|max:200",
        "email": "required|email",
        "password": "required|min:8|confirmed",
    })
    if not result:
        return result.to_error()   # 422 with field errors
"""

from junction.validation.form_request import FormRequest
from junction.validation.parser import RuleSpec, parse_rule_set, parse_rules
from junction.validation.paths import get_path
from junction.validation.result import ValidationResult
from junction.validation.rules import RULES, RuleName, StoreQuery
from junction.validation.validator import CompiledRuleSet, RuleSet, Validator, validate

__all__ = [
    "RULES",
    "CompiledRuleSet",
    "FormRequest",
    "RuleName",
    "RuleSet",
    "RuleSpec",
    "StoreQuery",
    "ValidationResult",
    "Validator",
    "get_path",
    "parse_rule_set",
    "parse_rules",
    "validate",
]
