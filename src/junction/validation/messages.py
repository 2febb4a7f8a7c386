"""Error message templates and rendering.

Message precedence for a failed rule on a field:

1. ``messages["<field>.<rule>"]``
2. ``messages["<rule>"]``
3. the rule's default template
4. ``"The :attribute is invalid."``

Placeholders: ``:attribute`` (the field label), ``:value``, ``:other``,
``:min``, ``:max``, ``:size``, ``:values``, and the positional ``:0``,
``:1``... for the rule's parameters.
"""

import re
from collections.abc import Mapping
from typing import Any

from junction.validation.rules import RuleName

FALLBACK = "The :attribute is invalid."

TEMPLATES: Mapping[RuleName, str] = {
    RuleName.ACCEPTED: "The :attribute field must be accepted.",
    RuleName.ALPHA: "The :attribute field must contain only letters.",
    RuleName.ALPHA_DASH: "The :attribute field must contain only letters, numbers, dashes, and underscores.",
    RuleName.ALPHA_NUM: "The :attribute field must contain only letters and numbers.",
    RuleName.ARRAY: "The :attribute field must be an array.",
    RuleName.BETWEEN: "The :attribute field must be between :min and :max.",
    RuleName.BOOLEAN: "The :attribute field must be true or false.",
    RuleName.CONFIRMED: "The :attribute field confirmation does not match.",
    RuleName.DATE: "The :attribute field must be a valid date.",
    RuleName.DATE_FORMAT: "The :attribute field must match the format :0.",
    RuleName.DIFFERENT: "The :attribute field and :other must be different.",
    RuleName.DIGITS: "The :attribute field must be :0 digits.",
    RuleName.DIGITS_BETWEEN: "The :attribute field must be between :min and :max digits.",
    RuleName.EMAIL: "The :attribute field must be a valid email address.",
    RuleName.ENDS_WITH: "The :attribute field must end with one of the following: :values",
    RuleName.EXISTS: "The selected :attribute is invalid.",
    RuleName.FILLED: "The :attribute field must have a value.",
    RuleName.GT: "The :attribute field must be greater than :0.",
    RuleName.GTE: "The :attribute field must be greater than or equal to :0.",
    RuleName.IN: "The selected :attribute is invalid.",
    RuleName.INTEGER: "The :attribute field must be an integer.",
    RuleName.IP: "The :attribute field must be a valid IP address.",
    RuleName.IPV4: "The :attribute field must be a valid IPv4 address.",
    RuleName.IPV6: "The :attribute field must be a valid IPv6 address.",
    RuleName.JSON: "The :attribute field must be a valid JSON string.",
    RuleName.LOWERCASE: "The :attribute field must be lowercase.",
    RuleName.LT: "The :attribute field must be less than :0.",
    RuleName.LTE: "The :attribute field must be less than or equal to :0.",
    RuleName.MAX: "The :attribute field must not be greater than :max.",
    RuleName.MIN: "The :attribute field must be at least :min.",
    RuleName.NOT_IN: "The selected :attribute is invalid.",
    RuleName.NOT_REGEX: "The :attribute field format is invalid.",
    RuleName.NUMERIC: "The :attribute field must be a number.",
    RuleName.PRESENT: "The :attribute field must be present.",
    RuleName.REGEX: "The :attribute field format is invalid.",
    RuleName.REQUIRED: "The :attribute field is required.",
    RuleName.REQUIRED_IF: "The :attribute field is required when :other is :1.",
    RuleName.REQUIRED_UNLESS: "The :attribute field is required unless :other is in :rest.",
    RuleName.REQUIRED_WITH: "The :attribute field is required when :fields is present.",
    RuleName.REQUIRED_WITH_ALL: "The :attribute field is required when :fields are present.",
    RuleName.REQUIRED_WITHOUT: "The :attribute field is required when :fields is not present.",
    RuleName.REQUIRED_WITHOUT_ALL: "The :attribute field is required when none of :fields are present.",
    RuleName.SAME: "The :attribute field and :other must match.",
    RuleName.SIZE: "The :attribute field must be :size.",
    RuleName.SLUG: "The :attribute field must be a valid slug.",
    RuleName.STARTS_WITH: "The :attribute field must start with one of the following: :values",
    RuleName.STRING: "The :attribute field must be a string.",
    RuleName.TIMEZONE: "The :attribute field must be a valid timezone.",
    RuleName.UNIQUE: "The :attribute has already been taken.",
    RuleName.UPPERCASE: "The :attribute field must be uppercase.",
    RuleName.URL: "The :attribute field must be a valid URL.",
    RuleName.UUID: "The :attribute field must be a valid UUID.",
}

_PLACEHOLDER_RE = re.compile(r":([A-Za-z_]+|\d+)")


def label(field: str, attributes: Mapping[str, str] | None = None) -> str:
    """Human label for *field*: a custom attribute name or the field with spaces."""
    if attributes and field in attributes:
        return attributes[field]
    return field.replace("_", " ")


def _value_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return str(value)


def replacements(
    field: str,
    value: Any,
    params: tuple[str, ...],
    attributes: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Placeholder values for one failed rule."""
    values = {
        "attribute": label(field, attributes),
        "value": _value_text(value),
        "values": ", ".join(params),
        "fields": " / ".join(label(p, attributes) for p in params),
        "rest": ", ".join(params[1:]),
    }
    if params:
        values["other"] = label(params[0], attributes)
        values["min"] = params[0]
        values["max"] = params[1] if len(params) > 1 else params[0]
        values["size"] = params[0]
    for index, param in enumerate(params):
        values[str(index)] = param
    return values


def render(template: str, values: Mapping[str, str]) -> str:
    """Substitute ``:name`` placeholders; unknown ones are left as written."""
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def resolve_template(
    field: str,
    rule: str,
    messages: Mapping[str, str] | None = None,
) -> str:
    """Pick the message template for *rule* on *field* by precedence."""
    if messages:
        custom = messages.get(f"{field}.{rule}") or messages.get(rule)
        if custom:
            return custom
    try:
        return TEMPLATES.get(RuleName(rule), FALLBACK)
    except ValueError:
        return FALLBACK
