"""Validator — runs a rule set over input data.

Fields are independent: every field is checked and every failing rule
contributes one message. Within a field, rules run in declared order;
a ``nullable`` field whose value is absent skips its remaining rules.

The validator holds no per-call state, so one instance can be shared by
every request.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from junction.errors import ConfigurationError
from junction.validation.messages import render, replacements, resolve_template
from junction.validation.parser import RuleInput, RuleSpec, parse_rule_set
from junction.validation.paths import get_path
from junction.validation.result import ValidationResult
from junction.validation.rules import RULES, RuleName, StoreQuery, Subject

logger = logging.getLogger("junction.validation")

_STORE_RULES = frozenset({RuleName.EXISTS, RuleName.UNIQUE})


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Rules plus their custom messages and attribute labels.

    ``rules`` maps dot-path field names to ``"a|b:1"`` strings or lists.
    """

    rules: Mapping[str, RuleInput]
    messages: Mapping[str, str] = field(default_factory=dict)
    attributes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CompiledRuleSet:
    """A rule set with every field's rules parsed."""

    fields: Mapping[str, tuple[RuleSpec, ...]]
    messages: Mapping[str, str] = field(default_factory=dict)
    attributes: Mapping[str, str] = field(default_factory=dict)


class Validator:
    """Validates mappings against rule sets.

    Usage::

        validator = Validator()
        result = validator.validate(
            {"name": "", "email": "a@example.com"},
            {"name": "required|min:3", "email": "required|email"},
        )
        result.errors
        # {"name": ["The name field is required.",
        #           "The name field must be at least 3."]}

    ``store`` answers ``exists`` and ``unique``. With ``strict=True``,
    unknown rule names raise ``ConfigurationError`` instead of being
    skipped.
    """

    __slots__ = ("store", "strict")

    def __init__(self, store: StoreQuery | None = None, *, strict: bool = False) -> None:
        self.store = store
        self.strict = strict

    def compile(
        self,
        rules: Mapping[str, RuleInput] | RuleSet | CompiledRuleSet,
        messages: Mapping[str, str] | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> CompiledRuleSet:
        """Parse *rules* once so they can be reused across requests.

        Raises ``ConfigurationError`` for malformed rules, for unknown
        rules in strict mode, and for store-backed rules without a store.
        """
        if isinstance(rules, CompiledRuleSet):
            compiled = rules
        else:
            if isinstance(rules, RuleSet):
                messages = {**rules.messages, **(messages or {})}
                attributes = {**rules.attributes, **(attributes or {})}
                rules = rules.rules
            compiled = CompiledRuleSet(
                fields=parse_rule_set(rules, strict=self.strict),
                messages=dict(messages or {}),
                attributes=dict(attributes or {}),
            )
        if self.store is None:
            for name, specs in compiled.fields.items():
                for spec in specs:
                    if spec.rule in _STORE_RULES:
                        msg = f"Rule {spec!s} on {name!r} needs a StoreQuery; pass store= to Validator"
                        raise ConfigurationError(msg)
        return compiled

    def validate(
        self,
        data: Mapping[str, Any],
        rules: Mapping[str, RuleInput] | RuleSet | CompiledRuleSet,
        messages: Mapping[str, str] | None = None,
        attributes: Mapping[str, str] | None = None,
    ) -> ValidationResult:
        """Check *data* against *rules*; see ``ValidationResult``."""
        compiled = self.compile(rules, messages, attributes)
        errors: dict[str, list[str]] = {}

        for name, specs in compiled.fields.items():
            field_errors = self._check_field(name, specs, data, compiled)
            if field_errors:
                errors[name] = field_errors

        if errors:
            logger.debug("validation failed for %s", ", ".join(errors))
            return ValidationResult(data=None, errors=errors)
        return ValidationResult(data=data, errors={})

    def _check_field(
        self,
        name: str,
        specs: tuple[RuleSpec, ...],
        data: Mapping[str, Any],
        compiled: CompiledRuleSet,
    ) -> list[str]:
        value = get_path(data, name)
        messages: list[str] = []
        for spec in specs:
            if spec.rule is RuleName.NULLABLE and value is None:
                break
            if spec.check is not None:
                custom = spec.check(value)
                if custom is not None:
                    template = compiled.messages.get(f"{name}.{spec.name}") or custom
                    messages.append(self._render(template, name, value, spec, compiled))
                continue
            if spec.rule is None:
                continue
            subject = Subject(field=name, value=value, params=spec.params, data=data, store=self.store)
            if not RULES[spec.rule](subject):
                template = resolve_template(name, spec.name, compiled.messages)
                messages.append(self._render(template, name, value, spec, compiled))
        return messages

    @staticmethod
    def _render(template: str, name: str, value: Any, spec: RuleSpec, compiled: CompiledRuleSet) -> str:
        return render(template, replacements(name, value, spec.params, compiled.attributes))


def validate(
    data: Mapping[str, Any],
    rules: Mapping[str, RuleInput] | RuleSet,
    messages: Mapping[str, str] | None = None,
    attributes: Mapping[str, str] | None = None,
    *,
    store: StoreQuery | None = None,
    strict: bool = False,
) -> ValidationResult:
    """One-shot validation with a fresh ``Validator``."""
    return Validator(store, strict=strict).validate(data, rules, messages, attributes)
