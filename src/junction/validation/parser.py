"""Rule-set parsing.

A field's rules are written as ``"required|min:3"`` or as a list of
tokens (``["required", "min:3"]``). A token is ``name`` or
``name:p1,p2``. ``regex`` and ``not_regex`` keep everything after the
first colon as their single parameter, so list-form patterns may contain
commas and pipes.

Parsing resolves names against ``RuleName`` once. Unknown names are
kept with ``rule=None`` and skipped during validation, unless parsing is
strict, in which case they raise ``ConfigurationError``. Callables
``(value) -> str | None`` are accepted as custom rules.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from junction.errors import ConfigurationError
from junction.validation.rules import RuleName, compile_regex

logger = logging.getLogger("junction.validation")

type CustomRule = Callable[[Any], str | None]
type RuleInput = str | Iterable[str | RuleSpec | CustomRule]

# rule -> (min params, max params or None for unbounded)
_ARITY: dict[RuleName, tuple[int, int | None]] = {
    RuleName.BETWEEN: (2, 2),
    RuleName.DATE_FORMAT: (1, 1),
    RuleName.DIFFERENT: (1, 1),
    RuleName.DIGITS: (1, 1),
    RuleName.DIGITS_BETWEEN: (2, 2),
    RuleName.ENDS_WITH: (1, None),
    RuleName.EXISTS: (1, 2),
    RuleName.GT: (1, 1),
    RuleName.GTE: (1, 1),
    RuleName.IN: (1, None),
    RuleName.LT: (1, 1),
    RuleName.LTE: (1, 1),
    RuleName.MAX: (1, 1),
    RuleName.MIN: (1, 1),
    RuleName.NOT_IN: (1, None),
    RuleName.NOT_REGEX: (1, 1),
    RuleName.REGEX: (1, 1),
    RuleName.REQUIRED_IF: (2, None),
    RuleName.REQUIRED_UNLESS: (2, None),
    RuleName.REQUIRED_WITH: (1, None),
    RuleName.REQUIRED_WITH_ALL: (1, None),
    RuleName.REQUIRED_WITHOUT: (1, None),
    RuleName.REQUIRED_WITHOUT_ALL: (1, None),
    RuleName.SAME: (1, 1),
    RuleName.SIZE: (1, 1),
    RuleName.STARTS_WITH: (1, None),
    RuleName.UNIQUE: (1, 3),
}

_NUMERIC_PARAMS = frozenset({
    RuleName.BETWEEN,
    RuleName.DIGITS,
    RuleName.DIGITS_BETWEEN,
    RuleName.MAX,
    RuleName.MIN,
    RuleName.SIZE,
})

_WHOLE_PARAM = frozenset({"regex", "not_regex"})


@dataclass(frozen=True, slots=True)
class RuleSpec:
    """One parsed rule: its name, parameters, and what it resolved to.

    ``rule`` is ``None`` for unknown names. ``check`` is set instead of
    ``rule`` for custom callables.
    """

    name: str
    params: tuple[str, ...] = ()
    rule: RuleName | None = None
    check: CustomRule | None = None

    @property
    def known(self) -> bool:
        return self.rule is not None or self.check is not None

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}:{','.join(self.params)}"


def _check_params(rule: RuleName, params: tuple[str, ...]) -> None:
    low, high = _ARITY.get(rule, (0, None))
    if len(params) < low or (high is not None and len(params) > high):
        expected = str(low) if low == high else f"at least {low}" if high is None else f"{low}-{high}"
        msg = f"Rule {rule!s} takes {expected} parameter(s), got {len(params)}"
        raise ConfigurationError(msg)
    if rule in _NUMERIC_PARAMS:
        for param in params:
            try:
                float(param)
            except ValueError:
                msg = f"Rule {rule!s} needs numeric parameters, got {param!r}"
                raise ConfigurationError(msg) from None
    if rule in (RuleName.REGEX, RuleName.NOT_REGEX):
        compile_regex(params[0])


def parse_token(token: str, *, strict: bool = False) -> RuleSpec:
    """Parse one ``name`` or ``name:p1,p2`` token."""
    name, sep, raw = token.strip().partition(":")
    name = name.strip()
    if not name:
        msg = f"Empty rule name in {token!r}"
        raise ConfigurationError(msg)
    if not sep:
        params: tuple[str, ...] = ()
    elif name in _WHOLE_PARAM:
        params = (raw,)
    else:
        params = tuple(p.strip() for p in raw.split(","))

    try:
        rule = RuleName(name)
    except ValueError:
        if strict:
            msg = f"Unknown validation rule {name!r}"
            raise ConfigurationError(msg) from None
        logger.debug("Unknown validation rule %r will be skipped", name)
        return RuleSpec(name, params)

    _check_params(rule, params)
    return RuleSpec(name, params, rule)


def parse_rules(rules: RuleInput, *, strict: bool = False) -> tuple[RuleSpec, ...]:
    """Parse one field's rules, in declared order."""
    if isinstance(rules, str):
        tokens: Iterable[Any] = (t for t in rules.split("|") if t.strip())
    else:
        tokens = rules

    parsed: list[RuleSpec] = []
    for token in tokens:
        if isinstance(token, RuleSpec):
            parsed.append(token)
        elif isinstance(token, str):
            parsed.append(parse_token(token, strict=strict))
        elif callable(token):
            name = getattr(token, "__name__", "custom")
            parsed.append(RuleSpec(name, check=token))
        else:
            msg = f"Cannot parse validation rule {token!r}"
            raise ConfigurationError(msg)
    return tuple(parsed)


def parse_rule_set(
    rules: Mapping[str, RuleInput], *, strict: bool = False
) -> dict[str, tuple[RuleSpec, ...]]:
    """Parse every field of a rule set, preserving field order."""
    return {field: parse_rules(field_rules, strict=strict) for field, field_rules in rules.items()}
