"""Built-in validation rules.

Every rule is a plain function with the signature::

    def rule(subject: Subject) -> bool:
        '''Return True if the value passes.'''

``Subject`` carries the value under test, the rule's parameters, and the
whole input so cross-field rules can read siblings. Rules are looked up
through ``RULES``, keyed by the closed ``RuleName`` enumeration; a name
outside it is an unknown rule.

Format rules (``email``, ``url``, ``alpha``...) pass on ``None`` so that a
missing optional field only fails ``required``-style rules. Sizing rules
(``min``, ``max``, ``between``, ``size``) measure strings by length,
numbers by magnitude, and collections by element count, in that order.
"""

import ipaddress
import json
import re
import zoneinfo
from collections.abc import Callable, Mapping, Sequence, Set
from dataclasses import dataclass
from datetime import date, datetime
from enum import StrEnum
from functools import lru_cache
from typing import Any, Protocol, runtime_checkable
from urllib.parse import urlsplit

from junction.errors import ConfigurationError
from junction.validation.paths import get_path, has_path


class RuleName(StrEnum):
    ACCEPTED = "accepted"
    ALPHA = "alpha"
    ALPHA_DASH = "alpha_dash"
    ALPHA_NUM = "alpha_num"
    ARRAY = "array"
    BETWEEN = "between"
    BOOLEAN = "boolean"
    CONFIRMED = "confirmed"
    DATE = "date"
    DATE_FORMAT = "date_format"
    DIFFERENT = "different"
    DIGITS = "digits"
    DIGITS_BETWEEN = "digits_between"
    EMAIL = "email"
    ENDS_WITH = "ends_with"
    EXISTS = "exists"
    FILLED = "filled"
    GT = "gt"
    GTE = "gte"
    IN = "in"
    INTEGER = "integer"
    IP = "ip"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    JSON = "json"
    LOWERCASE = "lowercase"
    LT = "lt"
    LTE = "lte"
    MAX = "max"
    MIN = "min"
    NOT_IN = "not_in"
    NOT_REGEX = "not_regex"
    NULLABLE = "nullable"
    NUMERIC = "numeric"
    PRESENT = "present"
    REGEX = "regex"
    REQUIRED = "required"
    REQUIRED_IF = "required_if"
    REQUIRED_UNLESS = "required_unless"
    REQUIRED_WITH = "required_with"
    REQUIRED_WITH_ALL = "required_with_all"
    REQUIRED_WITHOUT = "required_without"
    REQUIRED_WITHOUT_ALL = "required_without_all"
    SAME = "same"
    SIZE = "size"
    SLUG = "slug"
    STARTS_WITH = "starts_with"
    STRING = "string"
    TIMEZONE = "timezone"
    UNIQUE = "unique"
    UPPERCASE = "uppercase"
    URL = "url"
    UUID = "uuid"


@runtime_checkable
class StoreQuery(Protocol):
    """Persistence lookups for ``exists`` and ``unique``."""

    def count(self, table: str, column: str, value: Any, exclude_id: Any = None) -> int: ...


@dataclass(frozen=True, slots=True)
class Subject:
    """One rule applied to one field."""

    field: str
    value: Any
    params: tuple[str, ...]
    data: Mapping[str, Any]
    store: StoreQuery | None = None

    def other(self, path: str) -> Any:
        return get_path(self.data, path)


type RuleFunc = Callable[[Subject], bool]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_empty(value: Any) -> bool:
    """``None``, ``""`` and empty collections count as empty."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (Sequence, Mapping, Set)):
        return len(value) == 0
    return False


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if isinstance(value, str):
        try:
            float(value.strip())
        except ValueError:
            return False
        return value.strip() != ""
    return False


def size_of(value: Any) -> float | None:
    """Length of a string, magnitude of a number, count of a collection."""
    if isinstance(value, str):
        return len(value)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, (Sequence, Mapping, Set)):
        return len(value)
    return None


def _as_text(value: Any) -> str:
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return ""
    return str(value)


_DELIMITED_RE = re.compile(r"^/(.*)/([imsxu]*)$", re.DOTALL)
_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE, "u": 0}


@lru_cache(maxsize=256)
def compile_regex(pattern: str) -> re.Pattern[str]:
    """Compile a rule pattern; ``/body/flags`` delimiters are accepted."""
    flags = 0
    delimited = _DELIMITED_RE.match(pattern)
    if delimited:
        pattern = delimited.group(1)
        for flag in delimited.group(2):
            flags |= _FLAGS[flag]
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        msg = f"Invalid regex rule {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc


# ---------------------------------------------------------------------------
# Presence
# ---------------------------------------------------------------------------


def required(s: Subject) -> bool:
    return not is_empty(s.value)


def present(s: Subject) -> bool:
    return has_path(s.data, s.field)


def filled(s: Subject) -> bool:
    if not has_path(s.data, s.field):
        return True
    return not is_empty(s.value)


def nullable(s: Subject) -> bool:
    return True


def required_if(s: Subject) -> bool:
    other, *expected = s.params
    if _as_text(s.other(other)) in expected:
        return required(s)
    return True


def required_unless(s: Subject) -> bool:
    other, *allowed = s.params
    if _as_text(s.other(other)) in allowed:
        return True
    return required(s)


def required_with(s: Subject) -> bool:
    if any(s.other(p) is not None for p in s.params):
        return required(s)
    return True


def required_with_all(s: Subject) -> bool:
    if all(s.other(p) is not None for p in s.params):
        return required(s)
    return True


def required_without(s: Subject) -> bool:
    if any(s.other(p) is None for p in s.params):
        return required(s)
    return True


def required_without_all(s: Subject) -> bool:
    if all(s.other(p) is None for p in s.params):
        return required(s)
    return True


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def string(s: Subject) -> bool:
    return s.value is None or isinstance(s.value, str)


def numeric(s: Subject) -> bool:
    return s.value is None or is_numeric(s.value)


def integer(s: Subject) -> bool:
    if s.value is None:
        return True
    if isinstance(s.value, bool):
        return False
    if isinstance(s.value, int):
        return True
    if isinstance(s.value, str):
        return re.fullmatch(r"[+-]?[0-9]+", s.value.strip()) is not None
    return False


_BOOLEANS = (True, False, 0, 1, "0", "1", "true", "false")


def boolean(s: Subject) -> bool:
    if s.value is None:
        return True
    return any(type(s.value) is type(ok) and s.value == ok for ok in _BOOLEANS)


def array(s: Subject) -> bool:
    if s.value is None:
        return True
    return isinstance(s.value, (list, tuple, Mapping))


def accepted(s: Subject) -> bool:
    return s.value in (True, 1, "1", "yes", "on", "true") and not isinstance(s.value, float)


def json_rule(s: Subject) -> bool:
    if s.value is None:
        return True
    if not isinstance(s.value, str):
        return False
    try:
        json.loads(s.value)
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Size
# ---------------------------------------------------------------------------


def min_rule(s: Subject) -> bool:
    size = size_of(s.value)
    return size is not None and size >= float(s.params[0])


def max_rule(s: Subject) -> bool:
    size = size_of(s.value)
    return size is not None and size <= float(s.params[0])


def between(s: Subject) -> bool:
    size = size_of(s.value)
    return size is not None and float(s.params[0]) <= size <= float(s.params[1])


def size(s: Subject) -> bool:
    measured = size_of(s.value)
    return measured is not None and measured == float(s.params[0])


def _digit_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    text = str(value) if isinstance(value, int) else value
    if isinstance(text, str) and text.isascii() and text.isdigit():
        return len(text)
    return None


def digits(s: Subject) -> bool:
    if s.value is None:
        return True
    return _digit_count(s.value) == int(s.params[0])


def digits_between(s: Subject) -> bool:
    if s.value is None:
        return True
    count = _digit_count(s.value)
    return count is not None and int(s.params[0]) <= count <= int(s.params[1])


def _comparison_target(s: Subject) -> float | None:
    param = s.params[0]
    if has_path(s.data, param):
        return size_of(s.other(param))
    try:
        return float(param)
    except ValueError:
        return None


def _compare(s: Subject, op: Callable[[float, float], bool]) -> bool:
    if s.value is None:
        return True
    mine = size_of(s.value)
    if isinstance(s.value, str) and is_numeric(s.value) and not has_path(s.data, s.params[0]):
        mine = float(s.value)
    target = _comparison_target(s)
    return mine is not None and target is not None and op(mine, target)


def gt(s: Subject) -> bool:
    return _compare(s, lambda a, b: a > b)


def gte(s: Subject) -> bool:
    return _compare(s, lambda a, b: a >= b)


def lt(s: Subject) -> bool:
    return _compare(s, lambda a, b: a < b)


def lte(s: Subject) -> bool:
    return _compare(s, lambda a, b: a <= b)


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_ALPHA_RE = re.compile(r"^[^\W\d_]+$")
_ALPHA_NUM_RE = re.compile(r"^[^\W_]+$")
_ALPHA_DASH_RE = re.compile(r"^[\w-]+$")
_SLUG_RE = re.compile(r"^[a-z0-9_-]+$")
_UUID_RE = re.compile(r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$")


def _matches(s: Subject, pattern: re.Pattern[str]) -> bool:
    if s.value is None:
        return True
    return isinstance(s.value, str) and pattern.match(s.value) is not None


def email(s: Subject) -> bool:
    return _matches(s, _EMAIL_RE)


def alpha(s: Subject) -> bool:
    return _matches(s, _ALPHA_RE)


def alpha_num(s: Subject) -> bool:
    return _matches(s, _ALPHA_NUM_RE)


def alpha_dash(s: Subject) -> bool:
    return _matches(s, _ALPHA_DASH_RE)


def slug(s: Subject) -> bool:
    return _matches(s, _SLUG_RE)


def uuid_rule(s: Subject) -> bool:
    return _matches(s, _UUID_RE)


def url(s: Subject) -> bool:
    if s.value is None:
        return True
    if not isinstance(s.value, str) or any(c.isspace() for c in s.value):
        return False
    try:
        parts = urlsplit(s.value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def _ip(s: Subject, version: int | None) -> bool:
    if s.value is None:
        return True
    try:
        address = ipaddress.ip_address(str(s.value))
    except ValueError:
        return False
    return version is None or address.version == version


def ip(s: Subject) -> bool:
    return _ip(s, None)


def ipv4(s: Subject) -> bool:
    return _ip(s, 4)


def ipv6(s: Subject) -> bool:
    return _ip(s, 6)


def regex(s: Subject) -> bool:
    if s.value is None:
        return True
    return compile_regex(s.params[0]).search(str(s.value)) is not None


def not_regex(s: Subject) -> bool:
    if s.value is None:
        return True
    return compile_regex(s.params[0]).search(str(s.value)) is None


def lowercase(s: Subject) -> bool:
    return s.value is None or (isinstance(s.value, str) and s.value == s.value.lower())


def uppercase(s: Subject) -> bool:
    return s.value is None or (isinstance(s.value, str) and s.value == s.value.upper())


def starts_with(s: Subject) -> bool:
    return s.value is None or str(s.value).startswith(s.params)


def ends_with(s: Subject) -> bool:
    return s.value is None or str(s.value).endswith(s.params)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%d %B %Y", "%B %d, %Y", "%d %b %Y", "%b %d, %Y")


def date_rule(s: Subject) -> bool:
    if s.value is None or isinstance(s.value, (date, datetime)):
        return True
    if not isinstance(s.value, str):
        return False
    try:
        datetime.fromisoformat(s.value)
    except ValueError:
        pass
    else:
        return True
    for fmt in _DATE_FORMATS:
        try:
            datetime.strptime(s.value, fmt)
        except ValueError:
            continue
        return True
    return False


def date_format(s: Subject) -> bool:
    """``date_format:%Y-%m-%d``: parse with *format* and format back identically."""
    if s.value is None:
        return True
    if not isinstance(s.value, str):
        return False
    fmt = s.params[0]
    try:
        parsed = datetime.strptime(s.value, fmt)
    except ValueError:
        return False
    return parsed.strftime(fmt) == s.value


def timezone(s: Subject) -> bool:
    if s.value is None:
        return True
    if not isinstance(s.value, str) or not s.value:
        return False
    try:
        zoneinfo.ZoneInfo(s.value)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        return False
    return True


# ---------------------------------------------------------------------------
# Comparison with other fields and lists
# ---------------------------------------------------------------------------


def confirmed(s: Subject) -> bool:
    return s.value == s.other(f"{s.field}_confirmation")


def same(s: Subject) -> bool:
    return s.value == s.other(s.params[0])


def different(s: Subject) -> bool:
    return s.value != s.other(s.params[0])


def in_rule(s: Subject) -> bool:
    return s.value is None or _as_text(s.value) in s.params


def not_in(s: Subject) -> bool:
    return s.value is None or _as_text(s.value) not in s.params


# ---------------------------------------------------------------------------
# Store-backed
# ---------------------------------------------------------------------------


def _store(s: Subject) -> StoreQuery:
    if s.store is None:
        msg = f"Rule on {s.field!r} needs a StoreQuery; pass store= to Validator"
        raise ConfigurationError(msg)
    return s.store


def exists(s: Subject) -> bool:
    if s.value is None:
        return True
    table = s.params[0]
    column = s.params[1] if len(s.params) > 1 else "id"
    return _store(s).count(table, column, s.value) > 0


def unique(s: Subject) -> bool:
    if s.value is None:
        return True
    table = s.params[0]
    column = s.params[1] if len(s.params) > 1 and s.params[1] else s.field.rsplit(".", 1)[-1]
    exclude_id = s.params[2] if len(s.params) > 2 else None
    return _store(s).count(table, column, s.value, exclude_id) == 0


RULES: Mapping[RuleName, RuleFunc] = {
    RuleName.ACCEPTED: accepted,
    RuleName.ALPHA: alpha,
    RuleName.ALPHA_DASH: alpha_dash,
    RuleName.ALPHA_NUM: alpha_num,
    RuleName.ARRAY: array,
    RuleName.BETWEEN: between,
    RuleName.BOOLEAN: boolean,
    RuleName.CONFIRMED: confirmed,
    RuleName.DATE: date_rule,
    RuleName.DATE_FORMAT: date_format,
    RuleName.DIFFERENT: different,
    RuleName.DIGITS: digits,
    RuleName.DIGITS_BETWEEN: digits_between,
    RuleName.EMAIL: email,
    RuleName.ENDS_WITH: ends_with,
    RuleName.EXISTS: exists,
    RuleName.FILLED: filled,
    RuleName.GT: gt,
    RuleName.GTE: gte,
    RuleName.IN: in_rule,
    RuleName.INTEGER: integer,
    RuleName.IP: ip,
    RuleName.IPV4: ipv4,
    RuleName.IPV6: ipv6,
    RuleName.JSON: json_rule,
    RuleName.LOWERCASE: lowercase,
    RuleName.LT: lt,
    RuleName.LTE: lte,
    RuleName.MAX: max_rule,
    RuleName.MIN: min_rule,
    RuleName.NOT_IN: not_in,
    RuleName.NOT_REGEX: not_regex,
    RuleName.NULLABLE: nullable,
    RuleName.NUMERIC: numeric,
    RuleName.PRESENT: present,
    RuleName.REGEX: regex,
    RuleName.REQUIRED: required,
    RuleName.REQUIRED_IF: required_if,
    RuleName.REQUIRED_UNLESS: required_unless,
    RuleName.REQUIRED_WITH: required_with,
    RuleName.REQUIRED_WITH_ALL: required_with_all,
    RuleName.REQUIRED_WITHOUT: required_without,
    RuleName.REQUIRED_WITHOUT_ALL: required_without_all,
    RuleName.SAME: same,
    RuleName.SIZE: size,
    RuleName.SLUG: slug,
    RuleName.STARTS_WITH: starts_with,
    RuleName.STRING: string,
    RuleName.TIMEZONE: timezone,
    RuleName.UNIQUE: unique,
    RuleName.UPPERCASE: uppercase,
    RuleName.URL: url,
    RuleName.UUID: uuid_rule,
}

