"""Middleware specs — ``"name:param1,param2"`` parsed into a typed value.

Specs are parsed the moment they are attached to a route or group, so a
malformed string fails at registration rather than on the first request::

    parse_spec("rate_limit:10,60")  -> MiddlewareSpec("rate_limit", (10, 60))
    parse_spec("capability:edit_posts")
                                    -> MiddlewareSpec("capability", ("edit_posts",))
    parse_spec(("rate_limit", 5, 1)) -> MiddlewareSpec("rate_limit", (5, 1))
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from junction.errors import MalformedMiddlewareSpec

_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.\-]*$")
_INT_RE = re.compile(r"^-?\d+$")
_FLOAT_RE = re.compile(r"^-?\d+\.\d+$")

type SpecParam = str | int | float


@dataclass(frozen=True, slots=True)
class MiddlewareSpec:
    """A middleware name plus its ordered parameters."""

    name: str
    params: tuple[SpecParam, ...] = ()

    def __str__(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}:{','.join(str(p) for p in self.params)}"


# Anything that can sit in a route's middleware list: a parsed spec, or a
# middleware object / plain callable attached directly.
type MiddlewareEntry = MiddlewareSpec | Any


def _coerce(raw: str) -> SpecParam:
    if _INT_RE.match(raw):
        return int(raw)
    if _FLOAT_RE.match(raw):
        return float(raw)
    return raw


def parse_spec(value: str | Sequence[Any] | MiddlewareSpec) -> MiddlewareSpec:
    """Parse a spec string (or ``(name, *params)`` sequence).

    Raises ``MalformedMiddlewareSpec`` for empty names, invalid
    characters, a dangling ``:``, or empty parameters.
    """
    if isinstance(value, MiddlewareSpec):
        return value

    if isinstance(value, str):
        name, sep, raw_params = value.strip().partition(":")
        if sep and not raw_params.strip():
            msg = f"Middleware spec {value!r} has ':' but no parameters"
            raise MalformedMiddlewareSpec(msg)
        pieces = [p.strip() for p in raw_params.split(",")] if sep else []
        if any(not p for p in pieces):
            msg = f"Middleware spec {value!r} has an empty parameter"
            raise MalformedMiddlewareSpec(msg)
        params: tuple[SpecParam, ...] = tuple(_coerce(p) for p in pieces)
    elif isinstance(value, Sequence) and value and isinstance(value[0], str):
        name = value[0].strip()
        params = tuple(p if isinstance(p, int | float) else _coerce(str(p)) for p in value[1:])
    else:
        msg = f"Cannot parse middleware spec from {value!r}"
        raise MalformedMiddlewareSpec(msg)

    if not _NAME_RE.match(name):
        msg = f"Invalid middleware name {name!r} in spec {value!r}"
        raise MalformedMiddlewareSpec(msg)
    return MiddlewareSpec(name, params)


def to_entry(value: Any) -> MiddlewareEntry:
    """Normalize one middleware list item.

    Strings and ``(name, *params)`` tuples become ``MiddlewareSpec``;
    objects with ``handle`` and plain callables are kept as they are.
    """
    if isinstance(value, MiddlewareSpec | str | tuple | list):
        return parse_spec(value)
    if hasattr(value, "handle") or callable(value):
        return value
    msg = f"Cannot use {value!r} as middleware"
    raise MalformedMiddlewareSpec(msg)


def entry_name(entry: MiddlewareEntry) -> str:
    """Display name for a middleware entry."""
    if isinstance(entry, MiddlewareSpec):
        return str(entry)
    name = getattr(entry, "name", None)
    if isinstance(name, str):
        return name
    return getattr(entry, "__name__", type(entry).__name__)
