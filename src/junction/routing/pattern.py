"""Path patterns — compile route paths to anchored regular expressions.

Three parameter spellings are accepted and may be mixed::

    "users/:id"                  -> named segment, any non-slash text
    "users/{id}" / "{id:int}"    -> braces, optional converter
    "users/{id?}"                -> optional trailing parameter
    "users/(?P<id>\\d+)"         -> raw named group, pattern used verbatim

Everything else is literal and matched exactly. Leading and trailing
slashes are insignificant on both the pattern and the request path.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from junction.errors import ConfigurationError, UnresolvableUrl

# regex for each supported ``{name:converter}``
CONVERTERS: dict[str, str] = {
    "str": r"[^/]+",
    "int": r"\d+",
    "float": r"\d+(?:\.\d+)?",
    "slug": r"[A-Za-z0-9_-]+",
    "path": r".+",
}

_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_FLASK_PARAM_RE = re.compile(r"(?<!\(\?P)<[A-Za-z_][A-Za-z0-9_:]*>")


@dataclass(frozen=True, slots=True)
class Literal:
    """Literal text inside a pattern."""

    text: str


@dataclass(frozen=True, slots=True)
class Param:
    """A named parameter inside a pattern."""

    name: str
    regex: str
    optional: bool = False


type Part = Literal | Param


@dataclass(frozen=True, slots=True)
class PathPattern:
    """A compiled route path. Immutable, built once at registration."""

    source: str
    parts: tuple[Part, ...]
    regex: re.Pattern[str]

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parts if isinstance(p, Param))

    def match(self, path: str) -> dict[str, str] | None:
        """Return the captured parameters, or ``None`` if *path* doesn't match."""
        m = self.regex.fullmatch(normalize_path(path))
        if m is None:
            return None
        return {name: value for name, value in m.groupdict().items() if value is not None}

    def build(self, params: Mapping[str, Any], *, route_name: str = "") -> str:
        """Substitute *params* into the pattern.

        Raises ``UnresolvableUrl`` when a required parameter is missing.
        Optional parameters that are absent are dropped along with the
        slash in front of them.
        """
        out: list[str] = []
        for part in self.parts:
            if isinstance(part, Literal):
                out.append(part.text)
                continue
            value = params.get(part.name)
            if value is None:
                if part.optional:
                    if out and out[-1].endswith("/"):
                        out[-1] = out[-1][:-1]
                    continue
                msg = f"Route {route_name!r} requires parameter {part.name!r}"
                raise UnresolvableUrl(route_name, msg)
            out.append(quote(str(value), safe="/" if part.regex == CONVERTERS["path"] else ""))
        return "".join(out)


def normalize_path(path: str) -> str:
    """Strip surrounding slashes: ``"/users/"`` -> ``"users"``."""
    return path.strip("/")


def join_paths(*pieces: str) -> str:
    """Join path pieces with single slashes, skipping empty ones."""
    return "/".join(p.strip("/") for p in pieces if p and p.strip("/"))


def _read_group(text: str, start: int) -> int:
    """Return the index just past the ``)`` closing the group opened at *start*."""
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    msg = f"Unbalanced parenthesis in route path {text!r}"
    raise ConfigurationError(msg)


def parse_pattern(path: str) -> tuple[Part, ...]:
    """Split a route path into literal and parameter parts.

    Examples::

        "users"            -> (Literal("users"),)
        "users/:id"        -> (Literal("users/"), Param("id", "[^/]+"))
        "users/{id:int}"   -> (Literal("users/"), Param("id", "\\d+"))
    """
    text = normalize_path(path)
    bad = _FLASK_PARAM_RE.search(text)
    if bad:
        msg = (
            f"Route path {path!r} uses <param> syntax. "
            f"Use {{param}} or :param instead (found {bad.group(0)!r})."
        )
        raise ConfigurationError(msg)

    parts: list[Part] = []
    literal: list[str] = []
    seen: set[str] = set()

    def flush() -> None:
        if literal:
            parts.append(Literal("".join(literal)))
            literal.clear()

    def add_param(name: str, regex: str, optional: bool = False) -> None:
        if name in seen:
            msg = f"Duplicate parameter {name!r} in route path {path!r}"
            raise ConfigurationError(msg)
        seen.add(name)
        flush()
        parts.append(Param(name, regex, optional))

    i = 0
    while i < len(text):
        ch = text[i]
        if text.startswith("(?P<", i):
            end = _read_group(text, i)
            close = text.index(">", i)
            name = text[i + 4 : close]
            add_param(name, text[close + 1 : end - 1])
            i = end
        elif ch == "{":
            close = text.find("}", i)
            if close == -1:
                msg = f"Unclosed '{{' in route path {path!r}"
                raise ConfigurationError(msg)
            inner = text[i + 1 : close]
            optional = inner.endswith("?")
            inner = inner.rstrip("?")
            name, _, converter = inner.partition(":")
            converter = converter or "str"
            if converter not in CONVERTERS:
                msg = f"Unknown converter {converter!r} in route path {path!r}"
                raise ConfigurationError(msg)
            add_param(name, CONVERTERS[converter], optional)
            i = close + 1
        elif ch == ":" and (i == 0 or text[i - 1] == "/"):
            m = _IDENT_RE.match(text, i + 1)
            if m is None:
                msg = f"Expected a parameter name after ':' in route path {path!r}"
                raise ConfigurationError(msg)
            add_param(m.group(0), CONVERTERS["str"])
            i = m.end()
        else:
            literal.append(ch)
            i += 1
    flush()

    for part in parts:
        if isinstance(part, Param) and not _IDENT_RE.fullmatch(part.name):
            msg = f"Invalid parameter name {part.name!r} in route path {path!r}"
            raise ConfigurationError(msg)
    return tuple(parts)


def compile_pattern(path: str) -> PathPattern:
    """Compile a route path into an anchored regex with named groups."""
    parts = parse_pattern(path)
    chunks: list[str] = []
    for part in parts:
        if isinstance(part, Literal):
            chunks.append(re.escape(part.text))
        elif part.optional:
            # "/{page?}" -> the slash belongs to the optional group
            if chunks and chunks[-1].endswith("/"):
                chunks[-1] = chunks[-1][:-1]
                chunks.append(f"(?:/(?P<{part.name}>{part.regex}))?")
            else:
                chunks.append(f"(?P<{part.name}>{part.regex})?")
        else:
            chunks.append(f"(?P<{part.name}>{part.regex})")
    source = "^" + "".join(chunks) + "$"
    try:
        regex = re.compile(source)
    except re.error as exc:
        msg = f"Route path {path!r} does not compile: {exc}"
        raise ConfigurationError(msg) from exc
    return PathPattern(source=normalize_path(path), parts=parts, regex=regex)
