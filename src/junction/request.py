"""Request context — the read-only view of an incoming request.

The transport binding owns request construction. The core only reads
through the ``RequestContext`` protocol, so any object with the right
shape works. ``Request`` is the concrete, immutable implementation
shipped for hosts that don't bring their own (and for tests).
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Protocol, runtime_checkable


class Headers(Mapping[str, str]):
    """Immutable, case-insensitive HTTP headers.

    ``__getitem__`` returns the first matching value.
    ``get_list`` returns all values for a header.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: Mapping[str, str] | Iterable[tuple[str, str]] = ()) -> None:
        items = pairs.items() if isinstance(pairs, Mapping) else pairs
        object.__setattr__(self, "_pairs", tuple((name.lower(), value) for name, value in items))

    def __getitem__(self, key: str) -> str:
        key_lower = key.lower()
        for name, value in self._pairs:
            if name == key_lower:
                return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        key_lower = key.lower()
        return any(name == key_lower for name, _ in self._pairs)

    def __iter__(self) -> Iterator[str]:
        seen: set[str] = set()
        for name, _ in self._pairs:
            if name not in seen:
                seen.add(name)
                yield name

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {self[k]!r}" for k in self)
        return f"Headers({{{items}}})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        """Return the first value for *key*, or *default* if missing."""
        try:
            return self[key]
        except KeyError:
            return default

    def get_list(self, key: str) -> list[str]:
        """Return all values for *key*."""
        key_lower = key.lower()
        return [value for name, value in self._pairs if name == key_lower]


@dataclass(frozen=True, slots=True)
class Caller:
    """Who is making the request.

    ``user_id`` is ``None`` for anonymous callers.
    """

    user_id: str | int | None = None
    capabilities: frozenset[str] = frozenset()
    ip: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


@runtime_checkable
class RequestContext(Protocol):
    """What the core needs from a request.

    Middleware, the validator, and the dispatcher read through these
    methods only. Implementations must not change between calls for
    the same request.
    """

    @property
    def method(self) -> str: ...
    @property
    def path(self) -> str: ...
    @property
    def content_type(self) -> str | None: ...
    @property
    def raw_body(self) -> bytes: ...

    def path_param(self, name: str, default: Any = None) -> Any: ...
    def query_param(self, name: str, default: Any = None) -> Any: ...
    def body_param(self, name: str, default: Any = None) -> Any: ...
    def all(self) -> dict[str, Any]: ...
    def header(self, name: str, default: str | None = None) -> str | None: ...
    def caller_is_authenticated(self) -> bool: ...
    def caller_has_capability(self, capability: str) -> bool: ...
    def caller_key(self) -> str: ...


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable request.

    Everything is captured at creation. Path parameters are attached by
    the dispatcher after matching via ``with_path_params``.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query: Mapping[str, Any] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
    path_params: Mapping[str, str] = field(default_factory=dict)
    caller: Caller = field(default_factory=Caller)
    raw_body: bytes = b""

    @classmethod
    def build(
        cls,
        method: str = "GET",
        path: str = "/",
        *,
        headers: Mapping[str, str] | None = None,
        query: Mapping[str, Any] | None = None,
        body: Mapping[str, Any] | None = None,
        json_body: Any = None,
        user_id: str | int | None = None,
        capabilities: Iterable[str] = (),
        ip: str | None = None,
    ) -> Request:
        """Convenience constructor for hosts and tests.

        ``json_body`` is serialized into ``raw_body`` and, when it is a
        mapping, also becomes ``body``.
        """
        raw = b""
        parsed_body = dict(body or {})
        if json_body is not None:
            raw = json.dumps(json_body).encode()
            if isinstance(json_body, Mapping):
                parsed_body = {**parsed_body, **json_body}
        return cls(
            method=method.upper(),
            path=path,
            headers=Headers(headers or {}),
            query=dict(query or {}),
            body=parsed_body,
            caller=Caller(user_id=user_id, capabilities=frozenset(capabilities), ip=ip),
            raw_body=raw,
        )

    def with_path_params(self, params: Mapping[str, str]) -> Request:
        """Return a copy carrying the parameters extracted by the router."""
        return replace(self, path_params=dict(params))

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def path_param(self, name: str, default: Any = None) -> Any:
        return self.path_params.get(name, default)

    def query_param(self, name: str, default: Any = None) -> Any:
        return self.query.get(name, default)

    def body_param(self, name: str, default: Any = None) -> Any:
        return self.body.get(name, default)

    def all(self) -> dict[str, Any]:
        """Query, path, then body parameters merged; later sources win."""
        return {**self.query, **self.path_params, **self.body}

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name, default)

    def caller_is_authenticated(self) -> bool:
        return self.caller.is_authenticated

    def caller_has_capability(self, capability: str) -> bool:
        return self.caller.can(capability)

    def caller_key(self) -> str:
        """Stable identity for rate limiting: the user when known, else the IP."""
        if self.caller.is_authenticated:
            return f"user:{self.caller.user_id}"
        return f"ip:{self.caller.ip or 'unknown'}"
