"""Route groups — shared attributes for the routes registered inside them.

Nesting merges attributes outer to inner:

- ``prefix`` and ``namespace`` concatenate (``"api/v1"`` + ``"admin"`` →
  ``"api/v1/admin"``);
- ``middleware`` accumulates, de-duplicated by name, first occurrence
  kept (outer group middleware runs first);
- everything else (``type`` and free-form attributes) is replaced by the
  inner group when both set it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from junction.middleware.pipeline import merge_middleware
from junction.middleware.spec import MiddlewareEntry
from junction.routing.pattern import join_paths
from junction.routing.route import RouteType

_KNOWN_KEYS = frozenset({"prefix", "namespace", "middleware", "type"})


@dataclass(frozen=True, slots=True)
class GroupAttributes:
    """The accumulated attributes of the current group scope."""

    prefix: str = ""
    namespace: str = ""
    middleware: tuple[MiddlewareEntry, ...] = ()
    route_type: RouteType | None = None
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> GroupAttributes:
        """Build from a ``group()`` call's keyword arguments or mapping."""
        merged = {**(options or {}), **kwargs}
        raw_middleware = merged.get("middleware") or ()
        if isinstance(raw_middleware, str) or not isinstance(raw_middleware, Iterable):
            raw_middleware = (raw_middleware,)
        route_type = merged.get("type")
        return cls(
            prefix=str(merged.get("prefix") or ""),
            namespace=str(merged.get("namespace") or ""),
            middleware=merge_middleware(raw_middleware),
            route_type=RouteType(route_type) if route_type is not None else None,
            attributes=MappingProxyType({k: v for k, v in merged.items() if k not in _KNOWN_KEYS}),
        )

    def merge(self, child: GroupAttributes) -> GroupAttributes:
        """Nest *child* inside this group."""
        return GroupAttributes(
            prefix=join_paths(self.prefix, child.prefix),
            namespace=join_paths(self.namespace, child.namespace),
            middleware=merge_middleware(self.middleware, child.middleware),
            route_type=child.route_type or self.route_type,
            attributes=MappingProxyType({**self.attributes, **child.attributes}),
        )


ROOT = GroupAttributes()
