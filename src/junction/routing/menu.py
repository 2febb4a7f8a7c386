"""Admin menu tree built from the registered admin routes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from junction.routing.route import RouteDefinition, RouteType


@dataclass(frozen=True, slots=True)
class MenuItem:
    """One admin menu entry.

    ``route`` is ``None`` for a parent that no registered route provides
    (a host page that only receives submenu entries).
    """

    slug: str
    title: str
    capability: str | None
    icon: str | None
    position: int | None
    route: RouteDefinition | None = None
    children: tuple[MenuItem, ...] = ()


def _item(route: RouteDefinition, children: tuple[MenuItem, ...] = ()) -> MenuItem:
    menu = route.menu
    return MenuItem(
        slug=route.path,
        title=menu.label if menu else route.path,
        capability=route.capability,
        icon=menu.icon if menu else None,
        position=menu.position if menu else None,
        route=route,
        children=children,
    )


def _ordered(items: list[MenuItem]) -> list[MenuItem]:
    # sorted() is stable, so equal positions keep registration order
    return sorted(items, key=lambda item: (item.position is None, item.position or 0))


def build_menu(routes: Iterable[RouteDefinition]) -> list[MenuItem]:
    """Top-level entries with their submenu children."""
    admin_routes = [r for r in routes if r.route_type is RouteType.ADMIN]
    children: dict[str, list[MenuItem]] = {}
    for route in admin_routes:
        parent = route.menu.parent if route.menu else None
        if parent:
            children.setdefault(parent, []).append(_item(route))

    top: list[MenuItem] = []
    seen: set[str] = set()
    for route in admin_routes:
        if route.menu and route.menu.parent:
            continue
        seen.add(route.path)
        top.append(_item(route, tuple(_ordered(children.get(route.path, [])))))

    for parent, items in children.items():
        if parent not in seen:
            top.append(
                MenuItem(
                    slug=parent,
                    title=parent,
                    capability=None,
                    icon=None,
                    position=None,
                    children=tuple(_ordered(items)),
                )
            )
    return _ordered(top)
