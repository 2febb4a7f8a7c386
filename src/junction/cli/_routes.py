"""``junction routes`` and ``junction middleware`` — introspection tables."""

import argparse
import sys
from collections.abc import Sequence
from typing import NoReturn

from junction.app import App
from junction.cli._resolve import resolve_app
from junction.errors import ConfigurationError
from junction.routing.route import RouteDefinition, RouteType


def _fail(exc: ConfigurationError) -> NoReturn:
    print(f"Error: {exc}", file=sys.stderr)
    raise SystemExit(1) from exc


def _load(import_string: str) -> App:
    try:
        return resolve_app(import_string)
    except ConfigurationError as exc:
        _fail(exc)


def display_path(route: RouteDefinition, app: App) -> str:
    """Where the route is reached, as a host would see it."""
    if route.route_type is RouteType.ADMIN:
        return f"{app.config.admin_endpoint}?page={route.path}"
    if route.route_type is RouteType.AJAX:
        return f"{app.config.ajax_endpoint}?action={route.path}"
    return "/" + route.full_path


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[str]:
    """Left-aligned columns; the last column is not padded."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))
    fmt = "  ".join(f"{{:<{w}}}" for w in widths[:-1]) + "  {}"
    lines = [fmt.format(*headers)]
    lines.append("-" * min(sum(widths) + 2 * (len(widths) - 1), 100))
    lines.extend(fmt.format(*row) for row in rows)
    return lines


def route_rows(app: App, route_type: str | None = None) -> list[tuple[str, str, str, str, str, str]]:
    rows = []
    for route in app.routes(route_type):
        rows.append(
            (
                str(route.route_type),
                ",".join(sorted(route.methods)),
                display_path(route, app),
                route.name or "",
                " ".join(route.middleware_names),
                route.handler.description,
            )
        )
    return rows


def run_routes(args: argparse.Namespace) -> None:
    """Print TYPE, METHOD, PATH, NAME, MIDDLEWARE, HANDLER for every route."""
    app = _load(args.app)
    try:
        rows = route_rows(app, args.route_type)
    except ConfigurationError as exc:
        _fail(exc)

    if not rows:
        print("No routes registered.")
        return
    for line in format_table(("TYPE", "METHOD", "PATH", "NAME", "MIDDLEWARE", "HANDLER"), rows):
        print(line)


def run_middleware(args: argparse.Namespace) -> None:
    """Print every registered middleware name and whether it is built in."""
    app = _load(args.app)
    registry = app.middleware_registry
    rows = [(name, "yes" if registry.is_builtin(name) else "no") for name in registry.names()]
    for line in format_table(("NAME", "BUILTIN"), rows):
        print(line)
