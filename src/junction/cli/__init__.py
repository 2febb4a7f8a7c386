"""Junction CLI — route and middleware introspection.

Entry point registered as ``junction`` in ``pyproject.toml``::

    [project.scripts]
    junction = "junction.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``junction`` command."""
    parser = argparse.ArgumentParser(
        prog="junction",
        description="Junction — one routing layer for API, web, admin and ajax routes.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- junction routes --------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    routes_parser.add_argument(
        "--type",
        dest="route_type",
        choices=("api", "web", "admin", "ajax"),
        default=None,
        help="Only list routes of this type",
    )

    # -- junction middleware ----------------------------------------------
    middleware_parser = subparsers.add_parser("middleware", help="List registered middleware")
    middleware_parser.add_argument("app", help="Import string (e.g. myapp:app)")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "routes":
        from junction.cli._routes import run_routes

        run_routes(args)
    elif args.command == "middleware":
        from junction.cli._routes import run_middleware

        run_middleware(args)
