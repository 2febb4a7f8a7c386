"""App import resolution for the CLI.

``"pkg.module"`` loads ``pkg.module.app``; ``"pkg.module:name"`` loads
``name``, which may be dotted (``"pkg.module:site.app"``). A callable
that is not an ``App`` is a factory and is called with no arguments.
Every failure surfaces as ``UnresolvableApp``.
"""

import importlib
from typing import Any

from junction.app import App
from junction.errors import UnresolvableApp


def _lookup(import_string: str, module: Any, attr_path: str) -> Any:
    target = module
    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError:
            raise UnresolvableApp(import_string, f"no attribute {attr!r}") from None
    return target


def resolve_app(import_string: str) -> App:
    """Resolve *import_string* to an ``App``; raises ``UnresolvableApp``."""
    module_path, _, attr_path = import_string.partition(":")
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise UnresolvableApp(import_string, str(exc)) from exc

    obj = _lookup(import_string, module, attr_path or "app")
    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            raise UnresolvableApp(import_string, f"factory raised {type(exc).__name__}: {exc}") from exc

    if not isinstance(obj, App):
        raise UnresolvableApp(import_string, f"got {type(obj).__name__}, not a junction.App")
    return obj
