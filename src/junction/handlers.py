"""Handler resolution and invocation.

A route handler is a callable or a ``"Class@method"`` string. Strings
are resolved once, when the app freezes:

- ``"PostController@show"`` looks ``PostController`` up among the
  controllers registered with ``app.controller()``;
- ``"myapp.controllers:PostController@show"`` imports the class.

The class (or registered factory) is instantiated once and the bound
method becomes the handler.

Handlers receive arguments by name, read from their signature once::

    def show(request, id: int): ...     # request + converted path param
    def index(): ...                    # nothing
    def update(context, **params): ...  # every path param
"""

import importlib
import inspect
from collections.abc import Callable, Mapping
from typing import Any

from junction.errors import ConfigurationError
from junction.request import Request, RequestContext
from junction.routing.route import HandlerRef

_CONTEXT_NAMES = frozenset({"request", "context", "req", "ctx"})
_CONVERTIBLE = (int, float, str)


def _signature_params(target: Callable[..., Any]) -> tuple[tuple[tuple[str, Any], ...], bool]:
    try:
        sig = inspect.signature(target, eval_str=True)
    except NameError:
        sig = inspect.signature(target)
    except (TypeError, ValueError):
        return (), True
    params: list[tuple[str, Any]] = []
    var_keyword = False
    for name, param in sig.parameters.items():
        if param.kind is inspect.Parameter.VAR_KEYWORD:
            var_keyword = True
        elif param.kind is not inspect.Parameter.VAR_POSITIONAL:
            params.append((name, param.annotation))
    return tuple(params), var_keyword


def handler_ref(target: Callable[..., Any], description: str | None = None) -> HandlerRef:
    """Wrap a callable, recording its signature."""
    params, var_keyword = _signature_params(target)
    if description is None:
        description = getattr(target, "__qualname__", None) or repr(target)
    return HandlerRef(target=target, description=description, params=params, var_keyword=var_keyword)


class HandlerResolver:
    """Resolves ``"Class@method"`` strings to bound methods.

    Controllers are instantiated once per resolver and shared by every
    route naming them.
    """

    __slots__ = ("_factories", "_instances")

    def __init__(self, factories: Mapping[str, Callable[[], Any]] | None = None) -> None:
        self._factories: dict[str, Callable[[], Any]] = dict(factories or {})
        self._instances: dict[str, Any] = {}

    def register(self, name: str, factory: Callable[[], Any]) -> None:
        self._factories[name] = factory

    def resolve(self, handler: Callable[..., Any] | str) -> HandlerRef:
        """Return a ``HandlerRef``; raises ``ConfigurationError`` if unresolvable."""
        if not isinstance(handler, str):
            if not callable(handler):
                msg = f"Route handler {handler!r} is not callable"
                raise ConfigurationError(msg)
            return handler_ref(handler)

        class_ref, sep, method_name = handler.partition("@")
        if not sep or not class_ref or not method_name:
            msg = f"Handler string {handler!r} must look like 'Class@method' or 'module:Class@method'"
            raise ConfigurationError(msg)

        instance = self._instance(class_ref, handler)
        method = getattr(instance, method_name, None)
        if method is None or not callable(method):
            msg = f"Handler {handler!r}: {type(instance).__name__} has no method {method_name!r}"
            raise ConfigurationError(msg)
        return handler_ref(method, handler)

    def _instance(self, class_ref: str, handler: str) -> Any:
        cached = self._instances.get(class_ref)
        if cached is not None:
            return cached

        factory = self._factories.get(class_ref)
        if factory is None:
            factory = _import_class(class_ref, handler)
        instance = factory()
        self._instances[class_ref] = instance
        return instance


def _import_class(class_ref: str, handler: str) -> Callable[[], Any]:
    module_name, sep, class_name = class_ref.partition(":")
    if not sep:
        msg = (
            f"Handler {handler!r}: no controller named {class_ref!r}. "
            "Register it with app.controller() or use 'module:Class@method'."
        )
        raise ConfigurationError(msg)
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        msg = f"Handler {handler!r}: cannot import {module_name!r}: {exc}"
        raise ConfigurationError(msg) from exc
    cls = getattr(module, class_name, None)
    if cls is None:
        msg = f"Handler {handler!r}: module {module_name!r} has no attribute {class_name!r}"
        raise ConfigurationError(msg)
    return cls


def _convert(value: str, annotation: Any) -> Any:
    if annotation in _CONVERTIBLE:
        try:
            return annotation(value)
        except ValueError:
            return value
    return value


def build_kwargs(ref: HandlerRef, context: RequestContext, path_params: Mapping[str, str]) -> dict[str, Any]:
    """Arguments for one handler call.

    The context goes to a parameter called ``request``/``context`` (or
    annotated with ``Request``/``RequestContext``), or else to the first
    parameter when nothing else claims it. Path parameters go to parameters of
    the same name, converted to ``int``/``float`` when annotated so.
    """
    kwargs: dict[str, Any] = {}
    context_given = False
    unclaimed: str | None = None
    for index, (name, annotation) in enumerate(ref.params):
        if name in _CONTEXT_NAMES or annotation in (Request, RequestContext):
            kwargs[name] = context
            context_given = True
        elif name in path_params:
            kwargs[name] = _convert(path_params[name], annotation)
        elif index == 0:
            unclaimed = name
    if not context_given and unclaimed is not None:
        kwargs[unclaimed] = context
    if ref.var_keyword:
        for name, value in path_params.items():
            kwargs.setdefault(name, value)
    return kwargs
