"""Middleware registry — name → factory, resolved into configured instances.

Built-ins are installed when the ``App`` is created. User middleware
registered under the same name takes precedence over a built-in. Once
the app freezes, the registry is read-only.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from junction.errors import ConfigurationError, UnknownMiddleware
from junction.middleware.pipeline import ResolvedMiddleware
from junction.middleware.protocol import MiddlewareFactory
from junction.middleware.spec import MiddlewareSpec, parse_spec
from junction.request import RequestContext
from junction.results import ErrorResult

if TYPE_CHECKING:
    from junction.config import RouterConfig
    from junction.middleware.nonce import NonceManager
    from junction.middleware.rate_limit import CounterStore
    from junction.validation import RuleSet, Validator

logger = logging.getLogger("junction.middleware")


@dataclass(frozen=True, slots=True)
class MiddlewareGroup:
    """A named composite that runs its members in order, fail-fast."""

    name: str
    members: tuple[ResolvedMiddleware, ...]

    def handle(self, context: RequestContext) -> ErrorResult | None:
        for mw in self.members:
            result = mw(context)
            if isinstance(result, ErrorResult):
                return result if result.middleware else result.with_middleware(mw.name)
            if result is not None and result is not True:
                return result
        return None


class MiddlewareRegistry:
    """Maps middleware names to factories.

    Usage::

        registry = MiddlewareRegistry()
        registry.register("beta", RequireBeta)
        registry.resolve("beta")        # -> ResolvedMiddleware("beta", RequireBeta())
        registry.resolve("nope")        # -> raises UnknownMiddleware
    """

    __slots__ = ("_builtin", "_cache", "_custom", "_frozen")

    def __init__(self) -> None:
        self._builtin: dict[str, MiddlewareFactory] = {}
        self._custom: dict[str, MiddlewareFactory] = {}
        self._cache: dict[MiddlewareSpec, ResolvedMiddleware] = {}
        self._frozen = False

    # -- Registration --

    def register(self, name: str, factory: MiddlewareFactory, *, builtin: bool = False) -> None:
        """Register *factory* under *name*.

        The factory is called with the spec's parameters, so a class whose
        ``__init__`` takes them works directly.
        """
        self._check_not_frozen()
        parse_spec(name)  # validates the name
        if ":" in name:
            msg = f"Register middleware by bare name, not {name!r}"
            raise ConfigurationError(msg)
        if not builtin and name in self._builtin:
            logger.debug("middleware %r overrides the built-in", name)
        target = self._builtin if builtin else self._custom
        target[name] = factory
        self._cache = {k: v for k, v in self._cache.items() if k.name != name}

    def register_many(self, factories: Mapping[str, MiddlewareFactory]) -> None:
        for name, factory in factories.items():
            self.register(name, factory)

    def group(self, name: str, specs: Iterable[Any]) -> None:
        """Register *name* as a composite of *specs* (run in order, fail-fast)."""
        parsed = tuple(parse_spec(s) for s in specs)

        def factory() -> MiddlewareGroup:
            return MiddlewareGroup(name, tuple(self.resolve(s) for s in parsed))

        self.register(name, factory)

    def remove(self, name: str) -> None:
        """Remove a user-registered middleware. Built-ins stay."""
        self._check_not_frozen()
        self._custom.pop(name, None)
        self._cache = {k: v for k, v in self._cache.items() if k.name != name}

    # -- Lookup --

    def has(self, name: str) -> bool:
        return name in self._custom or name in self._builtin

    def is_builtin(self, name: str) -> bool:
        return name in self._builtin and name not in self._custom

    def names(self) -> list[str]:
        """All registered names, built-ins first, in registration order."""
        return list(dict.fromkeys([*self._builtin, *self._custom]))

    def resolve(self, spec: str | MiddlewareSpec) -> ResolvedMiddleware:
        """Turn a spec into a configured middleware instance.

        Raises ``UnknownMiddleware`` if no factory carries the name and
        ``ConfigurationError`` if the factory rejects the parameters.
        """
        parsed = parse_spec(spec)
        cached = self._cache.get(parsed)
        if cached is not None:
            return cached

        factory = self._custom.get(parsed.name) or self._builtin.get(parsed.name)
        if factory is None:
            raise UnknownMiddleware(parsed.name)
        try:
            instance = factory(*parsed.params)
        except (TypeError, ValueError) as exc:
            msg = f"Middleware {str(parsed)!r} could not be configured: {exc}"
            raise ConfigurationError(msg) from exc

        resolved = ResolvedMiddleware(str(parsed), instance)
        # Read-only after freeze; late resolutions are not memoized
        if not self._frozen:
            self._cache[parsed] = resolved
        return resolved

    # -- Lifecycle --

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = "Cannot modify the middleware registry after the app has frozen."
            raise RuntimeError(msg)


def install_builtins(
    registry: MiddlewareRegistry,
    *,
    config: RouterConfig,
    counter_store: CounterStore,
    nonces: NonceManager,
    rule_sets: Mapping[str, RuleSet],
    validator: Validator,
) -> None:
    """Register ``auth``, ``capability``, ``rate_limit``, ``cors``, ``validate``,
    ``json_only`` and ``nonce`` bound to the app's services."""
    from junction.middleware.auth import AuthMiddleware, CapabilityMiddleware
    from junction.middleware.builtin import CORSMiddleware, JsonOnlyMiddleware
    from junction.middleware.nonce import NonceMiddleware
    from junction.middleware.rate_limit import RateLimitMiddleware
    from junction.middleware.validate import ValidationMiddleware

    def rate_limit(requests: int | None = None, window: int | None = None) -> RateLimitMiddleware:
        return RateLimitMiddleware(
            counter_store,
            int(requests if requests is not None else config.rate_limit_requests),
            int(window if window is not None else config.rate_limit_window),
        )

    def validate(ref: str) -> ValidationMiddleware:
        try:
            rule_set = rule_sets[str(ref)]
        except KeyError:
            msg = f"No rule set named {ref!r}. Register it with app.rule_set()."
            raise ConfigurationError(msg) from None
        return ValidationMiddleware(rule_set, validator)

    def nonce(action: str = "default") -> NonceMiddleware:
        return NonceMiddleware(nonces, str(action), header=config.nonce_header, param=config.nonce_param)

    registry.register("auth", AuthMiddleware, builtin=True)
    registry.register("capability", lambda capability="read": CapabilityMiddleware(str(capability)), builtin=True)
    registry.register("rate_limit", rate_limit, builtin=True)
    registry.register("cors", lambda: CORSMiddleware(config.cors), builtin=True)
    registry.register("validate", validate, builtin=True)
    registry.register("json_only", lambda: JsonOnlyMiddleware(config.json_content_types), builtin=True)
    registry.register("nonce", nonce, builtin=True)
