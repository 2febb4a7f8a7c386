"""Middleware — named, parameterizable checks that run before a handler.

A middleware is any object with ``handle(context)`` or any callable
taking the context, returning ``None`` to continue or an ``ErrorResult``
to stop.

Built-in middleware (registered under these names on every ``App``):
    auth -- AuthMiddleware, 401 for anonymous callers
    capability:X -- CapabilityMiddleware, 401/403 unless the caller holds X
    rate_limit:N,W -- RateLimitMiddleware, 429 after N requests per W seconds
    cors -- CORSMiddleware, never rejects; contributes CORS headers
    validate:ref -- ValidationMiddleware, 422 when a named rule set fails
    json_only -- JsonOnlyMiddleware, 400/415/406 for non-JSON exchanges
    nonce:action -- NonceMiddleware, 400/403 without a valid nonce
"""

from junction.middleware.auth import AuthMiddleware, CapabilityMiddleware
from junction.middleware.builtin import CORSConfig, CORSMiddleware, JsonOnlyMiddleware
from junction.middleware.nonce import NonceManager, NonceMiddleware
from junction.middleware.pipeline import MiddlewarePipeline, ResolvedMiddleware, merge_middleware
from junction.middleware.protocol import Middleware, MiddlewareFactory
from junction.middleware.rate_limit import CounterStore, InMemoryCounterStore, RateLimitMiddleware
from junction.middleware.registry import MiddlewareGroup, MiddlewareRegistry, install_builtins
from junction.middleware.spec import MiddlewareSpec, parse_spec
from junction.middleware.validate import ValidationMiddleware

__all__ = [
    "AuthMiddleware",
    "CORSConfig",
    "CORSMiddleware",
    "CapabilityMiddleware",
    "CounterStore",
    "InMemoryCounterStore",
    "JsonOnlyMiddleware",
    "Middleware",
    "MiddlewareFactory",
    "MiddlewareGroup",
    "MiddlewarePipeline",
    "MiddlewareRegistry",
    "MiddlewareSpec",
    "NonceManager",
    "NonceMiddleware",
    "RateLimitMiddleware",
    "ResolvedMiddleware",
    "ValidationMiddleware",
    "install_builtins",
    "merge_middleware",
    "parse_spec",
]
