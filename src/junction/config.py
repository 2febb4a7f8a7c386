"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass, field

from junction.middleware.builtin import CORSConfig


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(debug=True, default_namespace="shop/v1")
    """

    # Error detail — when True, handler exceptions are echoed to the caller
    debug: bool = False

    # Async dispatch — run sync handlers in a worker thread (anyio)
    offload_sync_handlers: bool = False

    # Validation — unknown rule names raise at parse time instead of being skipped
    strict_rules: bool = False

    # API routes
    default_namespace: str = ""

    # URL generation for non-API route types
    ajax_endpoint: str = "/ajax"
    admin_endpoint: str = "/admin"

    # Admin pages
    default_admin_capability: str = "manage_options"

    # Defaults for a bare ``rate_limit`` spec
    rate_limit_requests: int = 60
    rate_limit_window: int = 60

    # One-time tokens (``nonce:action``)
    nonce_secret: str = ""
    nonce_lifetime: int = 86_400  # 24 hours
    nonce_header: str = "x-nonce"
    nonce_param: str = "_nonce"

    # CORS (``cors``)
    cors: CORSConfig = field(default_factory=CORSConfig)

    # ``json_only``
    json_content_types: tuple[str, ...] = (
        "application/json",
        "application/vnd.api+json",
        "text/json",
    )
