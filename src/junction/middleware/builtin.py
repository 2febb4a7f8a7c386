"""Built-in middleware: CORS and JSON-only.

``cors`` never rejects. It computes the CORS headers for the request so
the host can attach them to whatever response it renders; answering
preflight ``OPTIONS`` requests is the transport's job.

``json_only`` rejects requests that don't carry (or accept) JSON.
"""

import json
from dataclasses import dataclass

from junction.request import RequestContext
from junction.results import ErrorResult, rejected


@dataclass(frozen=True, slots=True)
class CORSConfig:
    """CORS middleware configuration.

    All fields have secure defaults (nothing is allowed).
    Override what you need::

        CORSConfig(
            allow_origins=("https://example.com",),
            allow_methods=("GET", "POST"),
        )
    """

    allow_origins: tuple[str, ...] = ()
    allow_methods: tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    allow_headers: tuple[str, ...] = ()
    expose_headers: tuple[str, ...] = ()
    allow_credentials: bool = False
    max_age: int = 600  # 10 minutes


class CORSMiddleware:
    """Standards-compliant CORS header computation.

    Handles:
    - Requests without an ``Origin`` header (no headers)
    - Disallowed origins (no headers, request still continues)
    - Wildcard origins (``"*"``) when credentials are disabled
    - Preflight extras (``Allow-Methods``, ``Allow-Headers``, ``Max-Age``)
    """

    __slots__ = ("config",)

    name = "cors"

    def __init__(self, config: CORSConfig | None = None) -> None:
        self.config = config or CORSConfig()

    def _is_allowed_origin(self, origin: str) -> bool:
        """Check if the origin is in the allow list."""
        if "*" in self.config.allow_origins:
            return True
        return origin in self.config.allow_origins

    def headers_for(self, context: RequestContext) -> tuple[tuple[str, str], ...]:
        """The CORS headers a response to *context* should carry."""
        origin = context.header("origin")
        if origin is None or not self._is_allowed_origin(origin):
            return ()

        cfg = self.config
        headers: list[tuple[str, str]] = []

        # Origin header
        if "*" in cfg.allow_origins and not cfg.allow_credentials:
            headers.append(("Access-Control-Allow-Origin", "*"))
        else:
            headers.append(("Access-Control-Allow-Origin", origin))
            headers.append(("Vary", "Origin"))

        if cfg.allow_credentials:
            headers.append(("Access-Control-Allow-Credentials", "true"))

        if cfg.expose_headers:
            headers.append(("Access-Control-Expose-Headers", ", ".join(cfg.expose_headers)))

        # Preflight-specific headers
        if context.method == "OPTIONS":
            if context.header("access-control-request-method"):
                headers.append(("Access-Control-Allow-Methods", ", ".join(cfg.allow_methods)))
            if cfg.allow_headers:
                headers.append(("Access-Control-Allow-Headers", ", ".join(cfg.allow_headers)))
            headers.append(("Access-Control-Max-Age", str(cfg.max_age)))

        return tuple(headers)

    def handle(self, context: RequestContext) -> ErrorResult | None:
        return None


_BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class JsonOnlyMiddleware:
    """Reject requests that aren't JSON.

    - POST/PUT/PATCH must send a JSON ``Content-Type`` (400 if missing,
      415 if something else) and, when a body is present, valid JSON (400).
    - Every method must accept JSON when it sends an ``Accept`` header (406).
    """

    __slots__ = ("content_types",)

    name = "json_only"

    def __init__(self, content_types: tuple[str, ...] = ("application/json",)) -> None:
        self.content_types = content_types

    def handle(self, context: RequestContext) -> ErrorResult | None:
        if context.method in _BODY_METHODS:
            content_type = context.content_type
            if not content_type:
                return rejected("Content-Type header is required for this endpoint", 400)
            main_type = content_type.split(";", 1)[0].strip().lower()
            if main_type not in self.content_types:
                allowed = ", ".join(self.content_types)
                return rejected(f"Content-Type must be one of: {allowed}. Received: {main_type}", 415)
            raw = context.raw_body
            if raw:
                try:
                    json.loads(raw)
                except ValueError as exc:
                    return rejected(f"Request body contains invalid JSON: {exc}", 400)

        return self._check_accept(context.header("accept"))

    def _check_accept(self, accept: str | None) -> ErrorResult | None:
        if not accept:
            return None
        accepted = {part.split(";", 1)[0].strip().lower() for part in accept.split(",")}
        if accepted & {"*/*", "application/*", *self.content_types}:
            return None
        return rejected("This endpoint only returns JSON", 406)
