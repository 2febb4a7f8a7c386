"""Nonce middleware — ``nonce:<action>``.

A nonce is an HMAC over the action, the caller key and a time tick. A
tick is half the nonce lifetime, so a token stays valid for between one
half and one full lifetime. ``verify`` reports which tick matched: 1 for
the current one, 2 for the previous one, 0 for no match.

Safe methods (GET, HEAD, OPTIONS) are not checked.
"""

import hashlib
import hmac
import math
import secrets
import time
from collections.abc import Callable

from junction.request import RequestContext
from junction.results import ErrorResult, rejected

_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
_TOKEN_LENGTH = 20


class NonceManager:
    """Creates and verifies time-limited, caller-bound tokens.

    An empty secret means a random one per process, so tokens do not
    survive a restart.
    """

    __slots__ = ("_clock", "_secret", "lifetime")

    def __init__(
        self,
        secret: str | bytes = "",
        lifetime: int = 86_400,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if lifetime < 2:
            msg = f"Nonce lifetime must be at least 2 seconds, got {lifetime}"
            raise ValueError(msg)
        if isinstance(secret, str):
            secret = secret.encode()
        self._secret = secret or secrets.token_bytes(32)
        self.lifetime = lifetime
        self._clock = clock

    def tick(self) -> int:
        return math.ceil(self._clock() / (self.lifetime / 2))

    def _token(self, tick: int, action: str, caller_key: str) -> str:
        message = f"{tick}|{action}|{caller_key}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()[:_TOKEN_LENGTH]

    def create(self, action: str, caller_key: str) -> str:
        return self._token(self.tick(), action, caller_key)

    def verify(self, token: str, action: str, caller_key: str) -> int:
        if not token:
            return 0
        supplied = token.encode()
        tick = self.tick()
        if hmac.compare_digest(supplied, self._token(tick, action, caller_key).encode()):
            return 1
        if hmac.compare_digest(supplied, self._token(tick - 1, action, caller_key).encode()):
            return 2
        return 0


class NonceMiddleware:
    """Require a valid nonce for ``action`` on unsafe methods.

    The token is read from the ``header`` first, then from the ``param``
    request parameter.
    """

    __slots__ = ("action", "header", "nonces", "param")

    def __init__(
        self,
        nonces: NonceManager,
        action: str = "default",
        *,
        header: str = "x-nonce",
        param: str = "_nonce",
    ) -> None:
        self.nonces = nonces
        self.action = action
        self.header = header
        self.param = param

    @property
    def name(self) -> str:
        return f"nonce:{self.action}"

    def token_from(self, context: RequestContext) -> str | None:
        token = context.header(self.header)
        if token:
            return token
        value = context.all().get(self.param)
        return str(value) if value else None

    def handle(self, context: RequestContext) -> ErrorResult | None:
        if context.method.upper() in _SAFE_METHODS:
            return None
        if not context.caller_is_authenticated():
            return rejected("Authentication required", 401)
        token = self.token_from(context)
        if token is None:
            return rejected("Nonce is required", 400)
        if not self.nonces.verify(token, self.action, context.caller_key()):
            return rejected("Invalid nonce", 403)
        return None
