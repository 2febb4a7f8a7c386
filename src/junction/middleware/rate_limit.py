"""Rate limiting middleware — ``rate_limit:N,W``.

Rejects a caller with 429 once it has made more than ``N`` requests
within a ``W``-second window. Counting is delegated to a ``CounterStore``
so hosts can share counters across processes; the in-memory store here
is the default for a single process.

Windows are fixed: the first hit opens a window of ``W`` seconds and the
count resets when it expires.
"""

import threading
import time
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from junction.request import RequestContext
from junction.results import ErrorResult, rejected


@runtime_checkable
class CounterStore(Protocol):
    """Atomic increment-and-check. Implementations do their own locking."""

    def increment_and_check(self, key: str, limit: int, window_seconds: int) -> bool:
        """Count one hit for *key*; return False if it exceeds *limit* in the window."""
        ...


class InMemoryCounterStore:
    """Fixed-window counters guarded by a lock.

    Expired windows are swept at most once per ``sweep_interval`` seconds,
    so callers that stop sending requests do not stay in memory.
    """

    __slots__ = ("_clock", "_lock", "_next_sweep", "_state", "sweep_interval")

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_interval: float = 60.0) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (count, window_end)
        self._state: dict[str, tuple[int, float]] = {}
        self._next_sweep = 0.0
        self.sweep_interval = sweep_interval

    @property
    def tracked_keys(self) -> int:
        """How many keys currently hold a window."""
        return len(self._state)

    def _sweep(self, now: float) -> None:
        self._state = {key: entry for key, entry in self._state.items() if entry[1] > now}
        self._next_sweep = now + self.sweep_interval

    def increment_and_check(self, key: str, limit: int, window_seconds: int) -> bool:
        now = self._clock()
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(now)
            count, window_end = self._state.get(key, (0, now + window_seconds))
            if now >= window_end:
                count = 0
                window_end = now + window_seconds
            count += 1
            self._state[key] = (count, window_end)
            return count <= limit

    def retry_after(self, key: str, window_seconds: int) -> int:
        """Seconds until *key*'s current window closes."""
        now = self._clock()
        with self._lock:
            _count, window_end = self._state.get(key, (0, now + window_seconds))
        return max(1, int(window_end - now))

    def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key."""
        with self._lock:
            if key is None:
                self._state.clear()
            else:
                self._state.pop(key, None)


class RateLimitMiddleware:
    """Reject callers that exceed ``requests`` per ``window_seconds``."""

    __slots__ = ("requests", "store", "window_seconds")

    def __init__(self, store: CounterStore, requests: int = 60, window_seconds: int = 60) -> None:
        if requests < 1 or window_seconds < 1:
            msg = f"rate_limit needs positive values, got {requests},{window_seconds}"
            raise ValueError(msg)
        self.store = store
        self.requests = requests
        self.window_seconds = window_seconds

    @property
    def name(self) -> str:
        return f"rate_limit:{self.requests},{self.window_seconds}"

    def key_for(self, context: RequestContext) -> str:
        return f"rate_limit:{self.requests}/{self.window_seconds}:{context.caller_key()}"

    def handle(self, context: RequestContext) -> ErrorResult | None:
        key = self.key_for(context)
        if self.store.increment_and_check(key, self.requests, self.window_seconds):
            return None

        retry_after = self.window_seconds
        if isinstance(self.store, InMemoryCounterStore):
            retry_after = self.store.retry_after(key, self.window_seconds)
        return rejected(
            "Too many requests. Please try again later.",
            429,
            headers=(
                ("Retry-After", str(retry_after)),
                ("X-RateLimit-Limit", str(self.requests)),
                ("X-RateLimit-Remaining", "0"),
            ),
        )
