"""Fixed-window request counting per client."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(slots=True)
class RateLimitDecision:
    """Outcome of counting one request against a client's window."""

    allowed: bool
    limit: int
    remaining: int
    reset_seconds: float
    headers: dict[str, str]


@dataclass(frozen=True)
class WindowSettings:
    limit: int
    window_ms: int


@dataclass(slots=True)
class _Window:
    started_ns: int
    hits: int


class FixedWindowLimiter:
    """Allow ``limit`` requests per client in each ``window_ms`` window.

    Windows start at a client's first request; expired windows are pruned
    lazily when any client is counted.
    """

    def __init__(
        self,
        settings: WindowSettings,
        time_provider: Optional[Callable[[], int]] = None,
    ) -> None:
        self._limit = max(0, settings.limit)
        self._window_ns = max(0, settings.window_ms) * 1_000_000
        self._now = time_provider or time.monotonic_ns
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}

    @property
    def enabled(self) -> bool:
        return self._limit > 0 and self._window_ns > 0

    def hit(self, client: str) -> RateLimitDecision:
        """Count one request for ``client`` and report whether it may proceed."""
        if not self.enabled:
            return RateLimitDecision(True, 0, 0, 0.0, {})

        now_ns = self._now()
        with self._lock:
            self._prune(now_ns)
            window = self._windows.get(client)
            if window is None:
                window = _Window(now_ns, 0)
                self._windows[client] = window
            window.hits += 1
            allowed = window.hits <= self._limit
            remaining = max(0, self._limit - window.hits)
            reset_ns = window.started_ns + self._window_ns - now_ns
        reset_seconds = max(0.0, reset_ns / 1_000_000_000)
        return RateLimitDecision(
            allowed=allowed,
            limit=self._limit,
            remaining=remaining,
            reset_seconds=reset_seconds,
            headers=self._headers(remaining, reset_seconds),
        )

    def _prune(self, now_ns: int) -> None:
        expired = [
            client
            for client, window in self._windows.items()
            if now_ns - window.started_ns >= self._window_ns
        ]
        for client in expired:
            del self._windows[client]

    def _headers(self, remaining: int, reset_seconds: float) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self._limit),
            "RateLimit-Remaining": str(remaining),
            "RateLimit-Reset": str(int(reset_seconds + 0.999)),
        }
