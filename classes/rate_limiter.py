# classes/rate_limiter.py

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

CLIENT_IP_HEADERS = (
    "x-forwarded-for",
    "x-real-ip",
    "x-client-ip",
    "cf-connecting-ip",
    "x-cluster-client-ip",
)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float
    retry_after: Optional[int] = None


class FixedWindowRateLimiter:
    """
    Process-local fixed-window counter per identifier.

    - The first request of a window opens it for `window_seconds`.
    - check() is an atomic check-and-increment under one lock.
    - Expired windows are dropped by sweep_expired(), which check() also
      runs every `sweep_every` calls.
    """

    def __init__(
        self,
        max_requests: int = 8,
        window_seconds: float = 3600.0,
        *,
        clock: Callable[[], float] = time.time,
        sweep_every: int = 100,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_every = sweep_every
        self._lock = threading.Lock()
        # identifier -> {"count": int, "reset_at": float}
        self._windows: Dict[str, Dict[str, float]] = {}
        self._calls = 0

    def check(self, identifier: str) -> RateLimitResult:
        key = identifier or "unknown"
        with self._lock:
            now = self._clock()
            self._calls += 1
            if self._sweep_every and self._calls % self._sweep_every == 0:
                self._sweep_unlocked(now)

            window = self._windows.get(key)
            if window is None or now >= window["reset_at"]:
                window = {"count": 1, "reset_at": now + self.window_seconds}
                self._windows[key] = window
                return RateLimitResult(True, self.max_requests - 1, window["reset_at"])

            if window["count"] >= self.max_requests:
                retry_after = max(1, math.ceil(window["reset_at"] - now))
                return RateLimitResult(False, 0, window["reset_at"], retry_after)

            window["count"] += 1
            return RateLimitResult(True, self.max_requests - int(window["count"]), window["reset_at"])

    def _sweep_unlocked(self, now: float) -> int:
        expired = [k for k, w in self._windows.items() if now >= w["reset_at"]]
        for k in expired:
            del self._windows[k]
        return len(expired)

    def sweep_expired(self) -> int:
        """
        Delete expired windows. Returns how many entries were removed.
        """
        with self._lock:
            return self._sweep_unlocked(self._clock())


def get_client_ip(headers: Mapping[str, str], fallback: Optional[str] = None) -> str:
    for header in CLIENT_IP_HEADERS:
        value = headers.get(header)
        if value:
            # x-forwarded-for may hold a chain; the first hop is the client
            ip = value.split(",")[0].strip()
            if ip:
                return ip
    return fallback or "unknown"
