# fakeverifier/ratelimit.py
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_time: float          # epoch seconds
    retry_after: Optional[int] = None


@dataclass
class _Entry:
    count: int
    reset_time: float
    burst_count: int
    burst_reset_time: float


class RateLimiter:
    """In-process fixed-window limiter: an hourly window plus a burst window."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._store: Dict[str, _Entry] = {}

    def _prune(self, now: float) -> None:
        expired = [k for k, e in self._store.items() if e.reset_time < now and e.burst_reset_time < now]
        for k in expired:
            del self._store[k]

    def check(self, identifier: str, limit: int = 60, window: float = 3600,
              burst_limit: int = 10, burst_window: float = 60) -> RateLimitResult:
        with self._lock:
            now = self._clock()
            self._prune(now)

            entry = self._store.get(identifier)
            if entry is None:
                entry = _Entry(0, now + window, 0, now + burst_window)
                self._store[identifier] = entry

            if now >= entry.reset_time:
                entry.count, entry.reset_time = 0, now + window
            if now >= entry.burst_reset_time:
                entry.burst_count, entry.burst_reset_time = 0, now + burst_window

            if entry.burst_count >= burst_limit:
                return RateLimitResult(False, 0, entry.burst_reset_time,
                                       math.ceil(entry.burst_reset_time - now))
            if entry.count >= limit:
                return RateLimitResult(False, 0, entry.reset_time, math.ceil(entry.reset_time - now))

            entry.count += 1
            entry.burst_count += 1
            return RateLimitResult(True, max(0, limit - entry.count), entry.reset_time)

    def reset(self) -> None:
        with self._lock:
            self._store.clear()


def client_ip(headers, peer: Optional[str] = None) -> str:
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("x-real-ip") or peer or "unknown"


rate_limiter = RateLimiter()
