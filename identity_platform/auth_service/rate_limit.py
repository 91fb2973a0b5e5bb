"""
Login rate limiting behind a swappable store.

A store answers one question per client key: is this attempt still within the
limit? Answering records the attempt. The in-memory store is per process; a
shared cache can stand in for it by implementing RateLimitStore.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict
import threading
import time


@dataclass
class RateLimitResult:
    allowed: bool
    retry_after: int = 0


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimitStore(ABC):
    @abstractmethod
    def hit(self, key: str) -> RateLimitResult:
        """Record one attempt for key and report whether it is under the limit."""

    @abstractmethod
    def clear(self) -> None:
        """Forget every recorded attempt."""


class InMemoryRateLimitStore(RateLimitStore):
    """Fixed-window counter per key, pruned lazily."""

    def __init__(
        self,
        max_requests: int = 100,
        window_seconds: int = 900,
        clock: Callable[[], float] = time.monotonic
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> RateLimitResult:
        now = self.clock()
        with self._lock:
            self._prune(now)
            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + self.window_seconds)
                return RateLimitResult(allowed=True)

            if window.count >= self.max_requests:
                retry_after = max(1, int(window.reset_at - now + 0.999))
                return RateLimitResult(allowed=False, retry_after=retry_after)

            window.count += 1
            return RateLimitResult(allowed=True)

    def clear(self) -> None:
        with self._lock:
            self._windows.clear()

    def _prune(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
