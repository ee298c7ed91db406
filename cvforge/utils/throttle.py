"""
Per-client sliding-window request throttling.

The request log sits behind the RequestCounterStore port so the throttle never
depends on a concrete storage choice. InMemoryRequestCounterStore is the only
implementation today; an external cache can implement the same three methods.
"""

import os
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List

from dotenv import load_dotenv

from cvforge.exceptions import RateLimitExceeded

load_dotenv()
THROTTLE_MAX_REQUESTS = int(os.getenv("THROTTLE_MAX_REQUESTS", "100"))
THROTTLE_WINDOW_S = float(os.getenv("THROTTLE_WINDOW_S", str(15 * 60)))


class RequestCounterStore(ABC):
    """Storage port for per-client request timestamps."""

    @abstractmethod
    def record_if_below(
        self, client_id: str, now: float, window_start: float, limit: int
    ) -> List[float]:
        """
        Atomically prune timestamps older than window_start, then append now if fewer
        than limit remain.

        Returns:
            Timestamps inside the window before now was (possibly) appended
        """

    @abstractmethod
    def clear(self, client_id: str) -> None:
        """Forget all requests for a client."""

    @abstractmethod
    def client_count(self) -> int:
        """Number of clients currently tracked."""


class InMemoryRequestCounterStore(RequestCounterStore):
    """Process-local store. Pruning is lazy: a client's log is pruned when it is touched."""

    def __init__(self):
        self._requests: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def record_if_below(
        self, client_id: str, now: float, window_start: float, limit: int
    ) -> List[float]:
        with self._lock:
            recent = [t for t in self._requests.get(client_id, []) if t > window_start]
            snapshot = list(recent)
            if len(recent) < limit:
                recent.append(now)
            if recent:
                self._requests[client_id] = recent
            else:
                self._requests.pop(client_id, None)
            return snapshot

    def clear(self, client_id: str) -> None:
        with self._lock:
            self._requests.pop(client_id, None)

    def client_count(self) -> int:
        with self._lock:
            return len(self._requests)


@dataclass
class ThrottleDecision:
    """Result of a throttle check."""

    allowed: bool
    remaining: int
    retry_after_s: int = 0


class SlidingWindowThrottle:
    """
    Allows at most max_requests per client within any window_s-second window.

    Args:
        store: Request log storage (default: in-memory)
        max_requests: Requests admitted per window
        window_s: Window length in seconds
        clock: Time source in seconds (replaceable in tests)
    """

    def __init__(
        self,
        store: RequestCounterStore = None,
        max_requests: int = THROTTLE_MAX_REQUESTS,
        window_s: float = THROTTLE_WINDOW_S,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store or InMemoryRequestCounterStore()
        self.max_requests = max_requests
        self.window_s = window_s
        self.clock = clock

    def check(self, client_id: str) -> ThrottleDecision:
        """Record a request for client_id if it fits in the window."""
        now = self.clock()
        recent = self.store.record_if_below(
            client_id, now=now, window_start=now - self.window_s, limit=self.max_requests
        )

        if len(recent) >= self.max_requests:
            retry_after = max(1, int(min(recent) + self.window_s - now + 0.999))
            return ThrottleDecision(allowed=False, remaining=0, retry_after_s=retry_after)

        return ThrottleDecision(allowed=True, remaining=self.max_requests - len(recent) - 1)

    def acquire(self, client_id: str) -> ThrottleDecision:
        """
        Like check(), but raises when the client is over budget.

        Raises:
            RateLimitExceeded: If the window is full
        """
        decision = self.check(client_id)
        if not decision.allowed:
            raise RateLimitExceeded(client_id, decision.retry_after_s)
        return decision
