from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from threading import Lock


class RateLimiter:
    """Sliding-window counter per (actor, action).

    One instance per server process, injected into the socket handlers.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = Lock()
        self._hits: dict[tuple[str, str], deque[float]] = {}

    def allow(self, actor: str, action: str, max_requests: int = 10, window: float = 1.0) -> bool:
        now = self._clock()
        key = (actor, action)
        with self._lock:
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= window:
                hits.popleft()
            if len(hits) >= max_requests:
                return False
            hits.append(now)
            return True

    def reset(self, actor: str) -> None:
        with self._lock:
            for key in [k for k in self._hits if k[0] == actor]:
                del self._hits[key]

    def cleanup(self, max_idle: float = 60.0) -> int:
        now = self._clock()
        with self._lock:
            stale = [k for k, hits in self._hits.items() if not hits or now - hits[-1] > max_idle]
            for key in stale:
                del self._hits[key]
        return len(stale)
