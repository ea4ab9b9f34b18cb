"""
Report cache and heavy-computation guard.

ReportCache holds derived reports per (report, user, params) for a fixed TTL.
Entries are never invalidated by new data, only by age. Values are deep-copied
on read so a caller mutating its copy cannot corrupt the cached report.

heavy_slots() returns the process-wide semaphore that bounds how many heavy
report computations may run at once.
"""

from __future__ import annotations

import copy
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

from tradementor.utils.config import get_settings


class ReportCache:
    """Thread-safe TTL cache. Clock is injectable for tests."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}  # key -> (value, expires_at)
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def make_key(report: str, user_id: str, *params: Any) -> str:
        return ":".join([report, user_id] + [str(p) for p in params])

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                value, expires_at = entry
                if self._clock() < expires_at:
                    self.hits += 1
                    return copy.deepcopy(value)
                del self._entries[key]
            self.misses += 1
            return default

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value and drop every expired entry."""
        with self._lock:
            now = self._clock()
            self._drop_expired(now)
            self._entries[key] = (copy.deepcopy(value), now + ttl)

    def contains(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and self._clock() < entry[1]

    def purge_expired(self) -> int:
        with self._lock:
            return self._drop_expired(self._clock())

    def _drop_expired(self, now: float) -> int:
        # caller holds _lock
        stale = [k for k, (_, exp) in self._entries.items() if now >= exp]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}


_heavy_slots: Optional[threading.BoundedSemaphore] = None
_heavy_slots_lock = threading.Lock()


def heavy_slots() -> threading.BoundedSemaphore:
    """Process-wide semaphore sized by heavy_concurrency_limit."""
    global _heavy_slots
    with _heavy_slots_lock:
        if _heavy_slots is None:
            _heavy_slots = threading.BoundedSemaphore(max(1, get_settings().heavy_concurrency_limit))
        return _heavy_slots
