"""Time-based cache with lazy eviction."""
import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """
    Key/value store whose entries expire after `ttl_seconds`.

    Expired entries are purged by `sweep()`, which also runs on writes at
    most once per `sweep_interval_seconds`.
    """

    def __init__(
        self,
        ttl_seconds: float,
        sweep_interval_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[float, V]] = {}
        self._last_sweep = clock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key) is not None

    def get(self, key: Hashable, allow_stale: bool = False) -> Optional[V]:
        """Return the cached value, or None when absent or expired (unless allow_stale)."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if not allow_stale and self._clock() - stored_at >= self.ttl_seconds:
            return None
        return value

    def set(self, key: Hashable, value: V) -> None:
        now = self._clock()
        self._entries[key] = (now, value)
        if now - self._last_sweep >= self.sweep_interval_seconds:
            self.sweep()

    def pop(self, key: Hashable) -> Optional[V]:
        entry = self._entries.pop(key, None)
        return entry[1] if entry else None

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were dropped."""
        now = self._clock()
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl_seconds]
        for key in expired:
            del self._entries[key]
        self._last_sweep = now
        return len(expired)
