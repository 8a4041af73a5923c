import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ENTRIES = 1000


class SettingsCache:
    """
    Small in-process TTL cache shared between requests.
    Stale reads up to ``ttl`` seconds are acceptable.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self.clock = clock
        # insertion ordered, so the first key is always the oldest write
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self.clock() >= expires_at:
                self._entries.pop(key, None)
                return default
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        with self._lock:
            now = self.clock()
            self._entries.pop(key, None)
            self._entries[key] = (now + (self.ttl if ttl is None else ttl), value)
            if len(self._entries) > self.max_entries:
                self._prune(now)

    def get_or_set(self, key: str, loader: Callable[[], Any]) -> Any:
        missing = object()
        value = self.get(key, missing)
        if value is missing:
            value = loader()
            self.set(key, value)
        return value

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _prune(self, now: float) -> None:
        stale_keys = [
            key for key, (expires_at, _) in self._entries.items() if now >= expires_at
        ]
        for key in stale_keys:
            self._entries.pop(key, None)

        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            for key in list(self._entries)[:overflow]:
                self._entries.pop(key, None)
