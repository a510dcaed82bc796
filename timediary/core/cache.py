"""In-memory caches shared by the request handlers and the refresh job.

The application creates one `TTLCache` at startup and hands it to routes
through the `get_cache` dependency, so tests can swap in a fresh cache or a
`NullCache`.
"""
import datetime as dt
import threading
import time
from collections.abc import Callable
from typing import Any

from fastapi import Request


class TTLCache:
    """A dict-backed cache whose entries expire after `ttl` seconds.

    `set` accepts a per-entry ttl for values that must outlive the default,
    such as parsed calendar feeds kept between refreshes.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return default
            return value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        lifetime = self.ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (self._clock() + lifetime, value)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        """Drop every key starting with `prefix`. Returns how many were removed."""
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class NullCache:
    """Cache that never stores anything."""

    def get(self, key: str, default: Any = None) -> Any:
        return default

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        pass

    def delete(self, key: str) -> None:
        pass

    def delete_prefix(self, prefix: str) -> int:
        return 0

    def clear(self) -> None:
        pass

    def __contains__(self, key: str) -> bool:
        return False

    def __len__(self) -> int:
        return 0


_MISSING = object()


def get_cache(request: Request) -> TTLCache:
    """Dependency returning the application-owned cache."""
    return request.app.state.cache


def day_key(user_id: int, day: dt.date) -> str:
    return f"day:{user_id}:{day.isoformat()}"


def invalidate_days(cache, user_id: int, *days: dt.date) -> None:
    """Forget cached day views touched by a write on any of `days`.

    An event is visible on its own date and, when it runs overnight, on the
    next one, so both are dropped. Monthly aggregates are dropped as well.
    """
    for day in days:
        cache.delete(day_key(user_id, day))
        cache.delete(day_key(user_id, day + dt.timedelta(days=1)))
    cache.delete_prefix(f"monthly:{user_id}:")


def invalidate_owner(cache, user_id: int) -> None:
    """Forget every cached view of `user_id` (category or routine edits)."""
    cache.delete_prefix(f"day:{user_id}:")
    cache.delete_prefix(f"monthly:{user_id}:")
