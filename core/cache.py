"""In-memory TTL cache for generated game boards and other hot reads."""

from __future__ import annotations

import hashlib
import json
import time
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")


@dataclass
class _Entry:
    value: Any
    expires_at: float


def make_cache_key(namespace: str, params: Dict[str, Any]) -> str:
    """Stable key for a namespace + JSON-able params (order independent)."""
    payload = json.dumps(params, sort_keys=True, default=str)
    return f"{namespace}:{hashlib.sha1(payload.encode('utf-8')).hexdigest()}"


class TTLCache:
    def __init__(self, *, max_keys: int = 10_000):
        self._max_keys = max_keys
        self._lock = Lock()
        self._data: Dict[str, _Entry] = {}

    def get(self, key: str) -> Optional[Any]:
        now = time.time()
        with self._lock:
            entry = self._data.get(key)
            if not entry:
                return None
            if entry.expires_at <= now:
                self._data.pop(key, None)
                return None
            return entry.value

    def set(self, key: str, value: Any, *, ttl_seconds: float) -> None:
        expires_at = time.time() + float(ttl_seconds)
        with self._lock:
            if key not in self._data and len(self._data) >= self._max_keys:
                self._evict_locked()
            self._data[key] = _Entry(value=value, expires_at=expires_at)

    def get_or_set(self, key: str, *, ttl_seconds: float, factory: Callable[[], T]) -> T:
        hit = self.get(key)
        if hit is not None:
            return hit
        value = factory()
        self.set(key, value, ttl_seconds=ttl_seconds)
        return value

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._data if key.startswith(prefix)]
            for key in doomed:
                del self._data[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def _evict_locked(self) -> None:
        # Expired entries first, otherwise the one closest to expiry.
        now = time.time()
        expired = [key for key, entry in self._data.items() if entry.expires_at <= now]
        if expired:
            for key in expired:
                del self._data[key]
            return
        victim = min(self._data, key=lambda k: self._data[k].expires_at)
        del self._data[victim]


default_cache = TTLCache()
