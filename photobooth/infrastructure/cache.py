from __future__ import annotations

import threading
import time
from typing import Dict, Optional, Tuple

from ..config import SETTINGS


CacheEntry = Tuple[float, str, bytes]


class ResponseCache:
    """Small TTL cache for proxied image bodies keyed by URL."""

    def __init__(self, ttl: float | None = None, max_entries: int = 32) -> None:
        self._entries: Dict[str, CacheEntry] = {}
        self._ttl = SETTINGS.proxy_cache_ttl if ttl is None else ttl
        self._max_entries = max_entries
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Tuple[str, bytes]]:
        with self._lock:
            entry = self._entries.get(key)
            if not entry:
                return None
            timestamp, content_type, data = entry
            if time.time() - timestamp > self._ttl:
                self._entries.pop(key, None)
                return None
            return content_type, data

    def put(self, key: str, content_type: str, data: bytes) -> None:
        with self._lock:
            if key not in self._entries and len(self._entries) >= self._max_entries:
                oldest = min(self._entries.items(), key=lambda item: item[1][0])[0]
                self._entries.pop(oldest, None)
            self._entries[key] = (time.time(), content_type, data)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
