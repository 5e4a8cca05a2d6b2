"""
Last-good response cache.

Entries are keyed by "{api_name}:{path}". An entry is fresh while
now - stored_at_ms < ttl_ms, but it is never evicted on expiry: the API
manager returns it as a stale fallback when every endpoint has failed.
Only clear() removes entries.

NOTE: growth is unbounded. Cardinality is (registered APIs x distinct
paths), which stays small for this bot.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class CacheEntry:
    payload: Any
    stored_at_ms: float
    ttl_ms: int

    def is_fresh(self, now_ms: float) -> bool:
        return now_ms - self.stored_at_ms < self.ttl_ms


def make_cache_key(api_name: str, path: str) -> str:
    return f"{api_name}:{path}"


class ResponseCache:
    """In-memory TTL cache of parsed JSON payloads."""

    def __init__(self):
        self._entries: dict[str, CacheEntry] = {}

    def get_fresh(self, key: str, now_ms: float) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(now_ms):
            return entry
        return None

    def get_any(self, key: str) -> CacheEntry | None:
        """Return the entry regardless of age."""
        return self._entries.get(key)

    def set(self, key: str, payload: Any, now_ms: float, ttl_ms: int) -> None:
        self._entries[key] = CacheEntry(payload=payload, stored_at_ms=now_ms, ttl_ms=ttl_ms)

    def clear(self, api_name: str | None = None) -> int:
        """
        Drop entries for one API, or everything when api_name is None.

        Returns:
            Number of entries removed
        """
        if api_name is None:
            removed = len(self._entries)
            self._entries.clear()
            return removed

        prefix = f"{api_name}:"
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def stats(self) -> dict[str, Any]:
        return {"size": len(self._entries), "entries": list(self._entries)}

    def __len__(self) -> int:
        return len(self._entries)
