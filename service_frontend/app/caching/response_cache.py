"""
Process-wide response cache with per-entry expiry.
"""

import json
import threading
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fips_shared.logging import get_logger


@dataclass
class CacheEntry:
    """A cached value plus the tracking data shown on the cache admin page."""

    key: str
    value: Any
    expires_at: float
    created_at: float
    last_accessed: float
    duration: float
    endpoint: Optional[str] = None
    hit_count: int = 0
    size: Optional[int] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now

    def to_info(self, now: float) -> Dict[str, Any]:
        """Serializable view of the entry without its value."""
        return {
            "key": self.key,
            "endpoint": self.endpoint,
            "created_at": _iso(self.created_at),
            "last_accessed": _iso(self.last_accessed),
            "expires_at": _iso(self.expires_at),
            "duration_seconds": self.duration,
            "seconds_until_expiry": max(0.0, round(self.expires_at - now, 3)),
            "hit_count": self.hit_count,
            "size_bytes": self.size,
            "status": "Expired" if self.is_expired(now) else "Active",
        }


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


def estimate_size(value: Any) -> Optional[int]:
    """Approximate serialized size of a cached value in bytes."""
    try:
        if hasattr(value, "model_dump_json"):
            return len(value.model_dump_json())
        return len(json.dumps(value, default=str))
    except (TypeError, ValueError):
        return None


class ResponseCache:
    """Thread-safe key/value store with time-based expiry.

    Expired entries are dropped lazily when read, or eagerly when the cache
    is at capacity. Capacity eviction is time-based: expired entries go
    first, then the entry closest to expiry. Every read and write of an
    entry happens under one lock, so writes land whole and the last completed
    write for a key wins.
    """

    def __init__(self, max_entries: int = 1000, clock: Callable[[], float] = time.time):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self.logger = get_logger("frontend.response_cache")

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key``, or None on a miss."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if entry.is_expired(now):
                del self._entries[key]
                self._misses += 1
                self.logger.debug("Cache entry expired", key=key)
                return None
            entry.hit_count += 1
            entry.last_accessed = now
            self._hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float, endpoint: Optional[str] = None) -> CacheEntry:
        """Store ``value`` under ``key`` for ``ttl_seconds``, replacing any previous entry."""
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        size = estimate_size(value)
        with self._lock:
            now = self._clock()
            if key not in self._entries and len(self._entries) >= self.max_entries:
                self._evict(now)
            entry = CacheEntry(
                key=key,
                value=value,
                expires_at=now + ttl_seconds,
                created_at=now,
                last_accessed=now,
                duration=ttl_seconds,
                endpoint=endpoint,
                size=size,
            )
            self._entries[key] = entry
            snapshot = replace(entry)
        self.logger.debug("Cached value", key=key, ttl=ttl_seconds)
        return snapshot

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def remove_prefix(self, prefix: str) -> int:
        """Remove every entry whose key starts with ``prefix``."""
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> int:
        """Drop every entry and return how many were removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        self.logger.info("Response cache cleared", entries_removed=count)
        return count

    def entries(self) -> List[Dict[str, Any]]:
        """Tracking info for every live entry, soonest expiry first."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            live = sorted(self._entries.values(), key=lambda entry: entry.expires_at)
            return [entry.to_info(now) for entry in live]

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            return {
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self._hits,
                "misses": self._misses,
                "hit_ratio": round(self._hits / total, 4) if total else 0.0,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _purge_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _evict(self, now: float) -> None:
        # Caller holds the lock.
        if self._purge_expired(now):
            return
        victim = min(self._entries.values(), key=lambda entry: entry.expires_at)
        del self._entries[victim.key]
        self.logger.info("Evicted cache entry at capacity", key=victim.key, max_entries=self.max_entries)
