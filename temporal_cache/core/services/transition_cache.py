"""
TransitionCache - in-process memoization of next-transition lookups.

Keyed by (now, workspace_id, language_id). A cached None ("no upcoming
transition") is a legitimate result, so presence is checked with has()
independently of the value returned by get().

Key behaviors:
- Populated lazily by the repository on first lookup per key
- No TTL or eviction; clear() is the only eviction path
- Guarded by a lock so concurrent renders can share one instance
"""

from __future__ import annotations

import json
from threading import Lock
from typing import TypedDict


class TransitionCacheStats(TypedDict):
    entry_count: int
    approximate_memory_bytes: int


class TransitionCache:
    """Map of next-transition results for the lifetime of a context."""

    def __init__(self) -> None:
        self._entries: dict[str, int | None] = {}
        self._lock = Lock()

    @staticmethod
    def _key(now: int, workspace_id: int, language_id: int) -> str:
        return f"next_{now}_{workspace_id}_{language_id}"

    def has(self, now: int, workspace_id: int, language_id: int) -> bool:
        key = self._key(now, workspace_id, language_id)
        with self._lock:
            return key in self._entries

    def get(self, now: int, workspace_id: int, language_id: int) -> int | None:
        """Cached value; None both for a cached None and for a miss (use has())."""
        key = self._key(now, workspace_id, language_id)
        with self._lock:
            return self._entries.get(key)

    def set(self, now: int, workspace_id: int, language_id: int, value: int | None) -> None:
        key = self._key(now, workspace_id, language_id)
        with self._lock:
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries = {}

    def stats(self) -> TransitionCacheStats:
        """Entry count and a serialized-size memory estimate (advisory only)."""
        with self._lock:
            snapshot = dict(self._entries)
        return {
            "entry_count": len(snapshot),
            "approximate_memory_bytes": len(json.dumps(snapshot).encode("utf-8")),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
