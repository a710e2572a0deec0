"""
Cache-tag flush port.

The engine only computes which tags to invalidate; the host's cache
backend decides how invalidated entries are dropped.
"""

from __future__ import annotations

from typing import Protocol


class CacheTagFlushPort(Protocol):
    """Sink that invalidates every cache entry carrying one of the tags."""

    def flush(self, tags: set[str]) -> None:
        """Flush cache entries by tag. Fire-and-forget for the caller."""
        ...
