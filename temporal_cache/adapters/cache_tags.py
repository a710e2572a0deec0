"""
Cache-tag flush adapters.

Concrete sinks for CacheTagFlushPort. The host wires its own backend by
subclassing CacheTagSink and implementing flush_tag().
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

logger = logging.getLogger(__name__)


class CacheTagSink(ABC):
    """Base class for cache-tag sinks; flush() fans out to flush_tag()."""

    @abstractmethod
    def flush_tag(self, tag: str) -> None:
        """Invalidate every cache entry carrying the tag."""
        pass

    def flush(self, tags: set[str]) -> None:
        for tag in sorted(tags):
            self.flush_tag(tag)


class CallbackCacheTagSink(CacheTagSink):
    """Delegates each tag to a host callback (e.g. a page cache's flush_by_tag)."""

    def __init__(self, callback: Callable[[str], None]) -> None:
        self._callback = callback

    def flush_tag(self, tag: str) -> None:
        self._callback(tag)


class LoggingCacheTagSink(CacheTagSink):
    """Logs flush requests without touching any cache (dry runs)."""

    def __init__(self, log_level: int = logging.INFO) -> None:
        self.log_level = log_level

    def flush_tag(self, tag: str) -> None:
        logger.log(self.log_level, "Would flush cache tag %s", tag)


# ═══════════════════════════════════════════════════════════════════════════
# STUB SINK (for testing and development)
# ═══════════════════════════════════════════════════════════════════════════


class StubCacheTagSink(CacheTagSink):
    """
    Stub sink for testing.

    Records every flush call without performing actual invalidation.
    """

    def __init__(self) -> None:
        self.flushed_tags: list[str] = []
        self.flush_calls: list[set[str]] = []

    def flush(self, tags: set[str]) -> None:
        self.flush_calls.append(set(tags))
        super().flush(tags)

    def flush_tag(self, tag: str) -> None:
        self.flushed_tags.append(tag)

    def reset(self) -> None:
        self.flushed_tags = []
        self.flush_calls = []
