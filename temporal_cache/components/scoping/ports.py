"""
Scoping component port definitions.

A scoping strategy decides which cache tags a transition invalidates.
"""

from __future__ import annotations

from typing import Protocol

from temporal_cache.core.entities import TemporalContent


class ScopingStrategyPort(Protocol):
    """Contract shared by every scoping strategy and the factory."""

    @property
    def name(self) -> str:
        """Registry key ('global', 'per-page', 'per-content')."""
        ...

    def get_cache_tags_to_flush(
        self,
        content: TemporalContent,
        workspace_id: int = 0,
        language_id: int = 0,
    ) -> set[str]:
        """Cache tags to invalidate when the content changes visibility."""
        ...

    def get_next_transition(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        """Next transition after the clock's current time."""
        ...
