"""
Timing component port definitions.

A timing strategy decides when invalidation happens: at render time through
the page's cache lifetime, at batch time through explicit tag flushes, or both.
"""

from __future__ import annotations

from typing import Protocol

from temporal_cache.core.entities import TransitionEvent


class TimingStrategyPort(Protocol):
    """Contract shared by every timing strategy and the factory."""

    @property
    def name(self) -> str:
        """Registry key ('dynamic', 'scheduler', 'hybrid')."""
        ...

    def get_cache_lifetime(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        """Seconds until the next transition, or None to leave the lifetime alone."""
        ...

    def process_transition(self, event: TransitionEvent) -> None:
        """React to a transition found by the batch runner."""
        ...
