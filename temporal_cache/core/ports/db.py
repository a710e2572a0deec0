"""
Datastore port interfaces.

Protocol-based interfaces for the temporal content repository, the
watermark (key-value registry) store and schema inspection.
Implementations: SQLite (adapters/sqlite/repos.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from temporal_cache.core.entities import TemporalContent, TransitionEvent

# -----------------------------------------------------------------------------
# Temporal content repository
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TemporalStatistics:
    """Overview counts of temporal content in one workspace."""

    total: int = 0
    pages: int = 0
    content: int = 0
    with_start: int = 0
    with_end: int = 0
    with_both: int = 0


class TemporalContentRepoPort(Protocol):
    """
    Repository for temporal content across all monitored tables.

    Invariants:
    - I1: zero-valued starttime/endtime never count as a transition
    - I2: "no transition" (None) is cached like any other result
    - I3: range results are ordered by timestamp ascending
    """

    def get_next_transition(
        self,
        now: int,
        workspace_id: int = 0,
        language_id: int = 0,
        include_hidden: bool = False,
    ) -> int | None:
        """Earliest starttime/endtime strictly after now, or None."""
        ...

    def find_transitions_in_range(self, from_ts: int, to_ts: int) -> list[TransitionEvent]:
        """All transitions with timestamp in (from_ts, to_ts]."""
        ...

    def find_all_with_temporal_fields(
        self,
        workspace_id: int = 0,
        language_id: int = -1,
    ) -> list[TemporalContent]:
        """Every record with starttime or endtime set."""
        ...


# -----------------------------------------------------------------------------
# Watermark store
# -----------------------------------------------------------------------------


class WatermarkStorePort(Protocol):
    """
    Namespaced key-value store for small integers.

    Used by the scheduler task to persist its last-run watermark.
    Writes are last-write-wins.
    """

    def get(self, namespace: str, key: str) -> int | None:
        """Read a value, or None if absent."""
        ...

    def set(self, namespace: str, key: str, value: int) -> None:
        """Write a value (upsert)."""
        ...


# -----------------------------------------------------------------------------
# Schema inspection
# -----------------------------------------------------------------------------


class SchemaInspectorPort(Protocol):
    """Read-only view of the datastore schema, used by the verify command."""

    def table_columns(self, table_name: str) -> set[str]:
        """Column names of a table; empty if the table does not exist."""
        ...

    def indexed_columns(self, table_name: str) -> set[str]:
        """Columns that lead at least one index on the table."""
        ...
