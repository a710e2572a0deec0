"""
Domain entities for temporal content.

- TemporalContent: immutable snapshot of one record's visibility window
- TransitionEvent: a TemporalContent paired with the instant its visibility flips

All timestamps are integer Unix seconds (UTC). A zero or missing
starttime/endtime means "unbounded on that side" and is normalized to None.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal, get_args

from temporal_cache.core.errors import InvalidTransitionType

__all__ = [
    "PAGES_TABLE",
    "CONTENT_TABLE",
    "TemporalContent",
    "TransitionEvent",
    "TransitionType",
    "normalize_timestamp",
]

PAGES_TABLE = "pages"
CONTENT_TABLE = "content"

TransitionType = Literal["start", "end", "unknown"]

_TRANSITION_TYPES: tuple[str, ...] = get_args(TransitionType)


def normalize_timestamp(value: object) -> int | None:
    """Map a raw datastore value to a timestamp; 0/NULL mean 'unset'."""
    if value is None:
        return None
    ts = int(value)  # type: ignore[call-overload]
    return ts if ts > 0 else None


# --- TemporalContent ---


@dataclass(frozen=True)
class TemporalContent:
    """
    Temporal fields and identity of one content record.

    Identity is (uid, table_name). Built fresh for every mapped row.
    """

    uid: int
    table_name: str
    title: str
    pid: int
    starttime: int | None
    endtime: int | None
    language_id: int = 0
    workspace_id: int = 0
    hidden: bool = False
    deleted: bool = False

    def __post_init__(self) -> None:
        # 0 is the datastore sentinel for "unset", never 1970-01-01
        object.__setattr__(self, "starttime", normalize_timestamp(self.starttime))
        object.__setattr__(self, "endtime", normalize_timestamp(self.endtime))

    def has_temporal_fields(self) -> bool:
        return self.starttime is not None or self.endtime is not None

    def get_next_transition(self, now: int) -> int | None:
        """Earliest of starttime/endtime strictly after now."""
        candidates = [t for t in (self.starttime, self.endtime) if t is not None and t > now]
        return min(candidates) if candidates else None

    @property
    def content_type(self) -> str:
        """Routing key used by hybrid timing ('pages' or 'content')."""
        return "pages" if self.is_page() else "content"

    def is_page(self) -> bool:
        return self.table_name == PAGES_TABLE

    def is_content(self) -> bool:
        return self.table_name == CONTENT_TABLE

    def is_visible(self, now: int) -> bool:
        if self.hidden or self.deleted:
            return False
        if self.starttime is not None and self.starttime > now:
            return False
        if self.endtime is not None and self.endtime < now:
            return False
        return True

    def get_transition_type(self, timestamp: int) -> TransitionType | None:
        """Classify an exact-match timestamp as 'start', 'end' or None."""
        if self.starttime == timestamp:
            return "start"
        if self.endtime == timestamp:
            return "end"
        return None


# --- TransitionEvent ---


@dataclass(frozen=True)
class TransitionEvent:
    """
    A visibility transition of one TemporalContent.

    Produced by the repository range query, consumed once by a timing strategy.
    """

    content: TemporalContent
    timestamp: int
    transition_type: TransitionType
    workspace_id: int = 0
    language_id: int = 0

    def __post_init__(self) -> None:
        if self.transition_type not in _TRANSITION_TYPES:
            raise InvalidTransitionType(self.transition_type)

    def is_start_transition(self) -> bool:
        return self.transition_type == "start"

    def is_end_transition(self) -> bool:
        return self.transition_type == "end"

    def get_log_message(self) -> str:
        when = datetime.fromtimestamp(self.timestamp, UTC).strftime("%Y-%m-%d %H:%M:%S")
        return (
            f"Transition: {self.content.table_name} #{self.content.uid} "
            f"({self.content.title}) - {self.transition_type} at {when} "
            f"(workspace={self.workspace_id}, language={self.language_id})"
        )
