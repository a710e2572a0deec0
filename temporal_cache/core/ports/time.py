"""
Clock port.

Every component reads "now" through this port so tests can pin time.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class ClockPort(Protocol):
    """Source of the current time."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...

    def timestamp(self) -> int:
        """Get current time as integer Unix seconds."""
        ...
