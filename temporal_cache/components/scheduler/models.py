"""
Scheduler component models.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

WATERMARK_NAMESPACE = "temporal_cache"
WATERMARK_KEY = "scheduler_last_run"


class SchedulerRunState(str, Enum):
    """Phases of one batch run."""

    IDLE = "idle"
    VALIDATING = "validating"
    FETCHING = "fetching"
    PROCESSING = "processing"
    COMMITTING = "committing"
    FAILED = "failed"


@dataclass(frozen=True)
class BatchRunResult:
    """Outcome of one scheduler run."""

    success: bool
    state: SchedulerRunState
    window_from: int = 0
    window_to: int = 0
    transitions_found: int = 0
    processed: int = 0
    errors: int = 0
    watermark_advanced: bool = False
    error_message: str | None = None
