"""
Scheduler component - batch invalidation of transitions since the last run.
"""

from .component import TemporalCacheSchedulerTask
from .models import (
    WATERMARK_KEY,
    WATERMARK_NAMESPACE,
    BatchRunResult,
    SchedulerRunState,
)

__all__ = [
    "BatchRunResult",
    "SchedulerRunState",
    "TemporalCacheSchedulerTask",
    "WATERMARK_KEY",
    "WATERMARK_NAMESPACE",
]
