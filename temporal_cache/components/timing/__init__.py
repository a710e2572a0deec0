"""
Timing component - when cached pages are invalidated.
"""

from ._impl import (
    ROUTE_DYNAMIC,
    ROUTE_SCHEDULER,
    DynamicTimingStrategy,
    HybridTimingStrategy,
    SchedulerTimingStrategy,
)
from .component import TimingStrategyFactory, create_timing_strategy
from .ports import TimingStrategyPort

__all__ = [
    "DynamicTimingStrategy",
    "HybridTimingStrategy",
    "SchedulerTimingStrategy",
    "TimingStrategyFactory",
    "TimingStrategyPort",
    "create_timing_strategy",
    "ROUTE_DYNAMIC",
    "ROUTE_SCHEDULER",
]
