# temporal-cache: Services (Domain Services)
# Stateful helpers shared by the repository and the strategies

from temporal_cache.core.services.harmonization import HarmonizationService
from temporal_cache.core.services.monitor_registry import TemporalMonitorRegistry
from temporal_cache.core.services.transition_cache import TransitionCache

__all__ = [
    "HarmonizationService",
    "TemporalMonitorRegistry",
    "TransitionCache",
]
