"""
Timing component - strategy registry and selection.

Invariants:
- I1: selection is by string key, never by reflection
- I2: the factory always resolves to a strategy (dynamic is the fallback)
- I3: the factory itself satisfies TimingStrategyPort
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from temporal_cache.components.scoping import ScopingStrategyPort
from temporal_cache.core.entities import TransitionEvent
from temporal_cache.core.errors import ConfigurationError
from temporal_cache.core.ports import CacheTagFlushPort, ClockPort
from temporal_cache.rules.models import TemporalCacheRules

from ._impl import DynamicTimingStrategy, HybridTimingStrategy, SchedulerTimingStrategy
from .ports import TimingStrategyPort

logger = logging.getLogger(__name__)

FALLBACK_STRATEGY = "dynamic"


class TimingStrategyFactory:
    """Selects the configured timing strategy and delegates to it."""

    def __init__(
        self,
        strategies: Iterable[TimingStrategyPort],
        rules: TemporalCacheRules,
    ) -> None:
        self._strategies: dict[str, TimingStrategyPort] = {s.name: s for s in strategies}
        self._active = self._select(rules.timing.strategy)

    def _select(self, configured: str) -> TimingStrategyPort:
        if not self._strategies:
            raise ConfigurationError("timing.strategy", configured)

        if configured in self._strategies:
            return self._strategies[configured]

        fallback = (
            FALLBACK_STRATEGY
            if FALLBACK_STRATEGY in self._strategies
            else next(iter(self._strategies))
        )
        logger.warning("%s", ConfigurationError("timing.strategy", configured, fallback))
        return self._strategies[fallback]

    @property
    def name(self) -> str:
        return self._active.name

    def get_active_strategy(self) -> TimingStrategyPort:
        return self._active

    def get_available_strategies(self) -> list[str]:
        return list(self._strategies)

    def get_cache_lifetime(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        return self._active.get_cache_lifetime(workspace_id, language_id)

    def process_transition(self, event: TransitionEvent) -> None:
        self._active.process_transition(event)


def create_timing_strategy(
    rules: TemporalCacheRules,
    scoping: ScopingStrategyPort,
    clock: ClockPort,
    sink: CacheTagFlushPort,
) -> TimingStrategyFactory:
    """Build the factory over the three built-in strategies."""
    dynamic = DynamicTimingStrategy(scoping, clock, rules)
    scheduler = SchedulerTimingStrategy(scoping, sink, rules)
    hybrid = HybridTimingStrategy(dynamic, scheduler, rules.timing.hybrid.as_routes())
    return TimingStrategyFactory([dynamic, scheduler, hybrid], rules)
