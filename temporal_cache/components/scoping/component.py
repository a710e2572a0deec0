"""
Scoping component - strategy registry and selection.

Invariants:
- I1: selection is by string key, never by reflection
- I2: the factory always resolves to a strategy (global is the fallback)
- I3: the factory itself satisfies ScopingStrategyPort
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from temporal_cache.core.entities import TemporalContent
from temporal_cache.core.errors import ConfigurationError
from temporal_cache.core.ports import ClockPort, ReferenceIndexPort, TemporalContentRepoPort
from temporal_cache.rules.models import TemporalCacheRules

from ._impl import GlobalScopingStrategy, PerContentScopingStrategy, PerPageScopingStrategy
from .ports import ScopingStrategyPort

logger = logging.getLogger(__name__)

FALLBACK_STRATEGY = "global"


class ScopingStrategyFactory:
    """Selects the configured scoping strategy and delegates to it."""

    def __init__(
        self,
        strategies: Iterable[ScopingStrategyPort],
        rules: TemporalCacheRules,
    ) -> None:
        self._strategies: dict[str, ScopingStrategyPort] = {s.name: s for s in strategies}
        self._active = self._select(rules.scoping.strategy)

    def _select(self, configured: str) -> ScopingStrategyPort:
        if not self._strategies:
            raise ConfigurationError("scoping.strategy", configured)

        if configured in self._strategies:
            return self._strategies[configured]

        fallback = (
            FALLBACK_STRATEGY
            if FALLBACK_STRATEGY in self._strategies
            else next(iter(self._strategies))
        )
        logger.warning("%s", ConfigurationError("scoping.strategy", configured, fallback))
        return self._strategies[fallback]

    @property
    def name(self) -> str:
        return self._active.name

    def get_active_strategy(self) -> ScopingStrategyPort:
        return self._active

    def get_available_strategies(self) -> list[str]:
        return list(self._strategies)

    def get_cache_tags_to_flush(
        self,
        content: TemporalContent,
        workspace_id: int = 0,
        language_id: int = 0,
    ) -> set[str]:
        return self._active.get_cache_tags_to_flush(content, workspace_id, language_id)

    def get_next_transition(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        return self._active.get_next_transition(workspace_id, language_id)


def create_scoping_strategy(
    rules: TemporalCacheRules,
    repository: TemporalContentRepoPort,
    clock: ClockPort,
    reference_index: ReferenceIndexPort | None = None,
) -> ScopingStrategyFactory:
    """Build the factory over the three built-in strategies."""
    strategies: list[ScopingStrategyPort] = [
        GlobalScopingStrategy(repository, clock),
        PerPageScopingStrategy(repository, clock),
        PerContentScopingStrategy(repository, clock, reference_index, rules),
    ]
    return ScopingStrategyFactory(strategies, rules)
