"""
Lifetime component - render-time cache lifetime decision point.

Invariants:
- I1: the returned lifetime never exceeds the resolved ceiling when modified
- I2: any failure in the strategy chain leaves the host's lifetime unmodified
- I3: ceiling order is site ceiling, configured default, 86400
"""

from __future__ import annotations

import logging

from temporal_cache.components.timing import TimingStrategyPort
from temporal_cache.rules.models import DEFAULT_MAX_LIFETIME, TemporalCacheRules

from .models import LifetimeDecision, LifetimeRequest

logger = logging.getLogger(__name__)


def determine_max_lifetime(site_ceiling: int | None, default_max_lifetime: int | None) -> int:
    if site_ceiling is not None and site_ceiling > 0:
        return site_ceiling
    if default_max_lifetime is not None and default_max_lifetime > 0:
        return default_max_lifetime
    return DEFAULT_MAX_LIFETIME


class TemporalCacheLifetime:
    """
    Hook the host calls on every page render.

    Asks the active timing strategy for a lifetime and caps it at the
    ceiling; returns the proposed lifetime when there is nothing to say.
    """

    def __init__(self, timing_strategy: TimingStrategyPort, rules: TemporalCacheRules) -> None:
        self._timing = timing_strategy
        self._rules = rules

    def decide(self, request: LifetimeRequest) -> LifetimeDecision:
        try:
            computed = self._timing.get_cache_lifetime(request.workspace_id, request.language_id)
        except Exception as e:
            logger.error(
                "Temporal cache lifetime calculation failed (workspace=%d, language=%d): %s",
                request.workspace_id,
                request.language_id,
                e,
            )
            return LifetimeDecision(lifetime=request.proposed_lifetime, error=str(e))

        if computed is None:
            return LifetimeDecision(lifetime=request.proposed_lifetime)

        ceiling = determine_max_lifetime(request.site_ceiling, self._rules.default_max_lifetime)
        lifetime = min(computed, ceiling)

        if self._rules.is_debug_logging_enabled:
            logger.debug(
                "Cache lifetime %ds (computed %ds, ceiling %ds, strategy %s)",
                lifetime,
                computed,
                ceiling,
                self._timing.name,
            )

        return LifetimeDecision(lifetime=lifetime, computed=computed, ceiling=ceiling, modified=True)

    def __call__(
        self,
        proposed_lifetime: int,
        site_ceiling: int | None = None,
        workspace_id: int = 0,
        language_id: int = 0,
    ) -> int:
        request = LifetimeRequest(
            proposed_lifetime=proposed_lifetime,
            site_ceiling=site_ceiling,
            workspace_id=workspace_id,
            language_id=language_id,
        )
        return self.decide(request).lifetime
