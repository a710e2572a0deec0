"""
Timing strategy implementations.

- dynamic: page lifetime ends exactly at the next transition
- scheduler: the batch runner flushes affected tags; lifetime untouched
- hybrid: routes pages and content elements to one of the above
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from temporal_cache.components.scoping import ScopingStrategyPort
from temporal_cache.core.entities import TransitionEvent
from temporal_cache.core.ports import CacheTagFlushPort, ClockPort
from temporal_cache.rules.models import TemporalCacheRules

from .ports import TimingStrategyPort

logger = logging.getLogger(__name__)

ROUTE_DYNAMIC = "dynamic"
ROUTE_SCHEDULER = "scheduler"


class DynamicTimingStrategy:
    """Event-driven timing: lifetime = next transition - now."""

    def __init__(
        self,
        scoping: ScopingStrategyPort,
        clock: ClockPort,
        rules: TemporalCacheRules,
    ) -> None:
        self._scoping = scoping
        self._clock = clock
        self._rules = rules

    @property
    def name(self) -> str:
        return "dynamic"

    def get_cache_lifetime(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        next_transition = self._scoping.get_next_transition(workspace_id, language_id)
        if next_transition is None:
            return None

        # Clock may have moved past the transition between lookup and now
        lifetime = max(1, next_transition - self._clock.timestamp())

        if self._rules.is_debug_logging_enabled:
            logger.debug(
                "Dynamic lifetime %ds (next transition %d, workspace=%d, language=%d)",
                lifetime,
                next_transition,
                workspace_id,
                language_id,
            )
        return lifetime

    def process_transition(self, event: TransitionEvent) -> None:
        # Expiry already happens through the page lifetime
        return None


class SchedulerTimingStrategy:
    """Batch timing: flush the tags a transition affects."""

    def __init__(
        self,
        scoping: ScopingStrategyPort,
        sink: CacheTagFlushPort,
        rules: TemporalCacheRules,
    ) -> None:
        self._scoping = scoping
        self._sink = sink
        self._rules = rules

    @property
    def name(self) -> str:
        return "scheduler"

    def get_cache_lifetime(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        return None

    def process_transition(self, event: TransitionEvent) -> None:
        tags = self._scoping.get_cache_tags_to_flush(
            event.content, event.workspace_id, event.language_id
        )
        self._sink.flush(tags)

        if self._rules.is_debug_logging_enabled:
            logger.debug("%s; flushed tags: %s", event.get_log_message(), ", ".join(sorted(tags)))


class HybridTimingStrategy:
    """
    Per content type routing between dynamic and scheduler timing.

    Renders are always pages, so the lifetime uses the 'pages' route.
    """

    def __init__(
        self,
        dynamic: TimingStrategyPort,
        scheduler: TimingStrategyPort,
        routes: Mapping[str, str],
    ) -> None:
        self._dynamic = dynamic
        self._scheduler = scheduler
        self._routes = dict(routes)

        if (
            self._routes.get("pages") == ROUTE_SCHEDULER
            and self._routes.get("content") == ROUTE_DYNAMIC
        ):
            logger.warning(
                "Hybrid timing routes pages to scheduler and content to dynamic; "
                "content transitions will not shorten page lifetimes"
            )

    @property
    def name(self) -> str:
        return "hybrid"

    def strategy_for(self, content_type: str) -> TimingStrategyPort:
        route = self._routes.get(content_type, ROUTE_DYNAMIC)
        return self._scheduler if route == ROUTE_SCHEDULER else self._dynamic

    def get_cache_lifetime(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        return self.strategy_for("pages").get_cache_lifetime(workspace_id, language_id)

    def process_transition(self, event: TransitionEvent) -> None:
        self.strategy_for(event.content.content_type).process_transition(event)
