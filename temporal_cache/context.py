"""
TemporalCacheContext - wiring of the temporal cache engine.

Built once per process with create(); torn down with close() or by using
the context as a `with` block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import TracebackType

from temporal_cache.adapters.cache_tags import LoggingCacheTagSink
from temporal_cache.adapters.clock import SystemClock
from temporal_cache.adapters.sqlite.repos import (
    SQLiteReferenceIndex,
    SQLiteRegistryStore,
    SQLiteTemporalContentRepo,
)
from temporal_cache.components.lifetime import TemporalCacheLifetime
from temporal_cache.components.scheduler import TemporalCacheSchedulerTask
from temporal_cache.components.scoping import ScopingStrategyFactory, create_scoping_strategy
from temporal_cache.components.timing import TimingStrategyFactory, create_timing_strategy
from temporal_cache.core.ports import (
    CacheTagFlushPort,
    ClockPort,
    ReferenceIndexPort,
    WatermarkStorePort,
)
from temporal_cache.core.services import (
    HarmonizationService,
    TemporalMonitorRegistry,
    TransitionCache,
)
from temporal_cache.rules.models import TemporalCacheRules

logger = logging.getLogger(__name__)

scheduler_logger = logging.getLogger("temporal_cache.scheduler")


@dataclass
class TemporalCacheContext:
    rules: TemporalCacheRules
    clock: ClockPort
    registry: TemporalMonitorRegistry
    transition_cache: TransitionCache
    repository: SQLiteTemporalContentRepo
    reference_index: ReferenceIndexPort | None
    scoping: ScopingStrategyFactory
    timing: TimingStrategyFactory
    lifetime: TemporalCacheLifetime
    harmonization: HarmonizationService
    watermark_store: WatermarkStorePort
    sink: CacheTagFlushPort

    @classmethod
    def create(
        cls,
        db_path: str,
        rules: TemporalCacheRules,
        clock: ClockPort | None = None,
        sink: CacheTagFlushPort | None = None,
        reference_index: ReferenceIndexPort | None = None,
        watermark_store: WatermarkStorePort | None = None,
    ) -> TemporalCacheContext:
        clock = clock or SystemClock()
        sink = sink or LoggingCacheTagSink()

        # Monitored tables
        registry = TemporalMonitorRegistry()
        for table in rules.tables:
            registry.register_table(table.name, table.fields or None)

        # Adapters
        transition_cache = TransitionCache()
        repository = SQLiteTemporalContentRepo(
            db_path,
            transition_cache,
            registry,
            language_fallback=rules.advanced.language_fallback,
        )
        if reference_index is None and rules.scoping.use_refindex:
            reference_index = SQLiteReferenceIndex(db_path)
        watermark_store = watermark_store or SQLiteRegistryStore(db_path)

        # Strategies
        scoping = create_scoping_strategy(rules, repository, clock, reference_index)
        timing = create_timing_strategy(rules, scoping, clock, sink)
        lifetime = TemporalCacheLifetime(timing, rules)

        logger.info("Temporal cache ready (scoping=%s, timing=%s)", scoping.name, timing.name)

        return cls(
            rules=rules,
            clock=clock,
            registry=registry,
            transition_cache=transition_cache,
            repository=repository,
            reference_index=reference_index,
            scoping=scoping,
            timing=timing,
            lifetime=lifetime,
            harmonization=HarmonizationService(rules.harmonization),
            watermark_store=watermark_store,
            sink=sink,
        )

    def new_scheduler_task(self) -> TemporalCacheSchedulerTask:
        return TemporalCacheSchedulerTask(
            repository=self.repository,
            timing_strategy=self.timing,
            rules=self.rules,
            clock=self.clock,
            watermark_store=self.watermark_store,
            logger=scheduler_logger,
        )

    def close(self) -> None:
        self.transition_cache.clear()

    def __enter__(self) -> TemporalCacheContext:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
