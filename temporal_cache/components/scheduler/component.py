"""
Scheduler component - periodic batch processing of transitions.

Collects every transition since the last run, hands each one to the timing
strategy and advances the watermark.

Invariants:
- I1: validation or fetch failure never touches the watermark
- I2: one failing transition does not stop the others
- I3: the watermark advances iff no errors or at least one success
- I4: collaborators are fixed at construction; create one task per run
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from temporal_cache.components.timing import TimingStrategyPort
from temporal_cache.core.errors import DependencyMissingError
from temporal_cache.core.ports import ClockPort, TemporalContentRepoPort, WatermarkStorePort
from temporal_cache.rules.models import TemporalCacheRules

from .models import WATERMARK_KEY, WATERMARK_NAMESPACE, BatchRunResult, SchedulerRunState

module_logger = logging.getLogger(__name__)


class TemporalCacheSchedulerTask:
    """One scheduler run; the host builds a fresh task per invocation."""

    def __init__(
        self,
        repository: TemporalContentRepoPort | None = None,
        timing_strategy: TimingStrategyPort | None = None,
        rules: TemporalCacheRules | None = None,
        clock: ClockPort | None = None,
        watermark_store: WatermarkStorePort | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repository = repository
        self._timing = timing_strategy
        self._rules = rules
        self._clock = clock
        self._store = watermark_store
        self._logger = logger
        self._state = SchedulerRunState.IDLE

    @property
    def state(self) -> SchedulerRunState:
        return self._state

    def _validate(self) -> None:
        collaborators = {
            "repository": self._repository,
            "timing_strategy": self._timing,
            "rules": self._rules,
            "clock": self._clock,
            "watermark_store": self._store,
            "logger": self._logger,
        }
        missing = [name for name, value in collaborators.items() if value is None]
        if missing:
            raise DependencyMissingError(missing)

    def _fail(self, message: str, window_from: int = 0, window_to: int = 0) -> BatchRunResult:
        self._state = SchedulerRunState.FAILED
        (self._logger or module_logger).error("Temporal cache scheduler failed: %s", message)
        return BatchRunResult(
            success=False,
            state=SchedulerRunState.FAILED,
            window_from=window_from,
            window_to=window_to,
            error_message=message,
        )

    def execute(self) -> BatchRunResult:
        self._state = SchedulerRunState.VALIDATING
        try:
            self._validate()
        except DependencyMissingError as e:
            return self._fail(str(e))

        # Validated above; narrowed for type checkers
        assert self._repository is not None and self._timing is not None
        assert self._rules is not None and self._clock is not None
        assert self._store is not None and self._logger is not None
        log = self._logger

        self._state = SchedulerRunState.FETCHING
        try:
            last_run = self._store.get(WATERMARK_NAMESPACE, WATERMARK_KEY) or 0
            now = self._clock.timestamp()
            events = self._repository.find_transitions_in_range(last_run, now)
        except Exception as e:
            return self._fail(f"could not fetch transitions: {e}")

        if self._rules.is_debug_logging_enabled:
            log.debug(
                "Temporal cache scheduler run (%s): %d transitions in (%d, %d]",
                self._timing.name,
                len(events),
                last_run,
                now,
            )

        if not events:
            return self._commit(last_run, now, found=0, processed=0, errors=0)

        self._state = SchedulerRunState.PROCESSING
        processed = 0
        errors = 0
        for event in events:
            try:
                self._timing.process_transition(event)
                processed += 1
            except Exception as e:
                errors += 1
                log.error(
                    "Failed to process transition for %s #%d (%s at %d): %s",
                    event.content.table_name,
                    event.content.uid,
                    event.transition_type,
                    event.timestamp,
                    e,
                )

        return self._commit(last_run, now, found=len(events), processed=processed, errors=errors)

    def _commit(
        self, last_run: int, now: int, found: int, processed: int, errors: int
    ) -> BatchRunResult:
        assert self._store is not None and self._logger is not None
        self._state = SchedulerRunState.COMMITTING

        success = errors == 0 or processed > 0
        if success:
            try:
                self._store.set(WATERMARK_NAMESPACE, WATERMARK_KEY, now)
            except Exception as e:
                return self._fail(f"could not store watermark: {e}", last_run, now)
            if found:
                self._logger.info(
                    "Temporal cache scheduler processed %d/%d transitions (%d errors)",
                    processed,
                    found,
                    errors,
                )
        else:
            self._logger.error(
                "Temporal cache scheduler: all %d transitions failed, watermark kept at %d",
                found,
                last_run,
            )

        self._state = SchedulerRunState.IDLE if success else SchedulerRunState.FAILED
        return BatchRunResult(
            success=success,
            state=self._state,
            window_from=last_run,
            window_to=now,
            transitions_found=found,
            processed=processed,
            errors=errors,
            watermark_advanced=success,
        )

    def additional_information(self) -> str:
        """One-line status for the host's task overview."""
        strategy = self._timing.name if self._timing is not None else "unknown"
        parts = [f"Strategy: {strategy}"]

        last_run = None
        if self._store is not None:
            try:
                last_run = self._store.get(WATERMARK_NAMESPACE, WATERMARK_KEY)
            except Exception:
                module_logger.debug("Watermark unavailable for task status", exc_info=True)
        if last_run:
            when = datetime.fromtimestamp(last_run, UTC).strftime("%Y-%m-%d %H:%M:%S")
            parts.append(f"Last run: {when}")
        else:
            parts.append("Last run: never")

        if self._rules is not None:
            parts.append(f"Interval: {self._rules.timing.scheduler_interval}s")

        return " | ".join(parts)
