"""
Scoping strategy implementations.

- global: every transition flushes the whole page cache
- per-page: only the page that holds the content
- per-content: every page that displays the content (reference index)
"""

from __future__ import annotations

import logging

from temporal_cache.core.entities import TemporalContent
from temporal_cache.core.ports import ClockPort, ReferenceIndexPort, TemporalContentRepoPort
from temporal_cache.rules.models import TemporalCacheRules

logger = logging.getLogger(__name__)

GLOBAL_TAG = "pages"


def page_tag(page_id: int) -> str:
    return f"pageId_{page_id}"


class _RepositoryScopingStrategy:
    """Shared next-transition lookup for strategies backed by the repository."""

    strategy_name = ""

    def __init__(self, repository: TemporalContentRepoPort, clock: ClockPort) -> None:
        self._repository = repository
        self._clock = clock

    @property
    def name(self) -> str:
        return self.strategy_name

    def get_next_transition(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        return self._repository.get_next_transition(
            self._clock.timestamp(), workspace_id, language_id
        )


class GlobalScopingStrategy(_RepositoryScopingStrategy):
    """Flush every cached page on any transition."""

    strategy_name = "global"

    def get_cache_tags_to_flush(
        self,
        content: TemporalContent,
        workspace_id: int = 0,
        language_id: int = 0,
    ) -> set[str]:
        return {GLOBAL_TAG}


class PerPageScopingStrategy(_RepositoryScopingStrategy):
    """Flush the page itself, or the parent page of a content element."""

    strategy_name = "per-page"

    def get_cache_tags_to_flush(
        self,
        content: TemporalContent,
        workspace_id: int = 0,
        language_id: int = 0,
    ) -> set[str]:
        if content.is_page():
            return {page_tag(content.uid)}
        return {page_tag(content.pid)}


class PerContentScopingStrategy(_RepositoryScopingStrategy):
    """
    Flush every page embedding a content element.

    Falls back to the parent page when the reference index is disabled,
    fails, or knows no embedding page.
    """

    strategy_name = "per-content"

    def __init__(
        self,
        repository: TemporalContentRepoPort,
        clock: ClockPort,
        reference_index: ReferenceIndexPort | None,
        rules: TemporalCacheRules,
    ) -> None:
        super().__init__(repository, clock)
        self._reference_index = reference_index
        self._rules = rules

    def get_cache_tags_to_flush(
        self,
        content: TemporalContent,
        workspace_id: int = 0,
        language_id: int = 0,
    ) -> set[str]:
        if content.is_page():
            return {page_tag(content.uid)}

        if not self._rules.scoping.use_refindex or self._reference_index is None:
            return {page_tag(content.pid)}

        try:
            page_ids = self._reference_index.find_pages_embedding(
                content.uid, language_id, content.table_name
            )
        except Exception as e:
            logger.warning(
                "Reference index lookup failed for %s #%d, using parent page %d: %s",
                content.table_name,
                content.uid,
                content.pid,
                e,
            )
            return {page_tag(content.pid)}

        if not page_ids:
            return {page_tag(content.pid)}

        return {page_tag(page_id) for page_id in page_ids}
