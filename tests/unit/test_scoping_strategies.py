"""
Scoping strategy and factory tests.
"""

from __future__ import annotations

import logging

import pytest

from temporal_cache.adapters.clock import FixedClock
from temporal_cache.components.scoping import (
    GlobalScopingStrategy,
    PerContentScopingStrategy,
    PerPageScopingStrategy,
    ScopingStrategyFactory,
    create_scoping_strategy,
)
from temporal_cache.core.entities import TemporalContent
from temporal_cache.core.errors import ConfigurationError, ReferenceIndexError
from temporal_cache.rules.models import ScopingRules, TemporalCacheRules

NOW = 1_800_000_000

PAGE = TemporalContent(uid=5, table_name="pages", title="Landing", pid=1, starttime=None, endtime=None)
ELEMENT = TemporalContent(
    uid=123, table_name="content", title="Banner", pid=5, starttime=NOW + 60, endtime=None
)


class MockRepo:
    """Records next-transition lookups."""

    def __init__(self, next_transition: int | None = None) -> None:
        self.next_transition = next_transition
        self.calls: list[tuple[int, int, int]] = []

    def get_next_transition(
        self, now: int, workspace_id: int = 0, language_id: int = 0, include_hidden: bool = False
    ) -> int | None:
        self.calls.append((now, workspace_id, language_id))
        return self.next_transition

    def find_transitions_in_range(self, from_ts: int, to_ts: int) -> list:
        return []

    def find_all_with_temporal_fields(self, workspace_id: int = 0, language_id: int = -1) -> list:
        return []


class MockReferenceIndex:
    def __init__(self, pages: set[int] | None = None, error: Exception | None = None) -> None:
        self.pages = pages or set()
        self.error = error
        self.calls: list[tuple[int, int, str]] = []

    def find_pages_embedding(
        self, content_id: int, language_id: int = 0, table_name: str = "content"
    ) -> set[int]:
        self.calls.append((content_id, language_id, table_name))
        if self.error:
            raise self.error
        return self.pages


def rules_for(strategy: str = "global", use_refindex: bool = True) -> TemporalCacheRules:
    return TemporalCacheRules(scoping=ScopingRules(strategy=strategy, use_refindex=use_refindex))


@pytest.fixture
def repo() -> MockRepo:
    return MockRepo(next_transition=NOW + 3600)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


class TestGlobalScoping:
    def test_always_flushes_pages_tag(self, repo: MockRepo, clock: FixedClock) -> None:
        strategy = GlobalScopingStrategy(repo, clock)
        assert strategy.get_cache_tags_to_flush(PAGE) == {"pages"}
        assert strategy.get_cache_tags_to_flush(ELEMENT, 1, 2) == {"pages"}
        assert strategy.name == "global"

    def test_next_transition_uses_clock(self, repo: MockRepo, clock: FixedClock) -> None:
        strategy = GlobalScopingStrategy(repo, clock)
        assert strategy.get_next_transition(2, 1) == NOW + 3600
        assert repo.calls == [(NOW, 2, 1)]


class TestPerPageScoping:
    def test_page_flushes_itself(self, repo: MockRepo, clock: FixedClock) -> None:
        assert PerPageScopingStrategy(repo, clock).get_cache_tags_to_flush(PAGE) == {"pageId_5"}

    def test_element_flushes_parent(self, repo: MockRepo, clock: FixedClock) -> None:
        strategy = PerPageScopingStrategy(repo, clock)
        assert strategy.get_cache_tags_to_flush(ELEMENT) == {"pageId_5"}
        assert strategy.name == "per-page"


class TestPerContentScoping:
    def test_page_flushes_itself(self, repo: MockRepo, clock: FixedClock) -> None:
        index = MockReferenceIndex({7, 8})
        strategy = PerContentScopingStrategy(repo, clock, index, rules_for("per-content"))
        assert strategy.get_cache_tags_to_flush(PAGE) == {"pageId_5"}
        assert index.calls == []

    def test_element_flushes_embedding_pages(self, repo: MockRepo, clock: FixedClock) -> None:
        index = MockReferenceIndex({5, 10, 15})
        strategy = PerContentScopingStrategy(repo, clock, index, rules_for("per-content"))

        tags = strategy.get_cache_tags_to_flush(ELEMENT, 0, 1)

        assert tags == {"pageId_5", "pageId_10", "pageId_15"}
        assert index.calls == [(123, 1, "content")]

    def test_index_error_falls_back_to_parent(self, repo: MockRepo, clock: FixedClock) -> None:
        index = MockReferenceIndex(error=ReferenceIndexError("db down"))
        strategy = PerContentScopingStrategy(repo, clock, index, rules_for("per-content"))
        assert strategy.get_cache_tags_to_flush(ELEMENT) == {"pageId_5"}

    def test_empty_result_falls_back_to_parent(self, repo: MockRepo, clock: FixedClock) -> None:
        strategy = PerContentScopingStrategy(
            repo, clock, MockReferenceIndex(set()), rules_for("per-content")
        )
        assert strategy.get_cache_tags_to_flush(ELEMENT) == {"pageId_5"}

    def test_refindex_disabled(self, repo: MockRepo, clock: FixedClock) -> None:
        index = MockReferenceIndex({10})
        strategy = PerContentScopingStrategy(
            repo, clock, index, rules_for("per-content", use_refindex=False)
        )
        assert strategy.get_cache_tags_to_flush(ELEMENT) == {"pageId_5"}
        assert index.calls == []

    def test_missing_index(self, repo: MockRepo, clock: FixedClock) -> None:
        strategy = PerContentScopingStrategy(repo, clock, None, rules_for("per-content"))
        assert strategy.get_cache_tags_to_flush(ELEMENT) == {"pageId_5"}

    def test_custom_table_lookup_uses_record_table(
        self, repo: MockRepo, clock: FixedClock
    ) -> None:
        news = TemporalContent(
            uid=1, table_name="news", title="Launch", pid=4, starttime=NOW + 60, endtime=None
        )
        index = MockReferenceIndex({4})
        strategy = PerContentScopingStrategy(repo, clock, index, rules_for("per-content"))

        assert strategy.get_cache_tags_to_flush(news) == {"pageId_4"}
        assert index.calls == [(1, 0, "news")]


class TestScopingStrategyFactory:
    @pytest.mark.parametrize("name", ["global", "per-page", "per-content"])
    def test_selects_configured(self, name: str, repo: MockRepo, clock: FixedClock) -> None:
        factory = create_scoping_strategy(rules_for(name), repo, clock, MockReferenceIndex())
        assert factory.name == name
        assert factory.get_active_strategy().name == name

    def test_delegates(self, repo: MockRepo, clock: FixedClock) -> None:
        factory = create_scoping_strategy(rules_for("per-page"), repo, clock)
        assert factory.get_cache_tags_to_flush(ELEMENT) == {"pageId_5"}
        assert factory.get_next_transition() == NOW + 3600

    def test_available_strategies(self, repo: MockRepo, clock: FixedClock) -> None:
        factory = create_scoping_strategy(rules_for(), repo, clock)
        assert factory.get_available_strategies() == ["global", "per-page", "per-content"]

    def test_unregistered_name_falls_back_to_global(
        self, repo: MockRepo, clock: FixedClock, caplog
    ) -> None:
        rules = rules_for()
        rules.scoping.strategy = "per-site"
        strategies = [GlobalScopingStrategy(repo, clock), PerPageScopingStrategy(repo, clock)]

        with caplog.at_level(logging.WARNING):
            factory = ScopingStrategyFactory(strategies, rules)

        assert factory.name == "global"
        assert "falling back to 'global'" in caplog.text

    def test_falls_back_to_first_without_global(self, repo: MockRepo, clock: FixedClock) -> None:
        rules = rules_for("per-content")
        factory = ScopingStrategyFactory([PerPageScopingStrategy(repo, clock)], rules)
        assert factory.name == "per-page"

    def test_empty_registry_raises(self) -> None:
        with pytest.raises(ConfigurationError):
            ScopingStrategyFactory([], rules_for())
