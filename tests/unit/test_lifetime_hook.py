"""
Render-time cache lifetime hook tests.
"""

from __future__ import annotations

import logging

import pytest

from temporal_cache.components.lifetime import (
    LifetimeRequest,
    TemporalCacheLifetime,
    determine_max_lifetime,
)
from temporal_cache.rules.models import AdvancedRules, TemporalCacheRules


class MockTiming:
    name = "dynamic"

    def __init__(self, lifetime: int | None = None, error: Exception | None = None) -> None:
        self.lifetime = lifetime
        self.error = error
        self.calls: list[tuple[int, int]] = []

    def get_cache_lifetime(self, workspace_id: int = 0, language_id: int = 0) -> int | None:
        self.calls.append((workspace_id, language_id))
        if self.error:
            raise self.error
        return self.lifetime

    def process_transition(self, event) -> None:
        return None


def rules_with(default_max_lifetime: int = 86400, debug: bool = False) -> TemporalCacheRules:
    return TemporalCacheRules(
        advanced=AdvancedRules(default_max_lifetime=default_max_lifetime, debug_logging=debug)
    )


class TestDetermineMaxLifetime:
    def test_site_ceiling_wins(self) -> None:
        assert determine_max_lifetime(600, 3600) == 600

    def test_config_default_when_no_site_ceiling(self) -> None:
        assert determine_max_lifetime(None, 3600) == 3600
        assert determine_max_lifetime(0, 3600) == 3600

    def test_hard_default(self) -> None:
        assert determine_max_lifetime(0, 0) == 86400
        assert determine_max_lifetime(None, None) == 86400


class TestTemporalCacheLifetime:
    def test_computed_below_ceiling(self) -> None:
        hook = TemporalCacheLifetime(MockTiming(1800), rules_with())
        assert hook(proposed_lifetime=86400) == 1800

    def test_capped_at_site_ceiling(self) -> None:
        hook = TemporalCacheLifetime(MockTiming(7200), rules_with())
        assert hook(proposed_lifetime=86400, site_ceiling=3600) == 3600

    def test_capped_at_config_default(self) -> None:
        hook = TemporalCacheLifetime(MockTiming(200_000), rules_with(default_max_lifetime=43200))
        assert hook(proposed_lifetime=100) == 43200

    def test_capped_at_hard_default(self) -> None:
        hook = TemporalCacheLifetime(MockTiming(200_000), rules_with(default_max_lifetime=0))
        assert hook(proposed_lifetime=100) == 86400

    def test_no_transition_leaves_lifetime(self) -> None:
        hook = TemporalCacheLifetime(MockTiming(None), rules_with())
        assert hook(proposed_lifetime=1234) == 1234

    def test_scope_passed_to_strategy(self) -> None:
        timing = MockTiming(60)
        TemporalCacheLifetime(timing, rules_with())(100, workspace_id=3, language_id=2)
        assert timing.calls == [(3, 2)]

    @pytest.mark.parametrize("computed", [1, 59, 3600, 86400, 90000, 10**9])
    def test_never_exceeds_ceiling(self, computed: int) -> None:
        hook = TemporalCacheLifetime(MockTiming(computed), rules_with())
        assert hook(proposed_lifetime=5, site_ceiling=7200) <= 7200

    def test_strategy_error_leaves_lifetime(self, caplog) -> None:
        hook = TemporalCacheLifetime(MockTiming(error=RuntimeError("db gone")), rules_with())
        with caplog.at_level(logging.ERROR):
            decision = hook.decide(LifetimeRequest(proposed_lifetime=999))
        assert decision.lifetime == 999
        assert decision.modified is False
        assert decision.error == "db gone"
        assert "lifetime calculation failed" in caplog.text

    def test_decision_details(self) -> None:
        hook = TemporalCacheLifetime(MockTiming(7200), rules_with())
        decision = hook.decide(LifetimeRequest(proposed_lifetime=86400, site_ceiling=3600))
        assert decision.lifetime == 3600
        assert decision.computed == 7200
        assert decision.ceiling == 3600
        assert decision.modified is True

    def test_debug_logging(self, caplog) -> None:
        hook = TemporalCacheLifetime(MockTiming(60), rules_with(debug=True))
        with caplog.at_level(logging.DEBUG):
            hook(proposed_lifetime=86400)
        assert "Cache lifetime 60s" in caplog.text
