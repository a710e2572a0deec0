"""
TransitionCache tests.

The cache must distinguish a cached None from a miss and keep every
(now, workspace, language) combination separate.
"""

from __future__ import annotations

import json
import threading

from temporal_cache.core.services import TransitionCache

NOW = 1_800_000_000


class TestTransitionCache:
    def test_miss(self) -> None:
        cache = TransitionCache()
        assert cache.has(NOW, 0, 0) is False
        assert cache.get(NOW, 0, 0) is None

    def test_set_and_get(self) -> None:
        cache = TransitionCache()
        cache.set(NOW, 0, 0, NOW + 3600)
        assert cache.has(NOW, 0, 0) is True
        assert cache.get(NOW, 0, 0) == NOW + 3600

    def test_cached_none_is_present(self) -> None:
        cache = TransitionCache()
        cache.set(NOW, 0, 0, None)
        assert cache.has(NOW, 0, 0) is True
        assert cache.get(NOW, 0, 0) is None

    def test_dimensions_are_independent(self) -> None:
        cache = TransitionCache()
        cache.set(NOW, 0, 0, 1)
        cache.set(NOW, 1, 0, 2)
        cache.set(NOW, 0, 1, 3)
        cache.set(NOW + 1, 0, 0, 4)

        assert cache.get(NOW, 0, 0) == 1
        assert cache.get(NOW, 1, 0) == 2
        assert cache.get(NOW, 0, 1) == 3
        assert cache.get(NOW + 1, 0, 0) == 4
        assert len(cache) == 4

    def test_clear(self) -> None:
        cache = TransitionCache()
        cache.set(NOW, 0, 0, 1)
        cache.clear()
        assert cache.has(NOW, 0, 0) is False
        assert len(cache) == 0

    def test_stats(self) -> None:
        cache = TransitionCache()
        cache.set(NOW, 0, 0, NOW + 60)
        cache.set(NOW, 1, 0, None)

        stats = cache.stats()

        expected = {f"next_{NOW}_0_0": NOW + 60, f"next_{NOW}_1_0": None}
        assert stats["entry_count"] == 2
        assert stats["approximate_memory_bytes"] == len(json.dumps(expected))

    def test_stats_empty(self) -> None:
        assert TransitionCache().stats() == {"entry_count": 0, "approximate_memory_bytes": 2}

    def test_concurrent_writers(self) -> None:
        cache = TransitionCache()

        def writer(offset: int) -> None:
            for i in range(200):
                cache.set(NOW + i, offset, 0, i)

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(cache) == 800
