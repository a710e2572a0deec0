"""
In-memory watermark store.

Dict-backed WatermarkStorePort for tests and single-process hosts that
do not persist scheduler state.
"""

from __future__ import annotations

from threading import Lock


class InMemoryWatermarkStore:
    def __init__(self, initial: dict[tuple[str, str], int] | None = None) -> None:
        self._values: dict[tuple[str, str], int] = dict(initial or {})
        self._lock = Lock()

    def get(self, namespace: str, key: str) -> int | None:
        with self._lock:
            return self._values.get((namespace, key))

    def set(self, namespace: str, key: str, value: int) -> None:
        with self._lock:
            self._values[(namespace, key)] = int(value)
