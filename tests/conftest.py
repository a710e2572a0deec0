import sqlite3

import pytest

from temporal_cache.adapters.cache_tags import StubCacheTagSink
from temporal_cache.adapters.clock import FixedClock
from temporal_cache.adapters.sqlite.migrator import SQLiteMigrator
from temporal_cache.adapters.sqlite.repos import SQLiteTemporalContentRepo
from temporal_cache.core.services import TemporalMonitorRegistry, TransitionCache
from temporal_cache.rules.loader import default_rules

# 2027-01-15 08:00:00 UTC
NOW = 1_800_000_000


class ContentDB:
    """Writes pages, content elements and references into a migrated database."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path

    def _insert(self, table: str, values: dict) -> None:
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(
                f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
                tuple(values.values()),
            )
            conn.commit()
        finally:
            conn.close()

    def add_page(self, uid: int, title: str = "", **fields) -> None:
        self._insert("pages", {"uid": uid, "title": title or f"Page {uid}", **fields})

    def add_content(self, uid: int, pid: int, header: str = "", **fields) -> None:
        self._insert(
            "content", {"uid": uid, "pid": pid, "header": header or f"Element {uid}", **fields}
        )

    def add_reference(
        self,
        tablename: str,
        recuid: int,
        ref_uid: int,
        language_id: int = 0,
        ref_table: str = "content",
    ) -> None:
        self._insert(
            "refindex",
            {
                "tablename": tablename,
                "recuid": recuid,
                "ref_table": ref_table,
                "ref_uid": ref_uid,
                "language_id": language_id,
            },
        )

    def execute(self, sql: str, params: tuple = ()) -> None:
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()


@pytest.fixture
def now() -> int:
    return NOW


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def rules():
    return default_rules()


@pytest.fixture
def sink() -> StubCacheTagSink:
    return StubCacheTagSink()


@pytest.fixture
def db_path(tmp_path) -> str:
    """Temporary SQLite database with the schema applied."""
    path = str(tmp_path / "temporal_cache.db")
    SQLiteMigrator(path).run_migrations()
    return path


@pytest.fixture
def content_db(db_path) -> ContentDB:
    return ContentDB(db_path)


@pytest.fixture
def registry() -> TemporalMonitorRegistry:
    return TemporalMonitorRegistry()


@pytest.fixture
def transition_cache() -> TransitionCache:
    return TransitionCache()


@pytest.fixture
def repo(db_path, transition_cache, registry) -> SQLiteTemporalContentRepo:
    return SQLiteTemporalContentRepo(db_path, transition_cache, registry)
