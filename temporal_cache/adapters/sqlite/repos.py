"""
SQLite adapters for the temporal content store.

Implements TemporalContentRepoPort, ReferenceIndexPort, WatermarkStorePort
and SchemaInspectorPort on SQLite. Queries are standard SQL (portable to
Postgres); only schema inspection uses SQLite pragmas.

Key behaviors:
- Next-transition lookups run one MIN() query per temporal field per table
- Zero-valued starttime/endtime are excluded at query level
- sqlite3 errors surface as RepositoryError / ReferenceIndexError
"""

from __future__ import annotations

import logging
import re
import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from temporal_cache.core.entities import (
    CONTENT_TABLE,
    PAGES_TABLE,
    TemporalContent,
    TransitionEvent,
)
from temporal_cache.core.errors import ReferenceIndexError, RepositoryError
from temporal_cache.core.ports.db import TemporalStatistics
from temporal_cache.core.services.monitor_registry import TemporalMonitorRegistry
from temporal_cache.core.services.transition_cache import TransitionCache

logger = logging.getLogger(__name__)

TEMPORAL_FIELDS = ("starttime", "endtime")

# Page doktypes that display another page's content
DOKTYPE_SHORTCUT = (3, 4)
DOKTYPE_MOUNTPOINT = 7

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def quote_ident(name: str) -> str:
    """Quote a table/column name taken from configuration."""
    if not _IDENT_RE.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return f'"{name}"'


def _placeholders(values: Sequence[object]) -> str:
    return ", ".join("?" for _ in values)


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    error_class: type[Exception] = RepositoryError

    def __init__(self, db_path: str, connection: sqlite3.Connection | None = None):
        self.db_path = db_path
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            self._external_conn.row_factory = dict_factory
            return self._external_conn

        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def _fetch_all(self, sql: str, params: Sequence[object] = ()) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            return list(conn.execute(sql, tuple(params)).fetchall())
        except sqlite3.Error as e:
            raise self.error_class(f"Query failed: {e}") from e
        finally:
            if self._should_close():
                conn.close()

    def _fetch_one(self, sql: str, params: Sequence[object] = ()) -> dict[str, Any] | None:
        rows = self._fetch_all(sql, params)
        return rows[0] if rows else None


# -----------------------------------------------------------------------------
# Temporal content repository
# -----------------------------------------------------------------------------


class SQLiteTemporalContentRepo(SQLiteRepoBase):
    """SQLite implementation of TemporalContentRepoPort."""

    def __init__(
        self,
        db_path: str,
        transition_cache: TransitionCache,
        monitor_registry: TemporalMonitorRegistry,
        connection: sqlite3.Connection | None = None,
        language_fallback: bool = True,
    ):
        super().__init__(db_path, connection)
        self._transition_cache = transition_cache
        self._registry = monitor_registry
        self._language_fallback = language_fallback

    # --- Scope filters ---

    def _workspace_clause(
        self, fields: Sequence[str], workspace_id: int
    ) -> tuple[list[str], list[object]]:
        if "workspace_id" not in fields:
            return [], []
        if workspace_id == 0:
            return ["(workspace_id = 0 OR workspace_id IS NULL)"], []
        return ["workspace_id = ?"], [workspace_id]

    def _language_clause(
        self, fields: Sequence[str], language_id: int
    ) -> tuple[list[str], list[object]]:
        # -1 selects every language
        if "language_id" not in fields or language_id < 0:
            return [], []
        languages = [language_id, -1]
        if self._language_fallback and language_id > 0:
            languages.append(0)
        return [f"language_id IN ({_placeholders(languages)})"], list(languages)

    @staticmethod
    def _visibility_clause(fields: Sequence[str], include_hidden: bool) -> list[str]:
        clauses = []
        if "deleted" in fields:
            clauses.append("deleted = 0")
        if "hidden" in fields and not include_hidden:
            clauses.append("hidden = 0")
        return clauses

    @staticmethod
    def _title_field(table_name: str, fields: Sequence[str]) -> str:
        if table_name == CONTENT_TABLE and "header" in fields:
            return "header"
        for candidate in ("title", "name"):
            if candidate in fields:
                return candidate
        return "uid"

    def _map_row(self, table_name: str, fields: Sequence[str], row: dict[str, Any]) -> TemporalContent:
        title = row.get(self._title_field(table_name, fields))
        return TemporalContent(
            uid=int(row["uid"]),
            table_name=table_name,
            title=str(title) if title is not None else "",
            pid=int(row.get("pid") or 0),
            starttime=row.get("starttime"),
            endtime=row.get("endtime"),
            language_id=int(row.get("language_id") or 0),
            workspace_id=int(row.get("workspace_id") or 0),
            hidden=bool(row.get("hidden") or False),
            deleted=bool(row.get("deleted") or False),
        )

    # --- Next transition (request path) ---

    def get_next_transition(
        self,
        now: int,
        workspace_id: int = 0,
        language_id: int = 0,
        include_hidden: bool = False,
    ) -> int | None:
        """
        Earliest starttime/endtime strictly after now for the given scope.

        Checks the transition cache first; on a miss runs one MIN() query per
        temporal field per monitored table and stores the result (None included).
        """
        if not include_hidden and self._transition_cache.has(now, workspace_id, language_id):
            return self._transition_cache.get(now, workspace_id, language_id)

        candidates: list[int] = []
        for table_name, fields in self._registry.get_all_tables().items():
            for field_name in TEMPORAL_FIELDS:
                value = self._find_min_transition(
                    table_name, fields, field_name, now, workspace_id, language_id, include_hidden
                )
                if value is not None:
                    candidates.append(value)

        next_transition = min(candidates) if candidates else None

        # Cache entries describe the default (visible rows only) scope
        if not include_hidden:
            self._transition_cache.set(now, workspace_id, language_id, next_transition)

        return next_transition

    def _find_min_transition(
        self,
        table_name: str,
        fields: Sequence[str],
        field_name: str,
        now: int,
        workspace_id: int,
        language_id: int,
        include_hidden: bool,
    ) -> int | None:
        column = quote_ident(field_name)
        where = [f"{column} > ?", f"{column} != 0"]
        params: list[object] = [now]

        ws_clauses, ws_params = self._workspace_clause(fields, workspace_id)
        lang_clauses, lang_params = self._language_clause(fields, language_id)
        where += ws_clauses + lang_clauses + self._visibility_clause(fields, include_hidden)
        params += ws_params + lang_params

        row = self._fetch_one(
            f"SELECT MIN({column}) AS min_transition FROM {quote_ident(table_name)} "
            f"WHERE {' AND '.join(where)}",
            params,
        )
        if row is None or row["min_transition"] is None:
            return None
        return int(row["min_transition"])

    # --- Transitions in range (batch path) ---

    def find_transitions_in_range(self, from_ts: int, to_ts: int) -> list[TransitionEvent]:
        """
        Every visible transition with timestamp in (from_ts, to_ts].

        Ordered by timestamp; ties by table registration order, uid,
        then start before end.
        """
        keyed: list[tuple[tuple[int, int, int, int], TransitionEvent]] = []

        for table_index, (table_name, fields) in enumerate(self._registry.get_all_tables().items()):
            for type_index, field_name in enumerate(TEMPORAL_FIELDS):
                column = quote_ident(field_name)
                where = [f"{column} > ?", f"{column} <= ?", f"{column} != 0"]
                where += self._visibility_clause(fields, include_hidden=False)

                rows = self._fetch_all(
                    f"SELECT {', '.join(quote_ident(f) for f in fields)} "
                    f"FROM {quote_ident(table_name)} WHERE {' AND '.join(where)}",
                    (from_ts, to_ts),
                )
                for row in rows:
                    content = self._map_row(table_name, fields, row)
                    timestamp = int(row[field_name])
                    event = TransitionEvent(
                        content=content,
                        timestamp=timestamp,
                        transition_type="start" if field_name == "starttime" else "end",
                        workspace_id=content.workspace_id,
                        language_id=content.language_id,
                    )
                    keyed.append(((timestamp, table_index, content.uid, type_index), event))

        keyed.sort(key=lambda item: item[0])
        return [event for _, event in keyed]

    # --- Diagnostics ---

    def find_all_with_temporal_fields(
        self,
        workspace_id: int = 0,
        language_id: int = -1,
    ) -> list[TemporalContent]:
        result: list[TemporalContent] = []
        for table_name, fields in self._registry.get_all_tables().items():
            result.extend(self._find_temporal_records(table_name, fields, workspace_id, language_id))
        return result

    def _find_temporal_records(
        self,
        table_name: str,
        fields: Sequence[str],
        workspace_id: int,
        language_id: int,
    ) -> list[TemporalContent]:
        where = ["(starttime > 0 OR endtime > 0)"]
        params: list[object] = []
        if "deleted" in fields:
            where.append("deleted = 0")

        ws_clauses, ws_params = self._workspace_clause(fields, workspace_id)
        lang_clauses, lang_params = self._language_clause(fields, language_id)
        where += ws_clauses + lang_clauses
        params += ws_params + lang_params

        rows = self._fetch_all(
            f"SELECT {', '.join(quote_ident(f) for f in fields)} "
            f"FROM {quote_ident(table_name)} WHERE {' AND '.join(where)} ORDER BY uid",
            params,
        )
        return [self._map_row(table_name, fields, row) for row in rows]

    def find_by_uid(
        self,
        uid: int,
        table_name: str = CONTENT_TABLE,
        workspace_id: int = 0,
    ) -> TemporalContent | None:
        fields = self._registry.get_table_fields(table_name)
        if fields is None:
            return None

        where = ["uid = ?"]
        params: list[object] = [uid]
        if "deleted" in fields:
            where.append("deleted = 0")
        ws_clauses, ws_params = self._workspace_clause(fields, workspace_id)
        where += ws_clauses
        params += ws_params

        row = self._fetch_one(
            f"SELECT {', '.join(quote_ident(f) for f in fields)} "
            f"FROM {quote_ident(table_name)} WHERE {' AND '.join(where)}",
            params,
        )
        return self._map_row(table_name, fields, row) if row else None

    def find_by_page_id(
        self,
        page_id: int,
        workspace_id: int = 0,
        language_id: int = 0,
    ) -> list[TemporalContent]:
        """Temporal content elements placed on one page."""
        fields = self._registry.get_table_fields(CONTENT_TABLE) or ()
        where = ["pid = ?", "(starttime > 0 OR endtime > 0)", "deleted = 0", "language_id = ?"]
        params: list[object] = [page_id, language_id]
        ws_clauses, ws_params = self._workspace_clause(fields, workspace_id)
        where += ws_clauses
        params += ws_params

        rows = self._fetch_all(
            f"SELECT {', '.join(quote_ident(f) for f in fields)} "
            f"FROM {quote_ident(CONTENT_TABLE)} WHERE {' AND '.join(where)} ORDER BY uid",
            params,
        )
        return [self._map_row(CONTENT_TABLE, fields, row) for row in rows]

    def count_transitions_per_day(self, from_ts: int, to_ts: int) -> dict[str, int]:
        counts: dict[str, int] = {}
        for event in self.find_transitions_in_range(from_ts, to_ts):
            day = datetime.fromtimestamp(event.timestamp, UTC).strftime("%Y-%m-%d")
            counts[day] = counts.get(day, 0) + 1
        return counts

    def get_statistics(self, workspace_id: int = 0) -> TemporalStatistics:
        total = pages = content = with_start = with_end = with_both = 0
        for item in self.find_all_with_temporal_fields(workspace_id):
            total += 1
            if item.table_name == PAGES_TABLE:
                pages += 1
            else:
                content += 1

            has_start = item.starttime is not None
            has_end = item.endtime is not None
            if has_start and has_end:
                with_both += 1
            elif has_start:
                with_start += 1
            elif has_end:
                with_end += 1

        return TemporalStatistics(
            total=total,
            pages=pages,
            content=content,
            with_start=with_start,
            with_end=with_end,
            with_both=with_both,
        )


# -----------------------------------------------------------------------------
# Reference index
# -----------------------------------------------------------------------------


class SQLiteReferenceIndex(SQLiteRepoBase):
    """
    SQLite implementation of ReferenceIndexPort.

    Resolves every page that displays a record: its parent page, pages (or
    elements) referencing it, and mount point / shortcut pages pointing at
    any of those pages. Records from custom monitored tables are looked up
    in their own table and matched against refindex rows by ref_table.
    """

    error_class = ReferenceIndexError

    def find_pages_embedding(
        self, content_id: int, language_id: int = 0, table_name: str = CONTENT_TABLE
    ) -> set[int]:
        page_ids: list[int] = []

        parent = self._get_direct_parent_page(content_id, table_name)
        if parent is not None:
            page_ids.append(parent)

        page_ids += self._find_references(content_id, language_id, table_name)
        page_ids += self._find_mount_points(page_ids)
        page_ids += self._find_shortcuts(page_ids)

        return {pid for pid in page_ids if pid}

    def _get_direct_parent_page(
        self, record_id: int, table_name: str = CONTENT_TABLE
    ) -> int | None:
        row = self._fetch_one(
            f"SELECT pid FROM {quote_ident(table_name)} WHERE uid = ? AND deleted = 0",
            (record_id,),
        )
        return int(row["pid"]) if row else None

    def _find_references(
        self, content_id: int, language_id: int, table_name: str = CONTENT_TABLE
    ) -> list[int]:
        rows = self._fetch_all(
            "SELECT tablename, recuid FROM refindex "
            "WHERE ref_table = ? AND ref_uid = ? AND language_id = ?",
            (table_name, content_id, language_id),
        )
        page_ids: list[int] = []
        for row in rows:
            if row["tablename"] == PAGES_TABLE:
                page_ids.append(int(row["recuid"]))
            elif row["tablename"] in (CONTENT_TABLE, table_name):
                # Referenced from another record: that record's page shows it
                parent = self._get_direct_parent_page(int(row["recuid"]), row["tablename"])
                if parent is not None:
                    page_ids.append(parent)
        return page_ids

    def _find_mount_points(self, page_ids: list[int]) -> list[int]:
        if not page_ids:
            return []
        rows = self._fetch_all(
            "SELECT uid FROM pages WHERE doktype = ? AND hidden = 0 AND deleted = 0 "
            f"AND mount_pid IN ({_placeholders(page_ids)})",
            [DOKTYPE_MOUNTPOINT, *page_ids],
        )
        return [int(row["uid"]) for row in rows]

    def _find_shortcuts(self, page_ids: list[int]) -> list[int]:
        if not page_ids:
            return []
        rows = self._fetch_all(
            f"SELECT uid FROM pages WHERE doktype IN ({_placeholders(DOKTYPE_SHORTCUT)}) "
            f"AND hidden = 0 AND deleted = 0 AND shortcut IN ({_placeholders(page_ids)})",
            [*DOKTYPE_SHORTCUT, *page_ids],
        )
        return [int(row["uid"]) for row in rows]

    def has_indirect_references(self, page_id: int) -> bool:
        return bool(self._find_mount_points([page_id]) or self._find_shortcuts([page_id]))

    def get_content_elements_on_page(self, page_id: int, language_id: int = 0) -> list[int]:
        rows = self._fetch_all(
            "SELECT uid FROM content WHERE pid = ? AND language_id = ? AND deleted = 0 "
            "ORDER BY uid",
            (page_id, language_id),
        )
        return [int(row["uid"]) for row in rows]


# -----------------------------------------------------------------------------
# Watermark store
# -----------------------------------------------------------------------------


class SQLiteRegistryStore(SQLiteRepoBase):
    """
    SQLite implementation of WatermarkStorePort (last-write-wins upsert).

    With an external connection, set() leaves the transaction open: the
    owner of the connection commits, and other connections only see the
    value after that commit.
    """

    def get(self, namespace: str, key: str) -> int | None:
        row = self._fetch_one(
            "SELECT entry_value FROM registry WHERE namespace = ? AND entry_key = ?",
            (namespace, key),
        )
        return int(row["entry_value"]) if row else None

    def set(self, namespace: str, key: str, value: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO registry (namespace, entry_key, entry_value)
                VALUES (?, ?, ?)
                ON CONFLICT (namespace, entry_key) DO UPDATE SET entry_value = excluded.entry_value
                """,
                (namespace, key, int(value)),
            )
            if self._should_close():
                conn.commit()
        except sqlite3.Error as e:
            raise RepositoryError(f"Failed to write {namespace}/{key}: {e}") from e
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Schema inspection
# -----------------------------------------------------------------------------


class SQLiteSchemaInspector(SQLiteRepoBase):
    """SQLite implementation of SchemaInspectorPort (pragma table functions)."""

    def table_columns(self, table_name: str) -> set[str]:
        rows = self._fetch_all("SELECT name FROM pragma_table_info(?)", (table_name,))
        return {str(row["name"]) for row in rows}

    def indexed_columns(self, table_name: str) -> set[str]:
        rows = self._fetch_all(
            "SELECT ii.name AS column_name "
            "FROM pragma_index_list(?) AS il, pragma_index_info(il.name) AS ii "
            "WHERE ii.seqno = 0",
            (table_name,),
        )
        # Expression indexes have no column name
        return {str(row["column_name"]) for row in rows if row["column_name"] is not None}
