"""
TemporalMonitorRegistry - tables scanned for starttime/endtime transitions.

The default tables (pages, content) are always monitored. Additional tables
can be registered at startup from configuration.
"""

from __future__ import annotations

from collections.abc import Iterable

from temporal_cache.core.entities import CONTENT_TABLE, PAGES_TABLE

DEFAULT_TABLES: dict[str, tuple[str, ...]] = {
    PAGES_TABLE: (
        "uid", "pid", "title", "starttime", "endtime",
        "hidden", "deleted", "language_id", "workspace_id",
    ),
    CONTENT_TABLE: (
        "uid", "pid", "header", "starttime", "endtime",
        "hidden", "deleted", "language_id", "workspace_id",
    ),
}

DEFAULT_CUSTOM_FIELDS: tuple[str, ...] = (
    "uid", "pid", "title", "starttime", "endtime",
    "hidden", "deleted", "language_id", "workspace_id",
)

REQUIRED_FIELDS: tuple[str, ...] = ("uid", "starttime", "endtime")


class TemporalMonitorRegistry:
    """Registry of monitored tables and the fields selected from each."""

    def __init__(self) -> None:
        self._custom: dict[str, tuple[str, ...]] = {}

    def register_table(self, table_name: str, fields: Iterable[str] | None = None) -> None:
        """
        Register a custom temporal table.

        Raises:
            ValueError: empty name, default table, or missing required field
        """
        if not table_name:
            raise ValueError("Table name cannot be empty")
        if table_name in DEFAULT_TABLES:
            raise ValueError(
                f'Table "{table_name}" is already monitored by default and cannot be re-registered'
            )

        field_list = tuple(fields) if fields else DEFAULT_CUSTOM_FIELDS
        for required in REQUIRED_FIELDS:
            if required not in field_list:
                raise ValueError(f'Table "{table_name}" must include required field: {required}')

        self._custom[table_name] = field_list

    def unregister_table(self, table_name: str) -> None:
        self._custom.pop(table_name, None)

    def is_registered(self, table_name: str) -> bool:
        return table_name in DEFAULT_TABLES or table_name in self._custom

    def get_all_tables(self) -> dict[str, tuple[str, ...]]:
        """Defaults first, then custom tables in registration order."""
        return {**DEFAULT_TABLES, **self._custom}

    def get_custom_tables(self) -> dict[str, tuple[str, ...]]:
        return dict(self._custom)

    def get_table_fields(self, table_name: str) -> tuple[str, ...] | None:
        if table_name in DEFAULT_TABLES:
            return DEFAULT_TABLES[table_name]
        return self._custom.get(table_name)

    def clear_custom_tables(self) -> None:
        self._custom = {}

    @property
    def custom_table_count(self) -> int:
        return len(self._custom)

    @property
    def total_table_count(self) -> int:
        return len(DEFAULT_TABLES) + len(self._custom)
