"""
Schema migrations for the temporal cache database.

Migrations are the *.sql files of the migrations package, applied once each
in filename order. Only the part of a file above its "-- Down" marker runs.
"""

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
DOWN_MARKER = "-- Down"

_HISTORY_DDL = """
    CREATE TABLE IF NOT EXISTS _migrations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        filename TEXT UNIQUE NOT NULL,
        applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
"""


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str | Path = MIGRATIONS_DIR):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def available(self) -> list[str]:
        return sorted(p.name for p in self.migrations_dir.glob("*.sql"))

    def run_migrations(self) -> list[str]:
        """Apply pending migrations and return their filenames."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute(_HISTORY_DDL)
            done = {row[0] for row in conn.execute("SELECT filename FROM _migrations")}
            pending = [name for name in self.available() if name not in done]
            for filename in pending:
                logger.info("Applying migration: %s", filename)
                self._apply(conn, filename)
            return pending
        finally:
            conn.close()

    def _apply(self, conn: sqlite3.Connection, filename: str) -> None:
        up_script = (self.migrations_dir / filename).read_text().split(DOWN_MARKER, 1)[0]
        try:
            conn.executescript(up_script)
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
