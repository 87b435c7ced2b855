"""SQLite connection and schema migrations for the local record store."""

import importlib
import logging
import sqlite3
from pathlib import Path
from types import ModuleType

logger = logging.getLogger(__name__)

MIGRATIONS_PACKAGE = "citycast.store.migrations"
MIGRATIONS_DIR = Path(__file__).parent / "migrations"


def connect(db_path: str | Path) -> sqlite3.Connection:
    """Open the store database, creating its directory when needed.

    Rows come back as sqlite3.Row; WAL and foreign keys are switched on.
    """
    if str(db_path) != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def applied_migrations(conn: sqlite3.Connection) -> list[str]:
    """Names of migrations already recorded, oldest first."""
    conn.execute(
        "CREATE TABLE IF NOT EXISTS schema_versions ("
        "  version TEXT PRIMARY KEY,"
        "  applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now'))"
        ")"
    )
    conn.commit()
    rows = conn.execute("SELECT version FROM schema_versions ORDER BY version")
    return [r[0] for r in rows.fetchall()]


def run_migrations(conn: sqlite3.Connection) -> list[str]:
    """Apply pending migrations in name order and return the ones applied.

    A migration is recorded only after its ``up`` succeeds; a failing one
    is rolled back, left unrecorded and its error propagates.
    """
    done = set(applied_migrations(conn))
    pending = [name for name in _discover_migrations() if name not in done]

    for name in pending:
        try:
            _load_migration(name).up(conn)
            conn.execute("INSERT INTO schema_versions (version) VALUES (?)", (name,))
            conn.commit()
        except sqlite3.Error:
            conn.rollback()
            logger.error("Migration %s failed", name)
            raise
        logger.debug("Applied migration %s", name)

    return pending


def _load_migration(name: str) -> ModuleType:
    return importlib.import_module(f"{MIGRATIONS_PACKAGE}.{name}")


def _discover_migrations() -> list[str]:
    """Migration modules are named v###_<description>.py."""
    return sorted(p.stem for p in MIGRATIONS_DIR.glob("v[0-9]*_*.py"))
