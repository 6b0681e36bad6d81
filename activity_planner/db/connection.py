"""
SQLite connections for the planner's cache store.

``get_connection()`` is the low-level context manager: one connection per CLI
command, foreign keys ON, ``sqlite3.Row`` rows, commit on clean exit and
rollback when the body raises.  WAL is requested for file databases only;
SQLite silently keeps the old journal mode on filesystems that cannot hold a
WAL file, so the mode it actually reports is logged.

``open_database()`` wraps it for commands: settings come from the
``[database]`` config section and the schema is applied before the
connection is handed out.

    with open_database(config.database) as conn:
        CityRepository(conn).search("vienna", limit=5)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Generator, Optional

from activity_planner.db.schema import apply_schema

if TYPE_CHECKING:
    from activity_planner.config import DatabaseConfig

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield a configured connection to ``db_path``.

    Args:
        db_path: Database file (parent directories are created) or ``":memory:"``.
        wal_mode: Request WAL journaling; ignored for in-memory databases.
        busy_timeout_ms: How long a write waits on another process's lock.
    """
    if db_path != MEMORY_DB:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        journal = _set_journal_mode(conn, db_path, wal_mode)
        logger.debug("Opened %s (journal_mode=%s).", db_path, journal)

        yield conn
        conn.commit()

    except Exception:
        conn.rollback()
        raise

    finally:
        conn.close()


def _set_journal_mode(conn: sqlite3.Connection, db_path: str, wal_mode: bool) -> str:
    if not wal_mode or db_path == MEMORY_DB:
        return conn.execute("PRAGMA journal_mode;").fetchone()[0]
    journal = conn.execute("PRAGMA journal_mode = WAL;").fetchone()[0]
    if journal.lower() != "wal":
        logger.warning(
            "WAL journaling unavailable for %s; using %s instead.", db_path, journal
        )
    return journal


@contextmanager
def open_database(
    db_config: "DatabaseConfig",
    db_path: Optional[str] = None,
) -> Generator[sqlite3.Connection, None, None]:
    """Open the cache store with the schema in place.

    Args:
        db_config: ``[database]`` section of ``AppConfig``.
        db_path: Overrides ``db_config.db_path`` (``init-db --db-path``).
    """
    with get_connection(
        db_path or db_config.db_path,
        wal_mode=db_config.wal_mode,
        busy_timeout_ms=db_config.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        yield conn
