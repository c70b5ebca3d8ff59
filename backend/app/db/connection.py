"""SQLite connection factory for the StoryForge store.

Provides configured connections with:
- sqlite3.Row row factory (dict-like access)
- Foreign keys enabled (PRAGMA foreign_keys = ON)
- Explicit transaction control (isolation_level=None); callers issue BEGIN
"""
import sqlite3
from pathlib import Path

MEMORY_DB = ":memory:"


def get_connection(db_path: str) -> sqlite3.Connection:
    """Return a configured SQLite connection.

    Args:
        db_path: Path to the SQLite database file, or ":memory:". Parent
                 directories are created if they do not exist.

    Returns:
        sqlite3.Connection with row_factory=sqlite3.Row, foreign keys
        enabled and autocommit outside explicit transactions.

    Note:
        check_same_thread is disabled so compute batches can read from
        worker threads; EntityStore serializes statement execution.
    """
    if db_path != MEMORY_DB:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        db_path = str(path)

    conn = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn
