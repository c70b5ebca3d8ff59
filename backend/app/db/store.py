"""Entity store: an explicitly owned SQLite handle with transaction primitives.

The store is constructed and opened at the process boundary and injected into
every computer and the orchestrator. Uses sqlite3 only (no ORM).

Usage:
    with EntityStore(db_path) as store:
        ComputeOrchestrator(store).compute_all()
"""
from __future__ import annotations

import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from backend.app.db.connection import get_connection

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised on misuse of the store handle (closed, nested transaction)."""


class EntityStore:
    """Parameterized read/write access plus begin/commit/rollback.

    Statement execution is serialized by an internal lock so computer batches
    may read from worker threads while a single transaction is active.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.RLock()

    # --- lifecycle ---

    def open(self) -> "EntityStore":
        if self._conn is None:
            self._conn = get_connection(self.db_path)
            logger.debug("EntityStore opened: %s", self.db_path)
        return self

    def close(self) -> None:
        with self._lock:
            if self._conn is None:
                return
            if self._conn.in_transaction:
                logger.warning("EntityStore closed with an open transaction; rolling back")
                self._conn.rollback()
            self._conn.close()
            self._conn = None
            logger.debug("EntityStore closed: %s", self.db_path)

    def __enter__(self) -> "EntityStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(f"EntityStore is not open: {self.db_path}")
        return self._conn

    # --- statements ---

    def query(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a SELECT and return rows as plain dicts."""
        with self._lock:
            cur = self.connection.execute(sql, tuple(params))
            return [dict(row) for row in cur.fetchall()]

    def query_one(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        with self._lock:
            row = self.connection.execute(sql, tuple(params)).fetchone()
            return dict(row) if row is not None else None

    def execute(self, sql: str, params: Sequence[Any] = ()) -> int:
        """Run a write statement and return the affected row count."""
        with self._lock:
            cur = self.connection.execute(sql, tuple(params))
            return cur.rowcount

    def executemany(self, sql: str, rows: Sequence[Sequence[Any]]) -> int:
        with self._lock:
            cur = self.connection.executemany(sql, [tuple(r) for r in rows])
            return cur.rowcount

    # --- transactions ---

    @property
    def in_transaction(self) -> bool:
        return self._conn is not None and self._conn.in_transaction

    def begin(self) -> None:
        """Start an exclusive write transaction (BEGIN IMMEDIATE)."""
        with self._lock:
            if self.connection.in_transaction:
                raise StoreError("Transaction already active")
            self.connection.execute("BEGIN IMMEDIATE")

    def commit(self) -> None:
        with self._lock:
            self.connection.commit()

    def rollback(self) -> None:
        with self._lock:
            self.connection.rollback()

    @contextmanager
    def transaction(self) -> Iterator["EntityStore"]:
        """Commit on success; roll back and re-raise on any exception."""
        self.begin()
        try:
            yield self
        except BaseException:
            self.rollback()
            logger.debug("Transaction rolled back: %s", self.db_path)
            raise
        else:
            self.commit()
