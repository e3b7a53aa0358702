"""Shared connection handling for the SQLite store adapters.

The topic and meta repositories each own one lazily opened connection to the
workspace database. Saves are committed from worker threads by the store
writer, reads happen on the calling thread, so connections are opened with
check_same_thread=False and guarded only during creation.
"""

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Self

# Milliseconds SQLite waits on a locked database before raising
DEFAULT_BUSY_TIMEOUT_MS = 5000


class SQLiteBaseRepository:
    """Base class for repositories over the local topic store.

    Subclasses call ``_get_connection()`` for reads and wrap writes in
    ``_transaction()``. Instances are context managers that close their
    connection on exit, which is how the CLI scopes store access to a single
    command.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        foreign_keys: bool = False,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ) -> None:
        """Initialize the repository.

        Args:
            db_path: Path to the SQLite database file.
            foreign_keys: Enable foreign key enforcement, needed for link
                tables to cascade when a topic is deleted.
            busy_timeout_ms: How long to wait on a locked database.
        """
        self.db_path = db_path
        self._foreign_keys = foreign_keys
        self._busy_timeout_ms = busy_timeout_ms
        self._conn: sqlite3.Connection | None = None
        self._conn_lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        """Return the repository's connection, opening it on first use."""
        if self._conn is None:
            with self._conn_lock:
                if self._conn is None:
                    self._conn = self._open()
        return self._conn

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.execute(f"PRAGMA busy_timeout = {int(self._busy_timeout_ms)}")
        if self._foreign_keys:
            conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Cursor]:
        """Run a block of writes as one transaction.

        Commits when the block exits normally and rolls back if it raises,
        re-raising the original error.

        Yields:
            A cursor on the repository's connection.
        """
        conn = self._get_connection()
        with conn:
            yield conn.cursor()

    def close(self) -> None:
        """Close the connection if open. Safe to call more than once."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> bool:
        self.close()
        return False
