"""SQLite adapter implementing MetaRepository protocol for metadata storage."""

from datetime import UTC, datetime
from pathlib import Path

from topicsync.adapters.sqlite.base_repository import SQLiteBaseRepository

LAST_SYNCED_AT = "last_synced_at"


class SQLiteMetaRepository(SQLiteBaseRepository):
    """SQLite implementation of MetaRepository for storing metadata."""

    def __init__(self, db_path: Path) -> None:
        """Initialize meta repository.

        Args:
            db_path: Path to SQLite database file.
        """
        super().__init__(db_path)

    def get(self, key: str) -> str | None:
        """Get a metadata value by key.

        Args:
            key: The metadata key.

        Returns:
            The value if found, None otherwise.
        """
        conn = self._get_connection()
        row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        """Set a metadata key-value pair.

        Uses UPSERT semantics - inserts if key doesn't exist, updates if it does.

        Args:
            key: The metadata key.
            value: The value to store.
        """
        with self._transaction() as cursor:
            cursor.execute(
                """
                INSERT INTO meta (key, value)
                VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value
                """,
                (key, value),
            )

    def delete(self, key: str) -> None:
        """Delete a metadata key.

        Args:
            key: The metadata key to delete.
        """
        with self._transaction() as cursor:
            cursor.execute("DELETE FROM meta WHERE key = ?", (key,))

    def stamp(self, key: str = LAST_SYNCED_AT) -> str:
        """Store the current UTC time under a key.

        Args:
            key: The metadata key (defaults to the last sync time).

        Returns:
            The ISO-8601 timestamp that was stored.
        """
        now = datetime.now(UTC).isoformat()
        self.set(key, now)
        return now
