"""DatabaseInitializer backed by the SQLite schema module."""

from pathlib import Path

from topicsync.adapters.sqlite.schema import init_database as sqlite_init_database


class SqliteDatabaseInitializer:
    """Creates the SQLite topic store and records its schema version."""

    def init_database(self, db_path: Path) -> None:
        """Create the store at ``db_path``, keeping any existing rows.

        Raises:
            sqlite3.Error: If the store cannot be created.
        """
        sqlite_init_database(db_path)
