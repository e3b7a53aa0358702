"""SQLite adapters for the topicsync local store."""

from .base_repository import SQLiteBaseRepository
from .initializer import SqliteDatabaseInitializer
from .meta_repository import LAST_SYNCED_AT, SQLiteMetaRepository
from .schema import check_schema_version, init_database
from .topic_repository import SQLiteTopicRepository

__all__ = [
    "LAST_SYNCED_AT",
    "SQLiteBaseRepository",
    "SQLiteMetaRepository",
    "SQLiteTopicRepository",
    "SqliteDatabaseInitializer",
    "init_database",
    "check_schema_version",
]
