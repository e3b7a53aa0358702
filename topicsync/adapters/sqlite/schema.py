"""SQLite database schema for the topicsync local store.

This module defines the database schema and initialization logic for the
local copy of the topic graph. The server is the source of truth; the local
store mirrors the records it returned plus topics created locally that have
not been assigned a server id yet.

Tables:
- topics: Topic records keyed by join code (id is NULL until assigned)
- context_questions / request_questions: Question records
- topic_context_questions / topic_request_questions: Topic links (sets)
- context_responses / threads: Answers and replies
- contexts: Default contexts
- members / topic_members: Topic membership
- meta: System metadata (schema version, last sync time)
"""

import sqlite3
from pathlib import Path

# Schema version for migrations
SCHEMA_VERSION = 1


def init_database(db_path: Path) -> None:
    """Initialize a new topicsync database with complete schema.

    Creates all tables, indexes, and default metadata entries. Safe to call
    on an existing database.

    Args:
        db_path: Path to the SQLite database file (typically .topicsync/topics.db)

    Raises:
        sqlite3.Error: If database creation fails
    """
    # Ensure parent directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        _create_tables(conn)
        _create_indexes(conn)
        _insert_default_meta(conn)
        conn.commit()
    finally:
        conn.close()


def _create_tables(conn: sqlite3.Connection) -> None:
    """Create all database tables.

    Args:
        conn: Open SQLite connection
    """
    cursor = conn.cursor()

    # topics: join_code is the local identity, id is server-assigned
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS topics (
            join_code TEXT PRIMARY KEY,
            id INTEGER,
            leader_id TEXT NOT NULL,
            topic_name TEXT NOT NULL,
            context_id INTEGER NOT NULL,
            updated_at REAL NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS context_questions (
            id INTEGER PRIMARY KEY,
            question TEXT NOT NULL DEFAULT '',
            template INTEGER NOT NULL DEFAULT 0
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS request_questions (
            id INTEGER PRIMARY KEY,
            question TEXT NOT NULL DEFAULT '',
            template INTEGER NOT NULL DEFAULT 0
        )
    """)

    # Many-to-many links; the composite key gives set semantics
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS topic_context_questions (
            join_code TEXT NOT NULL,
            question_id INTEGER NOT NULL,
            PRIMARY KEY (join_code, question_id),
            FOREIGN KEY (join_code) REFERENCES topics(join_code)
                ON DELETE CASCADE ON UPDATE CASCADE,
            FOREIGN KEY (question_id) REFERENCES context_questions(id)
                ON DELETE CASCADE
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS topic_request_questions (
            join_code TEXT NOT NULL,
            question_id INTEGER NOT NULL,
            PRIMARY KEY (join_code, question_id),
            FOREIGN KEY (join_code) REFERENCES topics(join_code)
                ON DELETE CASCADE ON UPDATE CASCADE,
            FOREIGN KEY (question_id) REFERENCES request_questions(id)
                ON DELETE CASCADE
        )
    """)

    # Responses and threads may arrive before their parent is stored,
    # so the parent columns are plain references
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS context_responses (
            id INTEGER PRIMARY KEY,
            response TEXT NOT NULL DEFAULT '',
            context_question_id INTEGER
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS threads (
            id INTEGER PRIMARY KEY,
            reply TEXT NOT NULL DEFAULT '',
            context_response_id INTEGER
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS contexts (
            id INTEGER PRIMARY KEY,
            title TEXT NOT NULL DEFAULT ''
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS members (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL DEFAULT '',
            first_name TEXT NOT NULL DEFAULT '',
            last_name TEXT NOT NULL DEFAULT '',
            avatar_url TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS topic_members (
            join_code TEXT NOT NULL,
            member_id TEXT NOT NULL,
            PRIMARY KEY (join_code, member_id),
            FOREIGN KEY (join_code) REFERENCES topics(join_code)
                ON DELETE CASCADE ON UPDATE CASCADE,
            FOREIGN KEY (member_id) REFERENCES members(id) ON DELETE CASCADE
        )
    """)

    # meta: System metadata (schema version, last sync time)
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
    """)


def _create_indexes(conn: sqlite3.Connection) -> None:
    """Create database indexes for query performance.

    Args:
        conn: Open SQLite connection
    """
    cursor = conn.cursor()

    # Leader/member lookups filter on server id
    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_topics_id
        ON topics(id) WHERE id IS NOT NULL
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_topics_leader
        ON topics(leader_id)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_responses_question
        ON context_responses(context_question_id)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_threads_response
        ON threads(context_response_id)
    """)

    cursor.execute("""
        CREATE INDEX IF NOT EXISTS idx_topic_members_member
        ON topic_members(member_id)
    """)


def _insert_default_meta(conn: sqlite3.Connection) -> None:
    """Insert default metadata entries.

    Args:
        conn: Open SQLite connection
    """
    cursor = conn.cursor()

    cursor.execute(
        """
        INSERT OR IGNORE INTO meta (key, value) VALUES
        ('schema_version', ?),
        ('created_at', datetime('now'))
    """,
        (str(SCHEMA_VERSION),),
    )


def check_schema_version(db_path: Path) -> int:
    """Check the schema version of an existing database.

    Args:
        db_path: Path to the SQLite database

    Returns:
        Schema version number (0 if database doesn't exist or has no version)
    """
    if not db_path.exists():
        return 0

    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT value FROM meta WHERE key = 'schema_version'")
        row = cursor.fetchone()
        return int(row[0]) if row else 0
    except sqlite3.Error:
        return 0
    finally:
        conn.close()
