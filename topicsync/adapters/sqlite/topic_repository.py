"""SQLite adapter implementing TopicRepository protocol for the topic graph."""

import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path

from topicsync.adapters.sqlite.base_repository import SQLiteBaseRepository
from topicsync.domain.entities import (
    ChangeSet,
    Context,
    ContextQuestion,
    ContextResponse,
    Member,
    RequestQuestion,
    Thread,
    Topic,
)

_TOPIC_COLUMNS = "join_code, id, leader_id, topic_name, context_id"


class SQLiteTopicRepository(SQLiteBaseRepository):
    """SQLite implementation of TopicRepository.

    Every save() call is one transaction: either the whole change set is
    applied or none of it is.
    """

    def __init__(self, db_path: Path) -> None:
        """Initialize topic repository.

        Args:
            db_path: Path to SQLite database file.
        """
        super().__init__(db_path, foreign_keys=True)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, changes: ChangeSet) -> None:
        """Apply a change set in a single transaction.

        Args:
            changes: Records to upsert and topics to delete.

        Raises:
            sqlite3.Error: If any statement fails; the transaction is rolled back.
        """
        if changes.is_empty:
            return

        with self._transaction() as cursor:
            for join_code in changes.deleted_join_codes:
                cursor.execute("DELETE FROM topics WHERE join_code = ?", (join_code,))
            for context in changes.contexts:
                self._upsert_context(cursor, context)
            for question in changes.request_questions:
                self._upsert_request_question(cursor, question)
            for question in changes.context_questions:
                self._upsert_context_question(cursor, question)
            for response in changes.context_responses:
                self._upsert_context_response(cursor, response)
            for thread in changes.threads:
                self._upsert_thread(cursor, thread)
            for topic in changes.topics:
                self._upsert_topic(cursor, topic)

    def _upsert_topic(self, cursor: sqlite3.Cursor, topic: Topic) -> None:
        # A NULL id never overwrites an id the server already assigned
        cursor.execute(
            """
            INSERT INTO topics (join_code, id, leader_id, topic_name, context_id, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(join_code) DO UPDATE SET
                id = COALESCE(excluded.id, topics.id),
                leader_id = excluded.leader_id,
                topic_name = excluded.topic_name,
                context_id = excluded.context_id,
                updated_at = excluded.updated_at
            """,
            (
                topic.join_code,
                topic.id,
                topic.leader_id,
                topic.topic_name,
                topic.context_id,
                time.time(),
            ),
        )
        for question in topic.context_questions.values():
            self._upsert_context_question(cursor, question)
            cursor.execute(
                "INSERT OR IGNORE INTO topic_context_questions (join_code, question_id) "
                "VALUES (?, ?)",
                (topic.join_code, question.id),
            )
        for question in topic.request_questions.values():
            self._upsert_request_question(cursor, question)
            cursor.execute(
                "INSERT OR IGNORE INTO topic_request_questions (join_code, question_id) "
                "VALUES (?, ?)",
                (topic.join_code, question.id),
            )
        for member in topic.members.values():
            self._upsert_member(cursor, member)
            cursor.execute(
                "INSERT OR IGNORE INTO topic_members (join_code, member_id) VALUES (?, ?)",
                (topic.join_code, member.id),
            )

    def _upsert_context_question(
        self, cursor: sqlite3.Cursor, question: ContextQuestion
    ) -> None:
        cursor.execute(
            """
            INSERT INTO context_questions (id, question, template)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                question = excluded.question,
                template = excluded.template
            """,
            (question.id, question.question, int(question.template)),
        )
        for response in question.responses.values():
            self._upsert_context_response(cursor, response)

    def _upsert_request_question(
        self, cursor: sqlite3.Cursor, question: RequestQuestion
    ) -> None:
        cursor.execute(
            """
            INSERT INTO request_questions (id, question, template)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                question = excluded.question,
                template = excluded.template
            """,
            (question.id, question.question, int(question.template)),
        )

    def _upsert_context_response(
        self, cursor: sqlite3.Cursor, response: ContextResponse
    ) -> None:
        cursor.execute(
            """
            INSERT INTO context_responses (id, response, context_question_id)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                response = excluded.response,
                context_question_id = COALESCE(
                    excluded.context_question_id, context_responses.context_question_id
                )
            """,
            (response.id, response.response, response.context_question_id),
        )
        for thread in response.threads.values():
            self._upsert_thread(cursor, thread)

    def _upsert_thread(self, cursor: sqlite3.Cursor, thread: Thread) -> None:
        cursor.execute(
            """
            INSERT INTO threads (id, reply, context_response_id)
            VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                reply = excluded.reply,
                context_response_id = COALESCE(
                    excluded.context_response_id, threads.context_response_id
                )
            """,
            (thread.id, thread.reply, thread.context_response_id),
        )

    def _upsert_context(self, cursor: sqlite3.Cursor, context: Context) -> None:
        cursor.execute(
            """
            INSERT INTO contexts (id, title) VALUES (?, ?)
            ON CONFLICT(id) DO UPDATE SET title = excluded.title
            """,
            (context.id, context.title),
        )

    def _upsert_member(self, cursor: sqlite3.Cursor, member: Member) -> None:
        cursor.execute(
            """
            INSERT INTO members (id, email, first_name, last_name, avatar_url)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                email = excluded.email,
                first_name = excluded.first_name,
                last_name = excluded.last_name,
                avatar_url = excluded.avatar_url
            """,
            (
                member.id,
                member.email,
                member.first_name,
                member.last_name,
                member.avatar_url,
            ),
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_topic(self, join_code: str) -> Topic | None:
        """Load a topic with its question and member links.

        Args:
            join_code: The topic's join code.

        Returns:
            The topic if found, None otherwise.
        """
        conn = self._get_connection()
        row = conn.execute(
            f"SELECT {_TOPIC_COLUMNS} FROM topics WHERE join_code = ?",
            (join_code,),
        ).fetchone()
        return self._load_topic(conn, row) if row else None

    def list_topics(self) -> list[Topic]:
        """List every locally cached topic, ordered by name."""
        conn = self._get_connection()
        rows = conn.execute(
            f"SELECT {_TOPIC_COLUMNS} FROM topics ORDER BY topic_name, join_code"
        ).fetchall()
        return [self._load_topic(conn, row) for row in rows]

    def list_leader_topics(self, ids: Iterable[int], leader_id: str) -> list[Topic]:
        """List topics with an id in ``ids`` led by ``leader_id``.

        Args:
            ids: Server ids to consider.
            leader_id: The leader's user id.

        Returns:
            Matching topics (empty if ids is empty).
        """
        id_list = list(ids)
        if not id_list:
            return []
        placeholders = ", ".join("?" for _ in id_list)
        conn = self._get_connection()
        rows = conn.execute(
            f"SELECT {_TOPIC_COLUMNS} FROM topics "
            f"WHERE id IN ({placeholders}) AND leader_id = ? ORDER BY id",
            (*id_list, leader_id),
        ).fetchall()
        return [self._load_topic(conn, row) for row in rows]

    def list_member_topics(self, ids: Iterable[int], member_id: str) -> list[Topic]:
        """List topics with an id in ``ids`` that have ``member_id`` as a member.

        Args:
            ids: Server ids to consider.
            member_id: The member's user id.

        Returns:
            Matching topics (empty if ids is empty).
        """
        id_list = list(ids)
        if not id_list:
            return []
        placeholders = ", ".join("?" for _ in id_list)
        conn = self._get_connection()
        rows = conn.execute(
            f"""
            SELECT t.join_code, t.id, t.leader_id, t.topic_name, t.context_id
            FROM topics t
            JOIN topic_members tm ON tm.join_code = t.join_code
            WHERE t.id IN ({placeholders}) AND tm.member_id = ?
            ORDER BY t.id
            """,
            (*id_list, member_id),
        ).fetchall()
        return [self._load_topic(conn, row) for row in rows]

    def get_context_question(self, question_id: int) -> ContextQuestion | None:
        """Load a context question with its responses and their threads."""
        conn = self._get_connection()
        row = conn.execute(
            "SELECT id, question, template FROM context_questions WHERE id = ?",
            (question_id,),
        ).fetchone()
        return self._load_context_question(conn, row) if row else None

    def get_context_response(self, response_id: int) -> ContextResponse | None:
        """Load a context response with its threads."""
        conn = self._get_connection()
        row = conn.execute(
            "SELECT id, response, context_question_id FROM context_responses WHERE id = ?",
            (response_id,),
        ).fetchone()
        return self._load_context_response(conn, row) if row else None

    def list_context_questions(self, template_only: bool = False) -> list[ContextQuestion]:
        """List context questions, optionally only default (template) ones."""
        conn = self._get_connection()
        query = "SELECT id, question, template FROM context_questions"
        if template_only:
            query += " WHERE template = 1"
        rows = conn.execute(query + " ORDER BY id").fetchall()
        return [self._load_context_question(conn, row) for row in rows]

    def list_request_questions(self) -> list[RequestQuestion]:
        """List request questions."""
        conn = self._get_connection()
        rows = conn.execute(
            "SELECT id, question, template FROM request_questions ORDER BY id"
        ).fetchall()
        return [
            RequestQuestion(id=row[0], question=row[1], template=bool(row[2]))
            for row in rows
        ]

    def list_contexts(self) -> list[Context]:
        """List stored contexts."""
        conn = self._get_connection()
        rows = conn.execute("SELECT id, title FROM contexts ORDER BY id").fetchall()
        return [Context(id=row[0], title=row[1]) for row in rows]

    def list_join_codes(self) -> list[str]:
        """List the join codes of every locally cached topic, without loading graphs."""
        conn = self._get_connection()
        return [row[0] for row in conn.execute("SELECT join_code FROM topics ORDER BY join_code")]

    def count_topics(self) -> int:
        """Count locally cached topics."""
        conn = self._get_connection()
        return conn.execute("SELECT COUNT(*) FROM topics").fetchone()[0]

    def _load_topic(self, conn: sqlite3.Connection, row: tuple) -> Topic:
        join_code, topic_id, leader_id, topic_name, context_id = row
        topic = Topic(
            join_code=join_code,
            leader_id=leader_id,
            topic_name=topic_name,
            context_id=context_id,
            id=topic_id,
        )

        context_rows = conn.execute(
            """
            SELECT q.id, q.question, q.template
            FROM context_questions q
            JOIN topic_context_questions l ON l.question_id = q.id
            WHERE l.join_code = ?
            ORDER BY q.id
            """,
            (join_code,),
        ).fetchall()
        for question_row in context_rows:
            topic.add_context_question(self._load_context_question(conn, question_row))

        request_rows = conn.execute(
            """
            SELECT q.id, q.question, q.template
            FROM request_questions q
            JOIN topic_request_questions l ON l.question_id = q.id
            WHERE l.join_code = ?
            ORDER BY q.id
            """,
            (join_code,),
        ).fetchall()
        for qid, question, template in request_rows:
            topic.add_request_question(
                RequestQuestion(id=qid, question=question, template=bool(template))
            )

        member_rows = conn.execute(
            """
            SELECT m.id, m.email, m.first_name, m.last_name, m.avatar_url
            FROM members m
            JOIN topic_members tm ON tm.member_id = m.id
            WHERE tm.join_code = ?
            ORDER BY m.id
            """,
            (join_code,),
        ).fetchall()
        for mid, email, first_name, last_name, avatar_url in member_rows:
            topic.add_member(
                Member(
                    id=mid,
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    avatar_url=avatar_url,
                )
            )
        return topic

    def _load_context_question(
        self, conn: sqlite3.Connection, row: tuple
    ) -> ContextQuestion:
        qid, question_text, template = row
        question = ContextQuestion(id=qid, question=question_text, template=bool(template))
        response_rows = conn.execute(
            "SELECT id, response FROM context_responses "
            "WHERE context_question_id = ? ORDER BY id",
            (qid,),
        ).fetchall()
        for rid, response_text in response_rows:
            question.add_response(
                self._load_context_response(conn, (rid, response_text, qid))
            )
        return question

    def _load_context_response(
        self, conn: sqlite3.Connection, row: tuple
    ) -> ContextResponse:
        rid, response_text, question_id = row
        response = ContextResponse(
            id=rid, response=response_text, context_question_id=question_id
        )
        thread_rows = conn.execute(
            "SELECT id, reply FROM threads WHERE context_response_id = ? ORDER BY id",
            (rid,),
        ).fetchall()
        for tid, reply in thread_rows:
            response.add_thread(Thread(id=tid, reply=reply))
        return response
