"""Repository port interfaces for data persistence.

These protocols define abstract interfaces for storing and retrieving domain
entities. Implementations should be in adapters/ layer.
"""

from collections.abc import Iterable
from typing import Protocol

from topicsync.domain.entities import (
    ChangeSet,
    Context,
    ContextQuestion,
    ContextResponse,
    RequestQuestion,
    Topic,
)


class TopicRepository(Protocol):
    """Local store gateway for the topic graph."""

    def save(self, changes: ChangeSet) -> None:
        """Apply a change set in a single transaction.

        Deleted join codes are removed first, then records are upserted.
        Relationship links are added with set semantics: links already
        present are kept, nothing is duplicated.

        Args:
            changes: Records to upsert and topics to delete.

        Raises:
            Exception: If the transaction fails; nothing is applied.
        """
        ...

    def get_topic(self, join_code: str) -> Topic | None:
        """Load a topic with its question and member links.

        Args:
            join_code: The topic's join code.

        Returns:
            The topic if found, None otherwise.
        """
        ...

    def list_topics(self) -> list[Topic]:
        """List every locally cached topic, with links."""
        ...

    def list_join_codes(self) -> list[str]:
        """List the join codes of every locally cached topic.

        Cheaper than list_topics() when only identities are needed, e.g. to
        find topics the server no longer returns.
        """
        ...

    def list_leader_topics(self, ids: Iterable[int], leader_id: str) -> list[Topic]:
        """List topics with an id in ``ids`` led by ``leader_id``."""
        ...

    def list_member_topics(self, ids: Iterable[int], member_id: str) -> list[Topic]:
        """List topics with an id in ``ids`` that have ``member_id`` as a member."""
        ...

    def get_context_question(self, question_id: int) -> ContextQuestion | None:
        """Load a context question with its responses and their threads."""
        ...

    def get_context_response(self, response_id: int) -> ContextResponse | None:
        """Load a context response with its threads."""
        ...

    def list_context_questions(self, template_only: bool = False) -> list[ContextQuestion]:
        """List context questions, optionally only default (template) ones."""
        ...

    def list_request_questions(self) -> list[RequestQuestion]:
        """List request questions."""
        ...

    def list_contexts(self) -> list[Context]:
        """List stored contexts."""
        ...

    def count_topics(self) -> int:
        """Count locally cached topics."""
        ...


class MetaRepository(Protocol):
    """Repository for storing metadata (last sync time, schema version)."""

    def get(self, key: str) -> str | None:
        """Get a metadata value by key.

        Args:
            key: The metadata key.

        Returns:
            The value if found, None otherwise.
        """
        ...

    def set(self, key: str, value: str) -> None:
        """Set a metadata key-value pair.

        Args:
            key: The metadata key.
            value: The value to store.
        """
        ...

    def delete(self, key: str) -> None:
        """Delete a metadata key.

        Args:
            key: The metadata key to delete.
        """
        ...

    def stamp(self, key: str = "last_synced_at") -> str:
        """Store the current UTC time under a key and return it."""
        ...
