"""Serialized writes to the local store.

All saves go through one StoreWriter so there is exactly one writer at a
time, regardless of how many children finish concurrently. The blocking
SQLite commit runs in a worker thread.
"""

import asyncio
import logging
import sqlite3

from topicsync.domain.entities import ChangeSet
from topicsync.domain.exceptions import PersistenceError
from topicsync.ports.repositories import TopicRepository

logger = logging.getLogger(__name__)


class StoreWriter:
    """Single-writer front for a TopicRepository."""

    def __init__(self, repository: TopicRepository) -> None:
        self.repository = repository
        self._lock = asyncio.Lock()

    async def save(self, changes: ChangeSet) -> None:
        """Commit a change set.

        Args:
            changes: Records to upsert and join codes to delete.

        Raises:
            PersistenceError: If the commit fails. Nothing is applied.
        """
        if changes.is_empty:
            return
        async with self._lock:
            try:
                await asyncio.to_thread(self.repository.save, changes)
            except sqlite3.Error as e:
                logger.error("Local save failed: %s", e)
                raise PersistenceError(
                    f"Could not save to the local store: {e}",
                    hint="Check that .topicsync/ is writable, or run 'topicsync init --force'",
                ) from e

    async def save_best_effort(self, changes: ChangeSet) -> bool:
        """Commit a change set, logging instead of raising on failure.

        Returns:
            True if the change set was committed.
        """
        try:
            await self.save(changes)
        except PersistenceError:
            return False
        return True
