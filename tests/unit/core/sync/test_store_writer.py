"""Tests for StoreWriter."""

import asyncio
import sqlite3
import threading

import pytest

from topicsync.core.sync.store_writer import StoreWriter
from topicsync.domain.entities import ChangeSet, Topic
from topicsync.domain.exceptions import ErrorKind, PersistenceError


class RecordingRepository:
    """Repository double that records saves and tracks overlap."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.saved: list[ChangeSet] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def save(self, changes: ChangeSet) -> None:
        with self._lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.fail:
                raise sqlite3.OperationalError("database is locked")
            threading.Event().wait(0.01)
            self.saved.append(changes)
        finally:
            with self._lock:
                self.active -= 1


def _changes(code: str) -> ChangeSet:
    return ChangeSet(
        topics=[Topic(join_code=code, leader_id="u1", topic_name=code, context_id=1)]
    )


class TestStoreWriter:
    """Tests for serialized saves."""

    @pytest.mark.asyncio
    async def test_save_commits_change_set(self) -> None:
        repo = RecordingRepository()

        await StoreWriter(repo).save(_changes("a"))

        assert len(repo.saved) == 1

    @pytest.mark.asyncio
    async def test_empty_change_set_is_skipped(self) -> None:
        """Nothing to write means no transaction."""
        repo = RecordingRepository()

        await StoreWriter(repo).save(ChangeSet())

        assert repo.saved == []

    @pytest.mark.asyncio
    async def test_concurrent_saves_never_overlap(self) -> None:
        """Only one save runs at a time."""
        repo = RecordingRepository()
        writer = StoreWriter(repo)

        await asyncio.gather(*(writer.save(_changes(str(i))) for i in range(5)))

        assert len(repo.saved) == 5
        assert repo.max_active == 1

    @pytest.mark.asyncio
    async def test_sqlite_error_becomes_persistence_error(self) -> None:
        """Store failures surface as PersistenceError with a hint."""
        writer = StoreWriter(RecordingRepository(fail=True))

        with pytest.raises(PersistenceError, match="database is locked") as exc_info:
            await writer.save(_changes("a"))

        assert exc_info.value.kind is ErrorKind.PERSISTENCE
        assert exc_info.value.hint is not None

    @pytest.mark.asyncio
    async def test_best_effort_reports_failure(self) -> None:
        """save_best_effort() returns False instead of raising."""
        assert await StoreWriter(RecordingRepository(fail=True)).save_best_effort(
            _changes("a")
        ) is False
        assert await StoreWriter(RecordingRepository()).save_best_effort(
            _changes("a")
        ) is True
