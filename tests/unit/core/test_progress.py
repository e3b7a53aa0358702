"""Unit tests for the pull progress display."""

import io

from rich.console import Console

from topicsync.core.progress import TopicSyncProgress, progress_context


def _console() -> Console:
    return Console(file=io.StringIO(), force_terminal=False)


class TestProgressContext:
    def test_quiet_yields_none(self) -> None:
        with progress_context(quiet_mode=True) as progress:
            assert progress is None

    def test_yields_callback(self) -> None:
        with progress_context(console=_console()) as progress:
            assert isinstance(progress, TopicSyncProgress)


class TestTopicSyncProgress:
    def test_tracks_finished_topics(self) -> None:
        with progress_context(console=_console()) as progress:
            progress.on_start(3, "Syncing topics")
            progress.on_progress(2, "Retro")

            task = progress.progress.tasks[0]
            assert task.total == 3
            assert task.completed == 2
            assert task.fields["last_topic"] == "Retro"

    def test_complete_removes_task(self) -> None:
        with progress_context(console=_console()) as progress:
            progress.on_start(1, "Syncing topics")
            progress.on_complete()

            assert progress.task_id is None
            assert progress.progress.tasks == []

    def test_progress_before_start_is_ignored(self) -> None:
        with progress_context(console=_console()) as progress:
            progress.on_progress(1, "Retro")

            assert progress.progress.tasks == []
