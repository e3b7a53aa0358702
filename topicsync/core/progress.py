"""Rich progress display for `topicsync pull`.

Topics finish in whatever order their fan-out completes, so the display
counts finished topics and names the most recent one rather than tracking
a position in a list.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)


class TopicSyncProgress:
    """ProgressCallback that drives a single Rich task."""

    def __init__(self, progress: Progress) -> None:
        self.progress = progress
        self.task_id: int | None = None

    def on_start(self, total: int, description: str) -> None:
        self.task_id = self.progress.add_task(description, total=total, last_topic="")

    def on_progress(self, current: int, item_description: str | None = None) -> None:
        if self.task_id is None:
            return
        self.progress.update(self.task_id, completed=current, last_topic=item_description or "")

    def on_complete(self) -> None:
        if self.task_id is not None:
            self.progress.remove_task(self.task_id)
            self.task_id = None


@contextmanager
def progress_context(
    quiet_mode: bool = False,
    console: Console | None = None,
) -> Iterator[TopicSyncProgress | None]:
    """Show a transient progress bar for the duration of the block.

    Args:
        quiet_mode: Yield None instead of drawing anything.
        console: Console to draw on. Defaults to stderr so stdout stays
            clean for command output.

    Yields:
        A TopicSyncProgress to pass to get_topics(), or None when quiet.
    """
    if quiet_mode:
        yield None
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        TextColumn("[cyan]{task.fields[last_topic]}"),
        console=console or Console(stderr=True),
        transient=True,
    ) as progress:
        yield TopicSyncProgress(progress)
