"""Progress port for `get_topics`.

Topics finish in fan-out order, not list order, so ``current`` counts
finished topics and ``item_description`` names the one that just finished.
"""

from typing import Protocol


class ProgressCallback(Protocol):
    """Receives per-topic progress from TopicSyncService.get_topics()."""

    def on_start(self, total: int, description: str) -> None:
        """Called once the topic details are in and graph sync begins.

        Args:
            total: Number of topics whose question graph will be synced.
            description: Label for the operation, e.g. "Syncing topics".
        """
        ...

    def on_progress(self, current: int, item_description: str | None = None) -> None:
        """Called after each topic's graph has been saved or has failed.

        Args:
            current: Topics finished so far.
            item_description: Name of the topic that just finished.
        """
        ...

    def on_complete(self) -> None:
        """Called after the last topic, before the sync time is stamped."""
        ...
