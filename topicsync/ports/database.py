"""Port for creating the local topic store."""

from pathlib import Path
from typing import Protocol


class DatabaseInitializer(Protocol):
    """Creates the store `topicsync init` points the workspace at."""

    def init_database(self, db_path: Path) -> None:
        """Create the topic, question, response, thread and meta tables.

        Safe to run on an existing store; cached topics are kept. `init
        --force` removes the old file before calling this.

        Args:
            db_path: Store file inside the workspace, e.g. .topicsync/topics.db.

        Raises:
            Exception: If the store cannot be created.
        """
        ...
