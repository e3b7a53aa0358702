"""Configuration provider port.

Defines the interface for loading and accessing application configuration.
"""

from pathlib import Path
from typing import Protocol

from topicsync.domain.config import TopicSyncConfig


class ConfigProvider(Protocol):
    """Protocol for loading and providing configuration."""

    def load(self, workspace_dir: Path) -> TopicSyncConfig:
        """Load configuration from the workspace directory.

        Args:
            workspace_dir: Path to .topicsync directory containing config.toml

        Returns:
            TopicSyncConfig instance with loaded or default values

        Note:
            Implementations should gracefully fall back to defaults
            if config file is missing or invalid.
        """
        ...
