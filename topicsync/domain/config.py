"""Config domain models for topicsync.

Configuration is stored in .topicsync/config.toml and represents user
preferences for the remote backend, credentials lookup, local storage and
sync behavior. This module defines the domain models that represent
validated configuration state.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any


@dataclass(frozen=True)
class RemoteConfig:
    """Configuration for the REST backend.

    Attributes:
        base_url: Base URL every resource path is resolved against.
        timeout: Per-request timeout in seconds.

    Raises:
        ValueError: If base_url is empty or timeout is not positive.
    """

    base_url: str = "http://localhost:8000/"
    timeout: float = 30.0

    def __post_init__(self) -> None:
        """Validate remote config after initialization."""
        if not self.base_url:
            raise ValueError("base_url cannot be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")


@dataclass(frozen=True)
class AuthConfig:
    """Where credentials are read from.

    Credentials are never stored in config files; only the names of the
    environment variables holding them are.

    Attributes:
        token_env: Environment variable with the bearer token.
        user_id_env: Environment variable with the signed-in user's id.
    """

    token_env: str = "TOPICSYNC_TOKEN"
    user_id_env: str = "TOPICSYNC_USER_ID"

    def __post_init__(self) -> None:
        if not self.token_env or not self.user_id_env:
            raise ValueError("token_env and user_id_env cannot be empty")


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for the local store.

    Attributes:
        filename: SQLite database file name inside the .topicsync directory.
    """

    filename: str = "topics.db"

    def __post_init__(self) -> None:
        if not self.filename or "/" in self.filename:
            raise ValueError(
                f"filename must be a plain file name, got {self.filename!r}"
            )


@dataclass(frozen=True)
class SyncConfig:
    """Configuration for sync behavior.

    Attributes:
        include_responses: Also fetch context responses and their threads
            while ingesting topics.
    """

    include_responses: bool = False


@dataclass(frozen=True)
class TopicSyncConfig:
    """Complete topicsync configuration.

    Attributes:
        remote: Remote backend configuration
        auth: Credential lookup configuration
        store: Local store configuration
        sync: Sync behavior configuration
    """

    remote: RemoteConfig = field(default_factory=RemoteConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)

    @staticmethod
    def default() -> "TopicSyncConfig":
        """Create a config with all default values."""
        return TopicSyncConfig(
            remote=RemoteConfig(),
            auth=AuthConfig(),
            store=StoreConfig(),
            sync=SyncConfig(),
        )

    @staticmethod
    def from_partial(
        base: "TopicSyncConfig", data: dict[str, Any]
    ) -> "TopicSyncConfig":
        """Overlay raw config data on top of an existing config.

        Only keys present in ``data`` are replaced; each section is
        re-validated after the overlay.

        Args:
            base: Config providing values for keys missing from data.
            data: Raw section dictionaries (e.g. parsed TOML).

        Returns:
            New TopicSyncConfig with the overrides applied.

        Raises:
            ValueError: If a section is malformed or a value fails validation.
        """
        sections: dict[str, Any] = {}
        for section in fields(base):
            current = getattr(base, section.name)
            overrides = data.get(section.name)
            if overrides is None:
                sections[section.name] = current
                continue
            if not isinstance(overrides, dict):
                raise ValueError(f"[{section.name}] must be a table")
            known = {f.name for f in fields(current)}
            unknown = set(overrides) - known
            if unknown:
                raise ValueError(
                    f"Unknown keys in [{section.name}]: {', '.join(sorted(unknown))}"
                )
            try:
                sections[section.name] = replace(current, **overrides)
            except TypeError as e:
                raise ValueError(f"Invalid [{section.name}] section: {e}") from e
        return TopicSyncConfig(**sections)
