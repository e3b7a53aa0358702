"""Factory classes for use case and adapter instantiation.

This module centralizes the creation of use cases and their dependencies,
keeping the CLI layer free from direct adapter imports. This follows the
Clean Architecture principle that presentation layers should not know
about concrete infrastructure implementations.

The factories use lazy imports so commands that never touch the network
do not import httpx.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import httpx

    from topicsync.adapters.http.client import HttpxRemoteClient
    from topicsync.core.queries.topic_queries import TopicQueryService
    from topicsync.core.status.status_usecase import StatusUseCase
    from topicsync.core.sync.topic_sync import TopicSyncService
    from topicsync.domain.config import TopicSyncConfig
    from topicsync.ports.auth import CredentialProvider
    from topicsync.ports.config import ConfigProvider


class ConfigFactory:
    """Factory for creating configuration-related instances."""

    def create_config_provider(self) -> ConfigProvider:
        """Create a TomlConfigProvider instance.

        Returns:
            TomlConfigProvider instance.
        """
        from topicsync.adapters.config.toml_config_provider import TomlConfigProvider

        return TomlConfigProvider()

    def create_db_initializer(self):
        """Create a SqliteDatabaseInitializer instance.

        Returns:
            SqliteDatabaseInitializer instance.
        """
        from topicsync.adapters.sqlite.initializer import SqliteDatabaseInitializer

        return SqliteDatabaseInitializer()


class RepositoryFactory:
    """Factory for creating repository instances over the local store."""

    def create_meta_repository(self, db_path: Path):
        """Create a SQLiteMetaRepository instance.

        Args:
            db_path: Path to the SQLite database.

        Returns:
            SQLiteMetaRepository instance.
        """
        from topicsync.adapters.sqlite.meta_repository import SQLiteMetaRepository

        return SQLiteMetaRepository(db_path)

    def create_topic_repository(self, db_path: Path):
        """Create a SQLiteTopicRepository instance.

        Args:
            db_path: Path to the SQLite database.

        Returns:
            SQLiteTopicRepository instance.
        """
        from topicsync.adapters.sqlite.topic_repository import SQLiteTopicRepository

        return SQLiteTopicRepository(db_path)


class RemoteFactory:
    """Factory for credential and network adapters."""

    def create_credentials(self, config: TopicSyncConfig) -> CredentialProvider:
        """Create an EnvCredentialProvider reading the configured variables.

        Args:
            config: Configuration with the [auth] section.

        Returns:
            EnvCredentialProvider instance.
        """
        from topicsync.adapters.auth.env_credentials import EnvCredentialProvider

        return EnvCredentialProvider(
            token_env=config.auth.token_env,
            user_id_env=config.auth.user_id_env,
        )

    def create_remote_client(
        self,
        config: TopicSyncConfig,
        credentials: CredentialProvider,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> HttpxRemoteClient:
        """Create an HttpxRemoteClient for the configured backend.

        Args:
            config: Configuration with the [remote] section.
            credentials: Source of the bearer token.
            transport: Optional httpx transport override.

        Returns:
            HttpxRemoteClient instance (close it with aclose()).
        """
        from topicsync.adapters.http.client import HttpxRemoteClient

        return HttpxRemoteClient(
            base_url=config.remote.base_url,
            credentials=credentials,
            timeout=config.remote.timeout,
            transport=transport,
        )


class UseCaseFactory:
    """Factory for creating use case instances with all dependencies.

    Centralizes the dependency wiring for use cases, keeping the CLI layer
    clean and testable.
    """

    def create_sync_service(
        self,
        db_path: Path,
        config: TopicSyncConfig,
        remote: HttpxRemoteClient,
        credentials: CredentialProvider,
    ) -> TopicSyncService:
        """Create TopicSyncService with all required dependencies.

        Args:
            db_path: Path to the SQLite database.
            config: Configuration object with sync settings.
            remote: Client for the backend.
            credentials: Source of the signed-in user.

        Returns:
            Configured TopicSyncService.
        """
        from topicsync.adapters.sqlite.meta_repository import SQLiteMetaRepository
        from topicsync.adapters.sqlite.topic_repository import SQLiteTopicRepository
        from topicsync.core.sync.topic_sync import TopicSyncService

        return TopicSyncService(
            remote=remote,
            repository=SQLiteTopicRepository(db_path),
            credentials=credentials,
            meta=SQLiteMetaRepository(db_path),
            include_responses=config.sync.include_responses,
        )

    def create_query_service(
        self, db_path: Path, credentials: CredentialProvider
    ) -> TopicQueryService:
        """Create TopicQueryService over the local store.

        Args:
            db_path: Path to the SQLite database.
            credentials: Source of the signed-in user.

        Returns:
            TopicQueryService instance.
        """
        from topicsync.adapters.sqlite.topic_repository import SQLiteTopicRepository
        from topicsync.core.queries.topic_queries import TopicQueryService

        return TopicQueryService(SQLiteTopicRepository(db_path), credentials)

    def create_status_usecase(
        self,
        db_path: Path,
        config: TopicSyncConfig,
        credentials: CredentialProvider,
    ) -> StatusUseCase:
        """Create StatusUseCase with all dependencies.

        Args:
            db_path: Path to the SQLite database.
            config: Configuration object.
            credentials: Source of the signed-in user.

        Returns:
            Initialized StatusUseCase instance.
        """
        from topicsync.adapters.sqlite.meta_repository import SQLiteMetaRepository
        from topicsync.adapters.sqlite.topic_repository import SQLiteTopicRepository
        from topicsync.core.status.status_usecase import StatusUseCase

        return StatusUseCase(
            topic_repo=SQLiteTopicRepository(db_path),
            meta_repo=SQLiteMetaRepository(db_path),
            credentials=credentials,
            config=config,
        )
