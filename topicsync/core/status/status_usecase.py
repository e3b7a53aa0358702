"""Status use case for showing the local store state and configuration."""

import logging
from dataclasses import dataclass
from pathlib import Path

from topicsync.adapters.sqlite.meta_repository import LAST_SYNCED_AT
from topicsync.core.use_case_errors import format_error_message, log_use_case_error
from topicsync.domain.config import TopicSyncConfig
from topicsync.ports.auth import CredentialProvider
from topicsync.ports.repositories import MetaRepository, TopicRepository

logger = logging.getLogger(__name__)


@dataclass
class StatusRequest:
    """Request to get topicsync status.

    Attributes:
        workspace_root: Absolute path to the workspace root.
    """

    workspace_root: Path


@dataclass
class StatusResponse:
    """Response containing topicsync status information.

    Attributes:
        initialized: Whether the workspace is initialized.
        workspace_root: Workspace root path.
        topic_count: Number of locally cached topics.
        led_topic_count: Number of cached topics led by the signed-in user.
        last_synced_at: ISO timestamp of the last pull (or None if never pulled).
        signed_in_as: Signed-in user id (or None).
        config: Current configuration.
        success: Whether status check succeeded.
        error: Error message if status check failed.
    """

    initialized: bool
    workspace_root: Path | None = None
    topic_count: int = 0
    led_topic_count: int = 0
    last_synced_at: str | None = None
    signed_in_as: str | None = None
    config: TopicSyncConfig | None = None
    success: bool = True
    error: str | None = None

    @classmethod
    def create_error(cls, message: str, *, workspace_root: Path) -> "StatusResponse":
        return cls(
            initialized=True,
            workspace_root=workspace_root,
            success=False,
            error=message,
        )


class StatusUseCase:
    """Use case for retrieving local store status."""

    def __init__(
        self,
        topic_repo: TopicRepository,
        meta_repo: MetaRepository,
        credentials: CredentialProvider,
        config: TopicSyncConfig,
    ) -> None:
        """Initialize status use case.

        Args:
            topic_repo: Topic repository for counting cached topics.
            meta_repo: Metadata repository for last sync info.
            credentials: Source of the signed-in user id.
            config: Configuration object.
        """
        self.topic_repo = topic_repo
        self.meta_repo = meta_repo
        self.credentials = credentials
        self.config = config

    def execute(self, request: StatusRequest) -> StatusResponse:
        """Execute status check.

        Error handling contract:
            - KeyboardInterrupt/SystemExit are re-raised (user wants to exit)
            - All other exceptions are caught and converted to error responses

        Args:
            request: Status request with workspace root.

        Returns:
            StatusResponse with store state and configuration.
        """
        try:
            user_id = self.credentials.current_user_id()
            topics = self.topic_repo.list_topics()
            led = sum(1 for topic in topics if topic.is_led_by(user_id))

            return StatusResponse(
                initialized=True,
                workspace_root=request.workspace_root,
                topic_count=len(topics),
                led_topic_count=led,
                last_synced_at=self.meta_repo.get(LAST_SYNCED_AT),
                signed_in_as=user_id,
                config=self.config,
            )
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            log_use_case_error(e, "status check")
            return StatusResponse.create_error(
                format_error_message(e, "status check"),
                workspace_root=request.workspace_root,
            )
