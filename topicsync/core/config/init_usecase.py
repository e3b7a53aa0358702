"""Init use case for initializing a new topicsync workspace.

This use case handles the creation of a new .topicsync/ directory with all
necessary files: config.toml and the SQLite store.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from topicsync.core.repo_utils import WORKSPACE_DIRNAME
from topicsync.core.use_case_errors import format_error_message, log_use_case_error
from topicsync.domain.config import StoreConfig
from topicsync.ports.database import DatabaseInitializer
from topicsync.shared.config_io import create_default_config_file

logger = logging.getLogger(__name__)


@dataclass
class InitRequest:
    """Request to initialize a new topicsync workspace.

    Attributes:
        workspace_root: Directory where .topicsync/ will be created
        force: If True, reinitialize even if .topicsync/ already exists
        base_url: Backend URL written to config.toml (default: built-in default)
    """

    workspace_root: Path
    force: bool = False
    base_url: str | None = None


@dataclass
class InitResponse:
    """Response from init operation.

    Attributes:
        topicsync_dir: Path to created .topicsync/ directory (or None on failure).
        config_path: Path to created config.toml (or None on failure).
        db_path: Path to created database (or None on failure).
        was_reinitialized: True if existing .topicsync/ was replaced.
        success: Whether initialization succeeded.
        error: Error message if initialization failed.
        already_exists: True if failed because .topicsync/ already exists.
    """

    topicsync_dir: Path | None
    config_path: Path | None
    db_path: Path | None
    was_reinitialized: bool
    success: bool = True
    error: str | None = None
    already_exists: bool = False

    @classmethod
    def create_error(cls, message: str, *, already_exists: bool = False) -> "InitResponse":
        """Create an error response.

        Args:
            message: Error message describing what went wrong.
            already_exists: True if error is because .topicsync/ already exists.

        Returns:
            InitResponse with success=False and all paths as None.
        """
        return cls(
            topicsync_dir=None,
            config_path=None,
            db_path=None,
            was_reinitialized=False,
            success=False,
            error=message,
            already_exists=already_exists,
        )


class InitUseCase:
    """Use case for initializing a new topicsync workspace.

    This creates the .topicsync/ directory structure and all required files.
    It's the first command users run before pulling topics.
    """

    def __init__(self, db_initializer: DatabaseInitializer):
        """Initialize the use case.

        Args:
            db_initializer: Database initializer for creating the local store.
        """
        self._db_initializer = db_initializer

    def execute(self, request: InitRequest) -> InitResponse:
        """Execute the init operation.

        Creates .topicsync/ directory with:
        - config.toml (commented default configuration)
        - topics.db (empty SQLite database with schema)

        Error handling contract:
            - KeyboardInterrupt/SystemExit are re-raised (user wants to exit)
            - All other exceptions are caught and converted to error responses
            - See topicsync.core.use_case_errors for the error handling pattern

        Args:
            request: Init request with workspace root and options

        Returns:
            InitResponse with paths to created files, or error information.
        """
        topicsync_dir = request.workspace_root / WORKSPACE_DIRNAME
        config_path = topicsync_dir / "config.toml"
        db_path = topicsync_dir / StoreConfig().filename

        try:
            was_reinitialized = False
            if topicsync_dir.exists():
                if not request.force:
                    return InitResponse.create_error(
                        f"Directory {topicsync_dir} already exists. "
                        "Use --force to reinitialize.",
                        already_exists=True,
                    )
                was_reinitialized = True
                # Start from an empty store
                db_path.unlink(missing_ok=True)

            topicsync_dir.mkdir(parents=True, exist_ok=True)
            create_default_config_file(config_path, base_url=request.base_url)
            self._db_initializer.init_database(db_path)
            logger.debug("Initialized workspace at %s", topicsync_dir)

            return InitResponse(
                topicsync_dir=topicsync_dir,
                config_path=config_path,
                db_path=db_path,
                was_reinitialized=was_reinitialized,
            )
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            log_use_case_error(e, "initialization")
            return InitResponse.create_error(format_error_message(e, "initialization"))
