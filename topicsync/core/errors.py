"""CLI error handling with actionable hints.

Provides consistent error formatting and common error factory functions
for all topicsync CLI commands.
"""

from typing import NoReturn

import click

from topicsync.domain.exceptions import SyncError


class TopicSyncCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Provides consistent error formatting across all topicsync commands with
    optional hints that guide users toward resolving the issue.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise TopicSyncCliError(
            "Not in a topicsync workspace",
            hint="Run 'topicsync init' to create one"
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the error with message and optional hint.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
        """
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present.

        Returns:
            Formatted error message, with hint on a new line if provided.
        """
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg

    @classmethod
    def from_sync_error(cls, error: SyncError) -> "TopicSyncCliError":
        """Convert a pipeline failure into a CLI error."""
        return cls(f"{error.message} [{error.kind.value}]", hint=error.hint)


def workspace_not_found_error() -> NoReturn:
    """Raise error when not in a topicsync workspace.

    Raises:
        TopicSyncCliError: Always raises with initialization hint.
    """
    raise TopicSyncCliError(
        "Not in a topicsync workspace",
        hint="Run 'topicsync init' in your project directory to create one",
    )


def topic_not_cached_error(join_code: str) -> NoReturn:
    """Raise error when a join code is not in the local store.

    Args:
        join_code: The join code that was looked up.

    Raises:
        TopicSyncCliError: Always raises with pull hint.
    """
    raise TopicSyncCliError(
        f"No local topic with join code '{join_code}'",
        hint="Run 'topicsync pull' to refresh the local store",
    )


def not_leader_error(join_code: str) -> NoReturn:
    """Raise error when a non-leader tries to change a topic.

    Args:
        join_code: The topic's join code.

    Raises:
        TopicSyncCliError: Always raises.
    """
    raise TopicSyncCliError(
        f"Only the leader of topic '{join_code}' can do that",
        hint="Check that the user id environment variable is set to the leader's id",
    )


def question_not_cached_error(kind: str, question_id: int) -> NoReturn:
    """Raise error when a question id is not in the local store.

    Args:
        kind: "context" or "request".
        question_id: The missing question id.

    Raises:
        TopicSyncCliError: Always raises with refresh hint.
    """
    raise TopicSyncCliError(
        f"No local {kind} question with id {question_id}",
        hint="Run 'topicsync defaults' or 'topicsync pull' to refresh the local store",
    )
