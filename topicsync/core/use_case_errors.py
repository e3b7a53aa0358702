"""Use case error handling utilities.

Provides consistent exception handling for the local use cases (init and
status). These return error responses rather than raising exceptions
(except for KeyboardInterrupt/SystemExit).

Design principles:
1. KeyboardInterrupt and SystemExit are always re-raised (never caught)
2. SyncError subclasses are domain errors with user-friendly messages
3. Unexpected exceptions are logged and converted to generic error messages
4. Use cases return responses with success/error fields

The sync pipeline itself does not follow this contract: its operations
raise SyncError and the CLI converts them.
"""

import logging
import sqlite3

from topicsync.domain.exceptions import SyncError

logger = logging.getLogger(__name__)


def format_error_message(exception: Exception, operation_name: str) -> str:
    """Format an exception into a user-friendly error message.

    - SyncError: Uses the error's message directly
    - sqlite3.Error: Points at the local database
    - OSError: Adds context about permissions/disk space
    - ValueError/RuntimeError: Includes exception message with operation context
    - Other exceptions: Returns a generic "internal error" message

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for error messages (e.g., "status check").

    Returns:
        User-friendly error message string.

    Example:
        try:
            result = self._do_work()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            error_msg = format_error_message(e, "initialization")
            return self._create_error_response(error_msg)
    """
    if isinstance(exception, SyncError):
        return exception.message
    elif isinstance(exception, sqlite3.Error):
        return f"Database error during {operation_name}: {exception}"
    elif isinstance(exception, OSError):
        return (
            f"I/O error: {exception}. "
            "Check file permissions, disk space, and filesystem access."
        )
    elif isinstance(exception, (ValueError, RuntimeError)):
        return f"{operation_name.capitalize()} error: {exception}"
    else:
        return f"Internal error during {operation_name}. Check logs for details."


def log_use_case_error(exception: Exception, operation_name: str) -> None:
    """Log an exception from a use case with appropriate severity.

    - SyncError: ERROR level (expected domain errors)
    - sqlite3.Error/OSError/ValueError/RuntimeError: ERROR level
    - Other exceptions: EXCEPTION level (includes traceback)

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for log messages.
    """
    if isinstance(exception, SyncError):
        logger.error(str(exception))
    elif isinstance(exception, (sqlite3.Error, OSError)):
        logger.error(f"I/O error during {operation_name}: {exception}")
    elif isinstance(exception, (ValueError, RuntimeError)):
        logger.error(f"Error during {operation_name}: {exception}")
    else:
        logger.exception(f"Unexpected error during {operation_name}")
