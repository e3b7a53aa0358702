"""Credential provider port.

Authentication token management lives outside topicsync; the pipeline only
reads the current credential through this interface.
"""

from typing import Protocol


class CredentialProvider(Protocol):
    """Protocol for resolving the signed-in user's credentials."""

    def bearer_token(self) -> str | None:
        """Return the bearer token, or None if nobody is signed in."""
        ...

    def current_user_id(self) -> str | None:
        """Return the signed-in user's id, or None if nobody is signed in."""
        ...
