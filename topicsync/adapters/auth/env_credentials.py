"""Credential providers.

Token management happens outside topicsync. The default provider reads the
current credential from environment variables whose names come from the
[auth] config section.
"""

import os
from collections.abc import Mapping


class EnvCredentialProvider:
    """Reads the bearer token and user id from environment variables.

    Values are read on every call, so a token refreshed in the environment
    is picked up without restarting. Empty values count as absent.
    """

    def __init__(
        self,
        token_env: str = "TOPICSYNC_TOKEN",
        user_id_env: str = "TOPICSYNC_USER_ID",
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.token_env = token_env
        self.user_id_env = user_id_env
        self._environ = os.environ if environ is None else environ

    def bearer_token(self) -> str | None:
        return self._environ.get(self.token_env) or None

    def current_user_id(self) -> str | None:
        return self._environ.get(self.user_id_env) or None


class StaticCredentialProvider:
    """Fixed credentials, for scripts and tests."""

    def __init__(self, token: str | None = None, user_id: str | None = None) -> None:
        self.token = token
        self.user_id = user_id

    def bearer_token(self) -> str | None:
        return self.token

    def current_user_id(self) -> str | None:
        return self.user_id
