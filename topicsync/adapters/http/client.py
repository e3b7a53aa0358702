"""httpx adapter implementing the RemoteClient protocol."""

import json
import logging
from typing import Any, Self

import httpx

from topicsync.domain.exceptions import (
    NotAuthenticatedError,
    RequestConstructionError,
    TransportError,
)
from topicsync.ports.auth import CredentialProvider
from topicsync.ports.remote import HttpMethod

logger = logging.getLogger(__name__)


class HttpxRemoteClient:
    """RemoteClient backed by a shared httpx.AsyncClient.

    Resource paths are resolved against ``base_url``; every authenticated
    request carries ``Authorization: Bearer <token>``.

    Example:
        async with HttpxRemoteClient("https://api.example.com/", creds) as remote:
            body = await remote.request("GET", "topic")
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialProvider,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the backend.
            credentials: Source of the bearer token.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests).
        """
        self.base_url = base_url
        self.credentials = credentials
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            try:
                self._client = httpx.AsyncClient(
                    base_url=self.base_url,
                    timeout=self.timeout,
                    transport=self._transport,
                )
            except httpx.InvalidURL as e:
                raise RequestConstructionError(
                    f"Invalid base URL '{self.base_url}': {e}",
                    hint="Check [remote] base_url in .topicsync/config.toml",
                ) from e
        return self._client

    def _headers(self, body: Any | None, auth: bool) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if body is not None:
            headers["Content-Type"] = "application/json"
        if auth:
            token = self.credentials.bearer_token()
            if not token:
                raise NotAuthenticatedError(
                    "No credentials available for the request",
                    hint="Set the token environment variable named in [auth] token_env",
                )
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        body: Any | None = None,
        auth: bool = True,
    ) -> bytes:
        """Issue a request and return the raw response body.

        Raises:
            RequestConstructionError: If the path or body is invalid.
            NotAuthenticatedError: If auth is required and there is no token.
            TransportError: If the call fails or the status is not 2xx.
        """
        if not path or path.startswith("/") or "://" in path:
            raise RequestConstructionError(f"Invalid resource path {path!r}")

        content: bytes | None = None
        if body is not None:
            try:
                content = json.dumps(body).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise RequestConstructionError(
                    f"Cannot encode request body for {method} {path}: {e}"
                ) from e

        headers = self._headers(body, auth)
        client = self._get_client()

        try:
            request = client.build_request(method, path, content=content, headers=headers)
        except httpx.InvalidURL as e:
            raise RequestConstructionError(f"Invalid URL for {path!r}: {e}") from e

        logger.debug("%s %s", method, request.url)
        try:
            response = await client.send(request)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            raise TransportError(
                f"{method} {path} failed with HTTP {status_code}",
                status_code=status_code,
                hint=_hint_for_status(status_code),
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"{method} {path} failed: {e}",
                hint="Check [remote] base_url and your network connection",
            ) from e
        return response.content

    async def aclose(self) -> None:
        """Close the underlying httpx client. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        await self.aclose()


def _hint_for_status(status_code: int) -> str | None:
    if status_code in (401, 403):
        return "Your token was rejected; refresh it and try again"
    if status_code == 404:
        return "The resource does not exist on the server"
    if status_code >= 500:
        return "The server failed; try again later"
    return None
