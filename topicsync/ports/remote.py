"""Remote client port interface.

Defines the abstract interface the sync pipeline uses to talk to the
backend. Implementations should be in adapters/ layer.
"""

from typing import Any, Literal, Protocol

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


class RemoteClient(Protocol):
    """Protocol for issuing one logical request per resource path."""

    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        body: Any | None = None,
        auth: bool = True,
    ) -> bytes:
        """Issue a request and return the raw response body.

        Args:
            method: HTTP method.
            path: Resource path relative to the configured base URL
                (e.g. "topic/3/details").
            body: JSON-serializable request body, or None.
            auth: Attach the bearer credential. Requests needing auth are
                aborted before sending when no credential is available.

        Returns:
            Raw response body bytes (possibly empty).

        Raises:
            RequestConstructionError: If the request cannot be built.
            NotAuthenticatedError: If auth is required and no credential exists.
            TransportError: If the call fails or the status is not 2xx.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the client."""
        ...
