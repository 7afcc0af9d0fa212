"""Authenticated RSC session threaded through every fetch call."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import NotConnectedError
from ..graphql.executor import DEFAULT_PAGE_SIZE, PaginatedQuery, QueryResult, fetch_all, fetch_one
from .context import ConnectionStatus, SessionContext

logger = logging.getLogger(__name__)


class RscSession:
    """
    Client for the RSC GraphQL endpoint of one connected instance.

    The ``SessionContext`` is read-only and safe to share between threads.
    Pagination state is created per fetch call, so one session can serve
    several independent fetches. No token refresh is attempted: once the
    bearer token expires server-side, reconnect to get a new session.
    """

    def __init__(
        self,
        context: SessionContext,
        timeout: float = 30.0,
        verify: bool = True,
        page_size: int = DEFAULT_PAGE_SIZE,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the session.

        Args:
            context: Connection details from a successful authentication
            timeout: Request timeout in seconds
            verify: Verify TLS certificates
            page_size: Default number of nodes per page
            client: Optional pre-built HTTP client (shared with the connect step)
        """
        self.context = context
        self.page_size = page_size
        self.status = context.status
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout), verify=verify)

    @property
    def instance(self) -> str:
        return self.context.instance

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED and not self._client.is_closed

    def require_connected(self) -> None:
        """Abort the calling operation unless this session is usable."""
        if not self.connected:
            raise NotConnectedError(
                f"Session for {self.context.instance} is {self.status.value}. "
                "Run connect() to authenticate again."
            )

    def object_url(self, path: str) -> str:
        """Absolute URL in the RSC web UI for a relative object path."""
        return f"{self.context.base_url}/{path.lstrip('/')}"

    def fetch_all(
        self,
        query: PaginatedQuery,
        variables: dict[str, Any] | None = None,
        page_size: int | None = None,
    ) -> QueryResult:
        """Fetch every page of *query* with this session's credentials."""
        self.require_connected()
        return fetch_all(
            self._client,
            self.context.graphql_endpoint,
            self.context.headers,
            query,
            variables=variables,
            page_size=page_size or self.page_size,
        )

    def fetch_one(self, query: PaginatedQuery, variables: dict[str, Any] | None = None) -> Any:
        """
        Run a single, non-paginated query.

        Returns:
            Tuple of (object at ``query.connection``, list of error messages)
        """
        self.require_connected()
        return fetch_one(
            self._client,
            self.context.graphql_endpoint,
            self.context.headers,
            query,
            variables=variables,
        )

    def disconnect(self) -> None:
        """Mark the session disconnected and close the HTTP client."""
        self.status = ConnectionStatus.DISCONNECTED
        self.close()

    def close(self) -> None:
        """Close the HTTP client."""
        if not self._client.is_closed:
            self._client.close()

    def __enter__(self) -> RscSession:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


def ensure_connected(session: RscSession | None) -> RscSession:
    """Connectivity guard for fetch functions."""
    if session is None:
        raise NotConnectedError()
    session.require_connected()
    return session
