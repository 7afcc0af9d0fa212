"""GraphQL request execution and cursor pagination."""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import BaseModel, Field

from ..errors import QueryError

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000


class PaginatedQuery(BaseModel):
    """
    A GraphQL operation template.

    ``connection`` is the dot path under ``data`` to the connection object
    (e.g. ``snappableConnection``). When omitted, the first field of
    ``data`` is used. The template is never mutated; each fetch works on a
    fresh copy of ``variables``.
    """

    operation_name: str
    document: str
    variables: dict[str, Any] = Field(default_factory=dict)
    page_size: int = DEFAULT_PAGE_SIZE
    connection: str | None = None
    paginated: bool = True

    model_config = {"frozen": True}


class Page(BaseModel):
    """One page of a GraphQL connection."""

    nodes: list[dict[str, Any]] = Field(default_factory=list)
    end_cursor: str | None = None
    has_next_page: bool = False

    @classmethod
    def from_connection(cls, connection: Any) -> Page:
        """
        Read nodes and ``pageInfo`` from a connection object.

        Both ``edges[].node`` and ``nodes`` shapes are accepted. A missing or
        malformed ``pageInfo`` means there are no more pages.
        """
        if not isinstance(connection, dict):
            return cls()

        nodes: list[dict[str, Any]] = []
        edges = connection.get("edges")
        if isinstance(edges, list):
            for edge in edges:
                if isinstance(edge, dict) and isinstance(edge.get("node"), dict):
                    nodes.append(edge["node"])
        elif isinstance(connection.get("nodes"), list):
            nodes = [n for n in connection["nodes"] if isinstance(n, dict)]

        page_info = connection.get("pageInfo")
        if not isinstance(page_info, dict):
            return cls(nodes=nodes)

        end_cursor = page_info.get("endCursor")
        has_next = page_info.get("hasNextPage") is True and bool(end_cursor)
        return cls(
            nodes=nodes,
            end_cursor=end_cursor if isinstance(end_cursor, str) else None,
            has_next_page=has_next,
        )


@dataclass
class QueryResult:
    """Nodes collected by a fetch, plus any errors that stopped it early."""

    nodes: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    pages: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def raise_for_errors(self) -> None:
        """Raise QueryError if the fetch stopped on an error."""
        if self.errors:
            raise QueryError("GraphQL query failed", self.errors)


def _error_messages(payload: Any) -> list[str]:
    errors = payload.get("errors") if isinstance(payload, dict) else None
    if not errors:
        return []
    if not isinstance(errors, list):
        return [str(errors)]
    messages = []
    for error in errors:
        if isinstance(error, dict):
            messages.append(str(error.get("message") or error))
        else:
            messages.append(str(error))
    return messages


def execute(
    client: httpx.Client,
    endpoint: str,
    headers: dict[str, str],
    operation_name: str,
    document: str,
    variables: dict[str, Any] | None = None,
) -> tuple[dict[str, Any] | None, list[str]]:
    """
    POST one GraphQL operation.

    Never raises for HTTP, transport or GraphQL failures; they come back as
    error messages alongside whatever ``data`` the server returned.

    Returns:
        Tuple of (``data`` object or None, list of error messages)
    """
    body = {"operationName": operation_name, "variables": variables or {}, "query": document}

    try:
        response = client.post(endpoint, json=body, headers=headers)
    except httpx.HTTPError as e:
        logger.error(f"Request to {endpoint} failed: {e}")
        return None, [f"{type(e).__name__}: {e}"]

    try:
        payload = response.json()
    except ValueError:
        payload = None

    errors = _error_messages(payload)
    if response.status_code >= 400 and not errors:
        errors = [f"HTTP {response.status_code}: {response.text[:500]}"]
    elif payload is None and not errors:
        errors = [f"Invalid JSON response from {endpoint}"]

    data = payload.get("data") if isinstance(payload, dict) else None
    if errors:
        logger.error(f"{operation_name} returned errors: {'; '.join(errors)}")
    return (data if isinstance(data, dict) else None), errors


def _resolve_connection(data: dict[str, Any] | None, path: str | None) -> Any:
    if not data:
        return None
    if path:
        current: Any = data
        for part in path.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
        return current
    return next(iter(data.values()), None)


def fetch_all(
    client: httpx.Client,
    endpoint: str,
    headers: dict[str, str],
    query: PaginatedQuery,
    variables: dict[str, Any] | None = None,
    page_size: int | None = None,
) -> QueryResult:
    """
    Fetch every page of a connection and return the concatenated nodes.

    Node order is preserved as returned by the server. Pagination stops
    when ``pageInfo.hasNextPage`` is false or absent, or when a response
    carries errors; nodes gathered up to that point are kept.

    Args:
        client: HTTP client
        endpoint: GraphQL endpoint URL
        headers: Request headers (including Authorization)
        query: Operation template
        variables: Extra variables merged over the template's
        page_size: Override for the template's page size

    Returns:
        QueryResult with nodes, errors and the number of pages fetched
    """
    run_vars = copy.deepcopy(query.variables)
    run_vars.update(copy.deepcopy(variables or {}))
    if query.paginated:
        run_vars["first"] = page_size or query.page_size

    result = QueryResult()

    while True:
        data, errors = execute(
            client, endpoint, headers, query.operation_name, query.document, run_vars
        )
        page = Page.from_connection(_resolve_connection(data, query.connection))
        result.pages += 1
        result.nodes.extend(page.nodes)
        logger.debug(
            f"{query.operation_name}: page {result.pages} returned {len(page.nodes)} nodes "
            f"({len(result.nodes)} total)"
        )

        if errors:
            result.errors.extend(errors)
            break
        if not query.paginated or not page.has_next_page:
            break

        run_vars["after"] = page.end_cursor

    return result


def fetch_one(
    client: httpx.Client,
    endpoint: str,
    headers: dict[str, str],
    query: PaginatedQuery,
    variables: dict[str, Any] | None = None,
) -> tuple[Any, list[str]]:
    """Run a non-paginated query and return the object at ``query.connection``."""
    run_vars = copy.deepcopy(query.variables)
    run_vars.update(copy.deepcopy(variables or {}))
    data, errors = execute(
        client, endpoint, headers, query.operation_name, query.document, run_vars
    )
    return _resolve_connection(data, query.connection), errors
