"""GraphQL execution and query documents."""

from .executor import (
    DEFAULT_PAGE_SIZE,
    Page,
    PaginatedQuery,
    QueryResult,
    execute,
    fetch_all,
    fetch_one,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Page",
    "PaginatedQuery",
    "QueryResult",
    "execute",
    "fetch_all",
    "fetch_one",
]
