"""Tests for GraphQL execution and cursor pagination."""

import json

import httpx
import pytest
import respx

from rsc_reporting.errors import QueryError
from rsc_reporting.graphql import PaginatedQuery, Page, fetch_all, fetch_one

from .conftest import GRAPHQL_URL, connection_page

HEADERS = {"Authorization": "Bearer test-token", "Content-Type": "application/json"}

QUERY = PaginatedQuery(
    operation_name="ObjectListQuery",
    document="query ObjectListQuery($first: Int, $after: String) { snappableConnection { nodes { id } } }",
    variables={"sortOrder": "DESC"},
    connection="snappableConnection",
)


def _nodes(*ids: str) -> list[dict]:
    return [{"id": i} for i in ids]


def _variables(call) -> dict:
    return json.loads(call.request.content)["variables"]


@pytest.fixture
def client():
    with httpx.Client() as c:
        yield c


@respx.mock
def test_fetch_all_concatenates_pages_in_order(client):
    route = respx.post(GRAPHQL_URL).mock(
        side_effect=[
            connection_page("snappableConnection", _nodes("a", "b"), "c1", True),
            connection_page("snappableConnection", _nodes("c", "d"), "c2", True),
            connection_page("snappableConnection", _nodes("e"), "c3", False),
        ]
    )

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY, page_size=2)

    assert [n["id"] for n in result] == ["a", "b", "c", "d", "e"]
    assert result.ok
    assert result.pages == 3
    assert route.call_count == 3
    assert _variables(route.calls[0]) == {"sortOrder": "DESC", "first": 2}
    assert _variables(route.calls[1])["after"] == "c1"
    assert _variables(route.calls[2])["after"] == "c2"


@respx.mock
def test_fetch_all_reads_edges_shape(client):
    respx.post(GRAPHQL_URL).mock(
        return_value=connection_page("snappableConnection", _nodes("x", "y"), shape="edges")
    )

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY)

    assert [n["id"] for n in result] == ["x", "y"]


@respx.mock
def test_fetch_all_empty_page(client):
    route = respx.post(GRAPHQL_URL).mock(return_value=connection_page("snappableConnection", []))

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY)

    assert result.nodes == []
    assert result.ok
    assert route.call_count == 1


@respx.mock
def test_missing_page_info_stops_after_one_page(client):
    route = respx.post(GRAPHQL_URL).mock(
        return_value=httpx.Response(
            200, json={"data": {"snappableConnection": {"nodes": _nodes("a")}}}
        )
    )

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY)

    assert len(result) == 1
    assert route.call_count == 1


@respx.mock
def test_errors_stop_pagination_and_keep_partial_nodes(client):
    route = respx.post(GRAPHQL_URL).mock(
        side_effect=[
            connection_page("snappableConnection", _nodes("a", "b"), "c1", True),
            httpx.Response(
                200,
                json={
                    "data": {
                        "snappableConnection": {
                            "nodes": _nodes("c"),
                            "pageInfo": {"endCursor": "c2", "hasNextPage": True},
                        }
                    },
                    "errors": [{"message": "Timeout while fetching page"}],
                },
            ),
        ]
    )

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY)

    assert [n["id"] for n in result] == ["a", "b", "c"]
    assert result.errors == ["Timeout while fetching page"]
    assert not result.ok
    assert route.call_count == 2


@respx.mock
def test_http_error_is_returned_not_raised(client):
    respx.post(GRAPHQL_URL).mock(return_value=httpx.Response(500, text="upstream exploded"))

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY)

    assert result.nodes == []
    assert result.errors[0].startswith("HTTP 500")


@respx.mock
def test_transport_error_is_returned_not_raised(client):
    respx.post(GRAPHQL_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY)

    assert result.nodes == []
    assert "ConnectError" in result.errors[0]


@respx.mock
def test_raise_for_errors(client):
    respx.post(GRAPHQL_URL).mock(
        return_value=httpx.Response(200, json={"errors": [{"message": "PERMISSION_DENIED"}]})
    )

    result = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY)

    with pytest.raises(QueryError, match="PERMISSION_DENIED"):
        result.raise_for_errors()


@respx.mock
def test_fetch_all_is_repeatable_and_leaves_template_untouched(client):
    def pages():
        return [
            connection_page("snappableConnection", _nodes("a", "b"), "c1", True),
            connection_page("snappableConnection", _nodes("c"), None, False),
        ]

    respx.post(GRAPHQL_URL).mock(side_effect=pages() + pages())

    first = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY, variables={"filter": {"x": 1}})
    second = fetch_all(client, GRAPHQL_URL, HEADERS, QUERY, variables={"filter": {"x": 1}})

    assert first.nodes == second.nodes
    assert QUERY.variables == {"sortOrder": "DESC"}


def test_has_next_requires_end_cursor():
    page = Page.from_connection(
        {"nodes": _nodes("a"), "pageInfo": {"endCursor": None, "hasNextPage": True}}
    )
    assert page.has_next_page is False


@respx.mock
def test_fetch_one_returns_object_without_paging_variables(client):
    query = PaginatedQuery(
        operation_name="ThreatHuntResultQuery",
        document="query ThreatHuntResultQuery($huntId: String!) { threatHuntResult { huntId } }",
        connection="threatHuntResult",
        paginated=False,
    )
    route = respx.post(GRAPHQL_URL).mock(
        return_value=httpx.Response(200, json={"data": {"threatHuntResult": {"huntId": "h1"}}})
    )

    result, errors = fetch_one(client, GRAPHQL_URL, HEADERS, query, {"huntId": "h1"})

    assert result == {"huntId": "h1"}
    assert errors == []
    assert _variables(route.calls[0]) == {"huntId": "h1"}
