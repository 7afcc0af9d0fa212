"""Shared fixtures for RSC reporting tests."""

from typing import Any

import httpx
import pytest

from rsc_reporting.session import RscSession, SessionContext

BASE_URL = "https://acme.my.rubrik.com"
INSTANCE = "acme.my.rubrik.com"
GRAPHQL_URL = f"{BASE_URL}/api/graphql"
TOKEN_URL = f"{BASE_URL}/api/client_token"


def connection_page(
    field: str,
    nodes: list[dict[str, Any]],
    end_cursor: str | None = None,
    has_next: bool = False,
    shape: str = "nodes",
) -> httpx.Response:
    """GraphQL response carrying one page of a connection."""
    connection: dict[str, Any] = {
        "pageInfo": {"endCursor": end_cursor, "hasNextPage": has_next},
    }
    if shape == "edges":
        connection["edges"] = [{"node": node} for node in nodes]
    else:
        connection["nodes"] = nodes
    return httpx.Response(200, json={"data": {field: connection}})


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep RSC_* settings and SDK credentials on this machine out of tests."""
    monkeypatch.delenv("RSC_SDK_SERVICE_ACCOUNT_FILE", raising=False)
    for name in ("RSC_URL", "RSC_SERVICE_ACCOUNT_FILE", "RSC_SECRETS_DIR", "RSC_ENCRYPTION_KEY"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RSC_SDK_CREDENTIAL_FILE", str(tmp_path / "no-sdk-file.json"))


@pytest.fixture
def context() -> SessionContext:
    return SessionContext.for_base_url(BASE_URL, access_token="test-token")


@pytest.fixture
def session(context):
    """Connected session with a small page size."""
    rsc = RscSession(context, page_size=2)
    yield rsc
    rsc.close()


@pytest.fixture
def secrets_dir(tmp_path):
    return tmp_path / "secrets"
