"""Tests for connecting to RSC: URL/credential resolution, auth retry and cleanup."""

import json

import httpx
import pytest
import respx

from rsc_reporting.errors import AuthError
from rsc_reporting.session import (
    ConnectionStatus,
    ConnectOptions,
    Credential,
    classify_auth_error,
    connect,
    normalize_base_url,
)
from rsc_reporting.session.credentials import credential_file_path, default_store, url_file_path

from .conftest import BASE_URL, INSTANCE, TOKEN_URL

INVALID_CLIENT_MESSAGE = (
    "Invalid client_id or client_secret. Check the service account under "
    "Settings > Users > Service Accounts and connect again with valid credentials."
)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def options(secrets_dir):
    return ConnectOptions(
        secrets_dir=secrets_dir,
        credential=Credential(client_id="client|abc-123", client_secret="s3cret"),
        url="acme.my.rubrik.com/api/graphql",
        interactive=False,
    )


def _connect(options, sleeps, prompt=None):
    return connect(options, prompt=prompt, sleep=sleeps.append)


def _token_ok():
    return httpx.Response(200, json={"access_token": "tok-1", "session_id": "s"})


def _token_error(message: str):
    return httpx.Response(401, json={"errors": [{"message": message}]})


@respx.mock
def test_connect_success(options, sleeps, secrets_dir):
    route = respx.post(TOKEN_URL).mock(return_value=_token_ok())

    result = _connect(options, sleeps)

    assert result.status is ConnectionStatus.CONNECTED
    assert result.message == f"Connected to {INSTANCE}"
    assert result.session is not None
    assert result.session.context.access_token == "tok-1"
    assert result.session.context.graphql_endpoint == f"{BASE_URL}/api/graphql"
    assert json.loads(route.calls[0].request.content) == {
        "client_secret": "s3cret",
        "client_id": "client|abc-123",
    }
    assert sleeps == []
    assert url_file_path(secrets_dir).read_text().strip() == BASE_URL
    assert credential_file_path(secrets_dir, INSTANCE).exists()
    result.session.close()


@respx.mock
def test_auth_retry_then_success_makes_two_posts(options, sleeps):
    route = respx.post(TOKEN_URL).mock(
        side_effect=[_token_error("temporarily unavailable"), _token_ok()]
    )

    result = _connect(options, sleeps)

    assert result.status is ConnectionStatus.CONNECTED
    assert route.call_count == 2
    assert sleeps == [options.retry_delay]
    result.session.close()


@respx.mock
def test_permission_denied_is_rewritten(options, sleeps, secrets_dir):
    route = respx.post(TOKEN_URL).mock(
        side_effect=[
            _token_error("PERMISSION_DENIED: client not authorized"),
            _token_error("PERMISSION_DENIED: client not authorized"),
        ]
    )

    result = _connect(options, sleeps)

    assert result.status is ConnectionStatus.DISCONNECTED
    assert result.message == INVALID_CLIENT_MESSAGE
    assert "PERMISSION_DENIED" not in result.message
    assert result.session is None
    assert route.call_count == 2
    # Credential saved this run is removed when it fails to authenticate
    assert not credential_file_path(secrets_dir, INSTANCE).exists()
    with pytest.raises(AuthError):
        result.require()


@respx.mock
def test_failed_connect_restores_existing_credential(options, sleeps, secrets_dir):
    saved = credential_file_path(secrets_dir, INSTANCE)
    store = default_store(None)
    store.save(saved, Credential(client_id="good", client_secret="good-secret"))
    before = saved.read_bytes()
    respx.post(TOKEN_URL).mock(
        side_effect=[_token_error("PERMISSION_DENIED"), _token_error("PERMISSION_DENIED")]
    )

    result = _connect(options, sleeps)

    assert result.status is ConnectionStatus.DISCONNECTED
    assert saved.read_bytes() == before
    assert store.load(saved).client_id == "good"


@respx.mock
def test_saved_credential_wins_over_sdk_file(tmp_path, secrets_dir, sleeps, monkeypatch):
    url_file = url_file_path(secrets_dir)
    url_file.parent.mkdir(parents=True)
    url_file.write_text(BASE_URL + "\n")
    saved = credential_file_path(secrets_dir, INSTANCE)
    default_store(None).save(saved, Credential(client_id="client|saved", client_secret="x"))
    before = saved.read_bytes()
    sdk_file = tmp_path / "rsc_service_account.json"
    sdk_file.write_text(
        json.dumps(
            {
                "client_id": "client|sdk",
                "client_secret": "sdk-secret",
                "access_token_uri": "https://other.my.rubrik.com/api/client_token",
            }
        )
    )
    monkeypatch.setenv("RSC_SDK_SERVICE_ACCOUNT_FILE", str(sdk_file))
    route = respx.post(TOKEN_URL).mock(return_value=_token_ok())

    result = _connect(ConnectOptions(secrets_dir=secrets_dir, interactive=False), sleeps)

    assert result.connected
    assert result.session.context.base_url == BASE_URL
    assert json.loads(route.calls[0].request.content)["client_id"] == "client|saved"
    assert saved.read_bytes() == before
    result.session.close()


@respx.mock
def test_unknown_error_passes_through_verbatim(options, sleeps):
    respx.post(TOKEN_URL).mock(
        side_effect=[_token_error("Something odd happened"), _token_error("Something odd happened")]
    )

    result = _connect(options, sleeps)

    assert result.message == "Something odd happened"


@respx.mock
def test_unreachable_saved_url_is_removed(secrets_dir, sleeps):
    url_file = url_file_path(secrets_dir)
    url_file.parent.mkdir(parents=True)
    url_file.write_text(BASE_URL + "\n")
    respx.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("no route to host"))
    respx.get(host=INSTANCE).mock(side_effect=httpx.ConnectError("no route to host"))
    options = ConnectOptions(
        secrets_dir=secrets_dir,
        credential=Credential(client_id="abc-123", client_secret="s3cret"),
        interactive=False,
    )

    result = _connect(options, sleeps)

    assert result.status is ConnectionStatus.DISCONNECTED
    assert result.message.endswith(f"({BASE_URL} is not reachable; saved URL removed)")
    assert not url_file.exists()


@respx.mock
def test_reachable_saved_url_is_kept(secrets_dir, sleeps):
    url_file = url_file_path(secrets_dir)
    url_file.parent.mkdir(parents=True)
    url_file.write_text(BASE_URL + "\n")
    respx.post(TOKEN_URL).mock(return_value=_token_error("invalid_client"))
    respx.get(host=INSTANCE).mock(return_value=httpx.Response(200, text="<html></html>"))
    options = ConnectOptions(
        secrets_dir=secrets_dir,
        credential=Credential(client_id="abc-123", client_secret="s3cret"),
        interactive=False,
    )

    result = _connect(options, sleeps)

    assert result.message == INVALID_CLIENT_MESSAGE
    assert url_file.exists()


@respx.mock
def test_saved_url_and_credential_are_reused(options, sleeps, secrets_dir):
    route = respx.post(TOKEN_URL).mock(side_effect=[_token_ok(), _token_ok()])
    first = _connect(options, sleeps)
    first.session.close()

    second = _connect(ConnectOptions(secrets_dir=secrets_dir, interactive=False), sleeps)

    assert second.status is ConnectionStatus.CONNECTED
    assert json.loads(route.calls[1].request.content)["client_id"] == "client|abc-123"
    second.session.close()


@respx.mock
def test_service_account_file_supplies_url_and_credential(tmp_path, secrets_dir, sleeps):
    account_file = tmp_path / "sa.json"
    account_file.write_text(
        json.dumps(
            {
                "client_id": "client|from-file",
                "client_secret": "file-secret",
                "name": "reporting",
                "access_token_uri": f"{BASE_URL}/api/client_token",
            }
        )
    )
    route = respx.post(TOKEN_URL).mock(return_value=_token_ok())
    options = ConnectOptions(
        secrets_dir=secrets_dir, service_account_file=account_file, interactive=False
    )

    result = _connect(options, sleeps)

    assert result.connected
    assert json.loads(route.calls[0].request.content)["client_id"] == "client|from-file"
    result.session.close()


@respx.mock
def test_sdk_service_account_is_imported(tmp_path, secrets_dir, sleeps, monkeypatch):
    sdk_file = tmp_path / "rsc_service_account.json"
    sdk_file.write_text(
        json.dumps(
            {
                "client_id": "client|sdk",
                "client_secret": "sdk-secret",
                "access_token_uri": f"{BASE_URL}/api/client_token",
            }
        )
    )
    monkeypatch.setenv("RSC_SDK_SERVICE_ACCOUNT_FILE", str(sdk_file))
    route = respx.post(TOKEN_URL).mock(return_value=_token_ok())

    result = _connect(ConnectOptions(secrets_dir=secrets_dir, interactive=False), sleeps)

    assert result.connected
    assert json.loads(route.calls[0].request.content)["client_id"] == "client|sdk"
    result.session.close()


def test_invalid_service_account_file(tmp_path, secrets_dir, sleeps):
    account_file = tmp_path / "sa.json"
    account_file.write_text("{not json")
    options = ConnectOptions(
        secrets_dir=secrets_dir, service_account_file=account_file, interactive=False
    )

    result = _connect(options, sleeps)

    assert result.status is ConnectionStatus.DISCONNECTED
    assert "Invalid service account file" in result.message


def test_no_url_without_prompt(secrets_dir, sleeps):
    result = _connect(ConnectOptions(secrets_dir=secrets_dir, interactive=False), sleeps)

    assert result.status is ConnectionStatus.DISCONNECTED
    assert "No RSC URL" in result.message


@respx.mock
def test_prompt_supplies_missing_values(secrets_dir, sleeps):
    answers = {
        "RSC URL": "https://acme.my.rubrik.com/",
        "Client ID": "client|typed",
        "Client Secret": "typed-secret",
    }
    asked = []

    def prompt(label, secret):
        asked.append((label, secret))
        return next(v for k, v in answers.items() if label.startswith(k))

    respx.post(TOKEN_URL).mock(return_value=_token_ok())

    result = _connect(ConnectOptions(secrets_dir=secrets_dir), sleeps, prompt=prompt)

    assert result.connected
    assert [secret for _, secret in asked] == [False, False, True]
    assert credential_file_path(secrets_dir, INSTANCE).exists()
    result.session.close()


@pytest.mark.parametrize(
    "raw",
    [
        "https://acme.my.rubrik.com/api/graphql",
        "https://acme.my.rubrik.com/api/client_token",
        "acme.my.rubrik.com",
        "  'https://acme.my.rubrik.com/'  ",
        "https://acme.my.rubrik.com/api/graphql/",
    ],
)
def test_normalize_base_url(raw):
    assert normalize_base_url(raw) == BASE_URL


def test_credential_strips_client_prefix():
    credential = Credential(client_id="client|abc", client_secret="hunter2")

    assert credential.client_id == "abc"
    assert credential.token_request_body()["client_id"] == "client|abc"
    assert "hunter2" not in repr(credential)


@pytest.mark.parametrize(
    ("raw", "expected_start"),
    [
        ("PERMISSION_DENIED: nope", "Invalid client_id"),
        ("permission_denied", "Invalid client_id"),
        ("IP_NOT_ALLOWED for 1.2.3.4", "Connection rejected by the RSC IP allow list"),
        ("Gateway timeout", "Gateway timeout"),
    ],
)
def test_classify_auth_error(raw, expected_start):
    assert classify_auth_error(raw).startswith(expected_start)
