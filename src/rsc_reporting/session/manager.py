"""Connect to Rubrik Security Cloud.

``connect()`` resolves the instance URL and service-account credential,
authenticates against ``/api/client_token`` and returns a
``ConnectionResult``. Authentication failures are reported in the result,
never raised, so callers decide how to react.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

import httpx
from pydantic import BaseModel, Field
from rich.prompt import Prompt

from ..config import RscSettings
from ..errors import ConfigError, CredentialStoreError
from ..graphql.executor import DEFAULT_PAGE_SIZE
from ..logging_utils import install_redaction
from .client import RscSession
from .context import (
    TOKEN_PATH,
    ConnectionResult,
    ConnectionStatus,
    Credential,
    SessionContext,
    instance_from_url,
    normalize_base_url,
)
from .credentials import (
    ServiceAccount,
    credential_file_path,
    default_store,
    find_sdk_service_account,
    load_service_account,
    read_url_file,
    url_file_path,
    write_url_file,
)

logger = logging.getLogger(__name__)

# (label, secret) -> entered value
PromptFn = Callable[[str, bool], str]

PROBE_TIMEOUT = 10.0

# Backend error substrings mapped to actionable messages. Checked in order;
# the backend wording is part of its contract and may change without notice.
AUTH_ERROR_MESSAGES: list[tuple[tuple[str, ...], str]] = [
    (
        ("ip_not_allowed", "ip allowlist", "allow list", "allowlist", "not in the whitelist"),
        "Connection rejected by the RSC IP allow list. Add this machine's public IP "
        "address under Settings > Security > IP Allowlist, or connect from an allowed network.",
    ),
    (
        ("permission_denied", "invalid_client", "invalid client"),
        "Invalid client_id or client_secret. Check the service account under "
        "Settings > Users > Service Accounts and connect again with valid credentials.",
    ),
]


def classify_auth_error(raw_message: str) -> str:
    """Rewrite known backend auth errors; pass anything else through verbatim."""
    lowered = raw_message.lower()
    for patterns, message in AUTH_ERROR_MESSAGES:
        if any(pattern in lowered for pattern in patterns):
            return message
    return raw_message


def rich_prompt(label: str, secret: bool) -> str:
    """Ask on the terminal, hiding input for secrets."""
    return Prompt.ask(label, password=secret).strip()


class ConnectOptions(BaseModel):
    """Inputs for a connect attempt."""

    secrets_dir: Path
    credential: Credential | None = None
    service_account_file: Path | None = None
    url: str | None = None
    encryption_key: str | None = Field(default=None, repr=False)
    retry_delay: float = 5.0
    timeout: float = 30.0
    verify_ssl: bool = True
    page_size: int = DEFAULT_PAGE_SIZE
    sdk_credential_file: Path | None = None
    interactive: bool = True

    @classmethod
    def from_settings(cls, settings: RscSettings, **overrides: object) -> ConnectOptions:
        """Build options from settings; keyword overrides win when not None."""
        values: dict[str, object] = {
            "secrets_dir": settings.secrets_dir,
            "service_account_file": settings.service_account_file,
            "url": settings.url,
            "encryption_key": settings.encryption_key,
            "retry_delay": settings.retry_delay,
            "timeout": settings.timeout,
            "verify_ssl": settings.verify_ssl,
            "page_size": settings.page_size,
            "sdk_credential_file": settings.sdk_credential_file,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)


class SessionManager:
    """Resolves connection parameters and authenticates one RSC instance."""

    def __init__(
        self,
        options: ConnectOptions,
        prompt: PromptFn | None = None,
        sleep: Callable[[float], None] = time.sleep,
        client: httpx.Client | None = None,
    ):
        """
        Initialize the manager.

        Args:
            options: Connect inputs
            prompt: Interactive prompt, used only when nothing else supplies a value
            sleep: Wait function used between the two auth attempts
            client: Optional HTTP client; one is created from the options otherwise
        """
        self.options = options
        self.prompt = prompt or rich_prompt
        self.sleep = sleep
        self._client = client
        self._sdk_account: ServiceAccount | None = None

    @property
    def secrets_dir(self) -> Path:
        return self.options.secrets_dir.expanduser()

    @property
    def client(self) -> httpx.Client:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                timeout=httpx.Timeout(self.options.timeout),
                verify=self.options.verify_ssl,
            )
        return self._client

    def _ask(self, label: str, secret: bool = False) -> str | None:
        if not self.options.interactive:
            return None
        value = self.prompt(label, secret)
        return value or None

    def _service_account(self) -> ServiceAccount | None:
        path = self.options.service_account_file
        if path is None:
            return None
        return load_service_account(path.expanduser())

    def _sdk_service_account(self) -> ServiceAccount | None:
        """Credentials left by the RSC SDK, consulted just before prompting."""
        if self._sdk_account is None:
            path = find_sdk_service_account(self.options.sdk_credential_file)
            if path is None:
                return None
            logger.info(f"Importing RSC SDK credentials from {path}")
            self._sdk_account = load_service_account(path)
        return self._sdk_account

    def _resolve_url(self, account: ServiceAccount | None) -> tuple[str | None, bool]:
        """Return (normalized base URL, came_from_url_file)."""
        if self.options.url:
            return normalize_base_url(self.options.url), False
        if account is not None and account.base_url:
            return account.base_url, False

        saved = read_url_file(url_file_path(self.secrets_dir))
        if saved:
            logger.debug("Using saved RSC URL")
            return normalize_base_url(saved), True

        sdk = self._sdk_service_account()
        if sdk is not None and sdk.base_url:
            return sdk.base_url, False

        entered = self._ask("RSC URL (e.g. https://acme.my.rubrik.com)")
        return (normalize_base_url(entered) if entered else None), False

    def _resolve_credential(
        self, account: ServiceAccount | None, instance: str
    ) -> tuple[Credential | None, bool]:
        """Return (credential, needs_saving)."""
        if self.options.credential is not None:
            return self.options.credential, True
        if account is not None:
            return account.credential, True

        path = credential_file_path(self.secrets_dir, instance)
        if path.exists():
            try:
                credential = default_store(self.options.encryption_key).load(path)
                logger.debug(f"Loaded saved credential for {instance}")
                return credential, False
            except CredentialStoreError as e:
                logger.warning(f"{e}. Prompting for the credential instead.")

        sdk = self._sdk_service_account()
        if sdk is not None:
            return sdk.credential, True

        client_id = self._ask(f"Client ID for {instance}")
        client_secret = self._ask(f"Client Secret for {instance}", secret=True)
        if not client_id or not client_secret:
            return None, False
        return Credential(client_id=client_id, client_secret=client_secret), True

    def _request_token(self, token_endpoint: str, credential: Credential) -> tuple[str | None, str]:
        """POST the credential; return (access token, error message)."""
        try:
            response = self.client.post(
                token_endpoint,
                json=credential.token_request_body(),
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            return None, f"{type(e).__name__}: {e}"

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict):
            errors = payload.get("errors")
            if errors:
                messages = [
                    str(err.get("message", err)) if isinstance(err, dict) else str(err)
                    for err in (errors if isinstance(errors, list) else [errors])
                ]
                return None, "; ".join(messages)
            token = payload.get("access_token")
            if response.status_code < 400 and token:
                return str(token), ""
            if response.status_code >= 400:
                detail = payload.get("message") or payload.get("error") or response.text
                return None, f"HTTP {response.status_code}: {str(detail)[:500]}"

        if response.status_code >= 400:
            return None, f"HTTP {response.status_code}: {response.text[:500]}"
        return None, "Token endpoint response did not contain an access_token"

    def _authenticate(self, token_endpoint: str, credential: Credential) -> tuple[str | None, str]:
        """Authenticate, retrying exactly once after a short wait."""
        token, error = self._request_token(token_endpoint, credential)
        if token:
            return token, ""

        logger.warning(
            f"Authentication failed ({error}); retrying in {self.options.retry_delay:g}s"
        )
        self.sleep(self.options.retry_delay)
        return self._request_token(token_endpoint, credential)

    def _reachable(self, base_url: str) -> bool:
        """Best-effort probe; any HTTP response counts as reachable."""
        try:
            self.client.get(base_url, timeout=PROBE_TIMEOUT)
            return True
        except httpx.HTTPError as e:
            logger.debug(f"Reachability probe to {base_url} failed: {e}")
            return False

    def _discard_credential(self, cred_file: Path, previous: bytes | None) -> None:
        """Undo this run's credential save after a failed authentication."""
        if previous is not None:
            cred_file.write_bytes(previous)
            logger.debug(f"Restored previous credential file {cred_file}")
        elif cred_file.exists():
            cred_file.unlink()
            logger.debug(f"Removed credential file {cred_file}")

    def _failed(self, message: str, instance: str | None = None) -> ConnectionResult:
        logger.error(message)
        return ConnectionResult(ConnectionStatus.DISCONNECTED, message, instance)

    def connect(self) -> ConnectionResult:
        """
        Resolve URL and credential, authenticate, and build a session.

        Returns:
            ConnectionResult; ``status`` is Connected and ``session`` is set
            on success, otherwise ``message`` explains the failure
        """
        secrets_dir = self.secrets_dir
        secrets_dir.mkdir(parents=True, exist_ok=True)

        try:
            account = self._service_account()
        except ConfigError as e:
            return self._failed(str(e))

        try:
            base_url, url_from_file = self._resolve_url(account)
        except ConfigError as e:
            return self._failed(str(e))
        if not base_url:
            return self._failed("No RSC URL supplied. Pass a URL or a service account file.")
        instance = instance_from_url(base_url)
        if not instance:
            return self._failed(f"Invalid RSC URL: {base_url}")

        url_file = url_file_path(secrets_dir)
        if not url_from_file:
            write_url_file(url_file, base_url)

        try:
            credential, needs_saving = self._resolve_credential(account, instance)
        except ConfigError as e:
            return self._failed(str(e), instance)
        if credential is None:
            return self._failed(f"No credential supplied for {instance}.", instance)

        cred_file = credential_file_path(secrets_dir, instance)
        # Bytes of a credential file that predates this run, restored on failure
        previous: bytes | None = None
        cred_file_written = False
        if needs_saving:
            try:
                if cred_file.exists():
                    previous = cred_file.read_bytes()
                default_store(self.options.encryption_key).save(cred_file, credential)
                cred_file_written = True
            except OSError as e:
                return self._failed(f"Cannot save credential file {cred_file}: {e}", instance)
            except (ConfigError, CredentialStoreError) as e:
                return self._failed(str(e), instance)

        token, error = self._authenticate(f"{base_url}{TOKEN_PATH}", credential)

        if not token:
            message = classify_auth_error(error)
            if cred_file_written:
                self._discard_credential(cred_file, previous)
            if url_from_file and url_file.exists() and not self._reachable(base_url):
                url_file.unlink()
                message = f"{message} ({base_url} is not reachable; saved URL removed)"
            return self._failed(message, instance)

        install_redaction(token, credential.client_secret)
        context = SessionContext.for_base_url(base_url, access_token=token)
        session = RscSession(
            context,
            timeout=self.options.timeout,
            verify=self.options.verify_ssl,
            page_size=self.options.page_size,
            client=self.client,
        )
        logger.info(f"Connected to {instance}")
        return ConnectionResult(
            ConnectionStatus.CONNECTED, f"Connected to {instance}", instance, session
        )


def connect(
    options: ConnectOptions,
    prompt: PromptFn | None = None,
    sleep: Callable[[float], None] = time.sleep,
    client: httpx.Client | None = None,
) -> ConnectionResult:
    """Connect to RSC; see ``SessionManager.connect``."""
    return SessionManager(options, prompt=prompt, sleep=sleep, client=client).connect()
