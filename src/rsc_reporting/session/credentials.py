"""Credential sources and encrypted persistence.

Credentials come from, in priority order, an explicit ``Credential``, a
service-account JSON downloaded from RSC (or left behind by the RSC SDK),
an encrypted file persisted by a previous run, or an interactive prompt.

Persisted files live in a caller-specified secrets directory and are named
after the machine, the OS user and (for credentials) the RSC instance, so
several profiles can coexist:

- ``rsc-url.<machine>.<user>.txt`` - plaintext instance URL
- ``rsc-credential.<machine>.<user>.<instance>.bin`` - encrypted credential

On Windows the credential is protected with DPAPI, which ties it to the
machine and user. Elsewhere it is encrypted with AES-192-GCM using a
24-byte key (a default key, or one the caller supplies).
"""

import base64
import json
import logging
import os
from pathlib import Path
from typing import Any, Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from pydantic import BaseModel, Field, ValidationError

from .._compat import is_windows, machine_name, secure_file, user_name
from ..config import parse_encryption_key
from ..errors import ConfigError, CredentialStoreError
from .context import Credential, normalize_base_url

logger = logging.getLogger(__name__)

SDK_CREDENTIAL_ENV = "RSC_SDK_SERVICE_ACCOUNT_FILE"
NONCE_BYTES = 12


class ServiceAccount(BaseModel):
    """Service-account JSON as downloaded from the RSC user interface."""

    client_id: str
    client_secret: str = Field(repr=False)
    name: str | None = None
    access_token_uri: str | None = None

    model_config = {"extra": "ignore"}

    @property
    def credential(self) -> Credential:
        return Credential(client_id=self.client_id, client_secret=self.client_secret)

    @property
    def base_url(self) -> str | None:
        """Instance URL derived from ``access_token_uri``."""
        if not self.access_token_uri:
            return None
        return normalize_base_url(self.access_token_uri)


def load_service_account(path: Path) -> ServiceAccount:
    """
    Read a service-account JSON file.

    Raises:
        ConfigError: If the file is missing or not a service-account JSON
    """
    if not path.exists():
        raise ConfigError(f"Service account file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        return ServiceAccount.model_validate(data)
    except (json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"Invalid service account file {path}: {e}") from e


def find_sdk_service_account(sdk_file: Path | None = None) -> Path | None:
    """
    Locate credentials left behind by the RSC SDK.

    The ``RSC_SDK_SERVICE_ACCOUNT_FILE`` environment variable wins over the
    configured default location. Returns ``None`` when neither exists.
    """
    env_path = os.environ.get(SDK_CREDENTIAL_ENV)
    candidates = [Path(env_path).expanduser()] if env_path else []
    if sdk_file is not None:
        candidates.append(sdk_file.expanduser())
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


# ---------------------------------------------------------------------------
# Persisted file locations
# ---------------------------------------------------------------------------


def url_file_path(secrets_dir: Path) -> Path:
    """Location of the plaintext URL file for this machine and user."""
    return secrets_dir / f"rsc-url.{machine_name()}.{user_name()}.txt"


def credential_file_path(secrets_dir: Path, instance: str) -> Path:
    """Location of the encrypted credential file for an RSC instance."""
    return secrets_dir / f"rsc-credential.{machine_name()}.{user_name()}.{instance}.bin"


def read_url_file(path: Path) -> str | None:
    """Return the persisted instance URL, or ``None`` if not saved."""
    if not path.exists():
        return None
    url = path.read_text(encoding="utf-8").strip()
    return url or None


def write_url_file(path: Path, url: str) -> None:
    """Persist the instance URL (plaintext)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(url + "\n", encoding="utf-8")
    secure_file(path)


# ---------------------------------------------------------------------------
# Encrypted credential stores
# ---------------------------------------------------------------------------


class CredentialStore(Protocol):
    """Encrypts credentials to, and decrypts them from, a file."""

    def save(self, path: Path, credential: Credential) -> None: ...

    def load(self, path: Path) -> Credential: ...


def _serialize(credential: Credential) -> bytes:
    return json.dumps(
        {"client_id": credential.client_id, "client_secret": credential.client_secret}
    ).encode("utf-8")


def _deserialize(data: bytes, path: Path) -> Credential:
    try:
        payload: dict[str, Any] = json.loads(data.decode("utf-8"))
        return Credential.model_validate(payload)
    except (UnicodeDecodeError, json.JSONDecodeError, ValidationError) as e:
        raise CredentialStoreError(f"Credential file {path} is corrupted: {e}") from e


def _write_secret(path: Path, blob: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(blob)
    secure_file(path)


class AesCredentialStore:
    """AES-192-GCM credential file for hosts without DPAPI."""

    def __init__(self, key: bytes | str | None = None):
        self._aead = AESGCM(parse_encryption_key(key))

    def save(self, path: Path, credential: Credential) -> None:
        nonce = os.urandom(NONCE_BYTES)
        ciphertext = self._aead.encrypt(nonce, _serialize(credential), None)
        _write_secret(path, base64.b64encode(nonce + ciphertext))

    def load(self, path: Path) -> Credential:
        try:
            raw = base64.b64decode(path.read_bytes(), validate=True)
        except (OSError, ValueError) as e:
            raise CredentialStoreError(f"Cannot read credential file {path}: {e}") from e
        if len(raw) <= NONCE_BYTES:
            raise CredentialStoreError(f"Credential file {path} is truncated")
        try:
            plaintext = self._aead.decrypt(raw[:NONCE_BYTES], raw[NONCE_BYTES:], None)
        except InvalidTag as e:
            raise CredentialStoreError(
                f"Cannot decrypt {path}: wrong encryption key or corrupted file"
            ) from e
        return _deserialize(plaintext, path)


class DpapiCredentialStore:
    """Windows DPAPI credential file, readable only by this user on this machine."""

    def save(self, path: Path, credential: Credential) -> None:
        import win32crypt  # type: ignore[import-not-found]

        blob = win32crypt.CryptProtectData(_serialize(credential), "rsc-reporting", None, None, None, 0)
        _write_secret(path, blob)

    def load(self, path: Path) -> Credential:
        import pywintypes  # type: ignore[import-not-found]
        import win32crypt  # type: ignore[import-not-found]

        try:
            _, plaintext = win32crypt.CryptUnprotectData(path.read_bytes(), None, None, None, 0)
        except (OSError, pywintypes.error) as e:
            raise CredentialStoreError(f"Cannot decrypt {path}: {e}") from e
        return _deserialize(plaintext, path)


def default_store(encryption_key: bytes | str | None = None) -> CredentialStore:
    """
    Pick the platform-appropriate store.

    The encryption key only applies off Windows; DPAPI needs none.
    """
    if is_windows():
        if encryption_key:
            logger.debug("Encryption key ignored on Windows (DPAPI in use)")
        return DpapiCredentialStore()
    return AesCredentialStore(encryption_key)
