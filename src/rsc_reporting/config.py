"""Configuration management for RSC reporting."""

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

DEFAULT_SECRETS_DIR = Path.home() / ".rsc-reporting"
DEFAULT_SDK_CREDENTIAL_FILE = Path.home() / ".rubrik" / "rsc_service_account.json"
ENCRYPTION_KEY_BYTES = 24

# Used on non-Windows hosts when no key is supplied (bytes 1..24)
DEFAULT_ENCRYPTION_KEY = bytes(range(1, ENCRYPTION_KEY_BYTES + 1))


class RscSettings(BaseSettings):
    """Rubrik Security Cloud connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="RSC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str | None = Field(
        default=None, description="RSC instance URL (e.g., https://acme.my.rubrik.com)"
    )
    service_account_file: Path | None = Field(
        default=None, description="Service account JSON downloaded from RSC"
    )
    secrets_dir: Path = Field(
        default=DEFAULT_SECRETS_DIR,
        description="Directory holding the persisted URL and credential files",
    )
    encryption_key: str | None = Field(
        default=None,
        description="24-byte key (48 hex chars or 24 characters) for non-Windows credential files",
    )
    page_size: int = Field(default=1000, description="Nodes requested per GraphQL page")
    timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")
    retry_delay: float = Field(default=5.0, description="Seconds to wait before the auth retry")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    sdk_credential_file: Path = Field(
        default=DEFAULT_SDK_CREDENTIAL_FILE,
        description="Service account file written by the RSC PowerShell/Python SDK",
    )

    @classmethod
    def from_yaml(cls, path: Path) -> "RscSettings":
        """Load settings from a YAML file; environment variables fill the rest."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Accept both a flat mapping and an ``rsc:`` section
        if isinstance(data.get("rsc"), dict):
            data = data["rsc"]

        return cls(**data)


def load_settings(config_path: Path | None = None) -> RscSettings:
    """Load settings from environment and an optional YAML file."""
    if config_path:
        return RscSettings.from_yaml(config_path)
    return RscSettings()


def parse_encryption_key(value: str | bytes | None) -> bytes:
    """
    Turn a caller-supplied key into the 24-byte AES-192 key.

    Accepts raw bytes, a 48-character hex string, or exactly 24 characters
    of text. ``None`` yields the default key.

    Raises:
        ConfigError: If the key is not 24 bytes long
    """
    if value is None or value == "":
        return DEFAULT_ENCRYPTION_KEY

    if isinstance(value, bytes):
        key = value
    elif len(value) == ENCRYPTION_KEY_BYTES * 2:
        try:
            key = bytes.fromhex(value)
        except ValueError:
            key = value.encode("utf-8")
    else:
        key = value.encode("utf-8")

    if len(key) != ENCRYPTION_KEY_BYTES:
        raise ConfigError(
            f"Encryption key must be {ENCRYPTION_KEY_BYTES} bytes "
            f"(48 hex characters or {ENCRYPTION_KEY_BYTES} characters), got {len(key)} bytes"
        )
    return key
