"""Session and credential models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from pydantic import BaseModel, Field, field_validator

from ..errors import AuthError

if TYPE_CHECKING:
    from .client import RscSession

# Prefix the token endpoint expects on client ids; never stored on Credential
CLIENT_ID_PREFIX = "client|"

TOKEN_PATH = "/api/client_token"
GRAPHQL_PATH = "/api/graphql"


class ConnectionStatus(str, Enum):
    """Session state. Connected is terminal for the life of a session."""

    CONNECTED = "Connected"
    DISCONNECTED = "Disconnected"


class Credential(BaseModel):
    """RSC service account credential."""

    client_id: str
    client_secret: str = Field(repr=False)

    model_config = {"frozen": True}

    @field_validator("client_id")
    @classmethod
    def _strip_prefix(cls, value: str) -> str:
        value = value.strip()
        if value.startswith(CLIENT_ID_PREFIX):
            value = value[len(CLIENT_ID_PREFIX) :]
        return value

    def token_request_body(self) -> dict[str, str]:
        """Body POSTed to the token endpoint."""
        return {
            "client_secret": self.client_secret,
            "client_id": f"{CLIENT_ID_PREFIX}{self.client_id}",
        }


def instance_from_url(url: str) -> str:
    """Hostname-only form of an instance URL (``acme.my.rubrik.com``)."""
    parsed = urlparse(url if "://" in url else f"https://{url}")
    return (parsed.hostname or "").lower()


class SessionContext(BaseModel):
    """Connection details shared (read-only) by every call made with a session."""

    base_url: str
    graphql_endpoint: str
    token_endpoint: str
    access_token: str = Field(repr=False)
    instance: str
    status: ConnectionStatus = ConnectionStatus.CONNECTED
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}

    @classmethod
    def for_base_url(cls, base_url: str, access_token: str) -> SessionContext:
        """Build the context for a normalized base URL and a freshly issued token."""
        return cls(
            base_url=base_url,
            graphql_endpoint=f"{base_url}{GRAPHQL_PATH}",
            token_endpoint=f"{base_url}{TOKEN_PATH}",
            access_token=access_token,
            instance=instance_from_url(base_url),
        )

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.access_token}"

    @property
    def headers(self) -> dict[str, str]:
        """Request headers for GraphQL calls."""
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": self.authorization_header,
        }


@dataclass
class ConnectionResult:
    """Outcome of a connect attempt; check ``status`` before using ``session``."""

    status: ConnectionStatus
    message: str
    instance: str | None = None
    session: RscSession | None = None

    @property
    def connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED and self.session is not None

    def require(self) -> RscSession:
        """Return the session, or raise AuthError if the connect failed."""
        if not self.connected or self.session is None:
            raise AuthError(self.message, instance=self.instance)
        return self.session


def normalize_base_url(url: str) -> str:
    """
    Clean up a caller-supplied instance URL.

    Adds ``https://`` when no scheme is given, drops trailing slashes and
    strips ``/api/graphql`` or ``/api/client_token`` when a full endpoint
    was pasted instead of the instance URL.
    """
    cleaned = url.strip().strip('"').strip("'")
    if not cleaned:
        return cleaned
    if "://" not in cleaned:
        cleaned = f"https://{cleaned}"
    cleaned = cleaned.rstrip("/")
    for suffix in (GRAPHQL_PATH, TOKEN_PATH):
        if cleaned.lower().endswith(suffix):
            cleaned = cleaned[: -len(suffix)].rstrip("/")
    return cleaned
