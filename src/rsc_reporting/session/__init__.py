"""Session management: credentials, authentication and the session object."""

from .client import RscSession, ensure_connected
from .context import (
    ConnectionResult,
    ConnectionStatus,
    Credential,
    SessionContext,
    instance_from_url,
    normalize_base_url,
)
from .manager import ConnectOptions, SessionManager, classify_auth_error, connect

__all__ = [
    "ConnectOptions",
    "ConnectionResult",
    "ConnectionStatus",
    "Credential",
    "RscSession",
    "SessionContext",
    "SessionManager",
    "classify_auth_error",
    "connect",
    "ensure_connected",
    "instance_from_url",
    "normalize_base_url",
]
