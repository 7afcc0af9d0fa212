"""Exceptions raised by the RSC reporting client."""

from typing import Any


class RscError(Exception):
    """Base exception for Rubrik Security Cloud reporting errors."""


class ConfigError(RscError):
    """Invalid or missing configuration (URL, encryption key, secrets directory)."""


class CredentialStoreError(RscError):
    """A persisted credential could not be read, decrypted or written."""


class AuthError(RscError):
    """Authentication against the token endpoint failed."""

    def __init__(self, message: str, instance: str | None = None):
        super().__init__(message)
        self.instance = instance


class NotConnectedError(RscError):
    """Raised by the connectivity guard when no valid session exists."""

    def __init__(self, message: str = "Not connected to RSC. Run connect() first."):
        super().__init__(message)


class QueryError(RscError):
    """A GraphQL query returned errors."""

    def __init__(self, message: str, errors: list[str] | None = None, response: Any = None):
        # Include the individual error messages for debugging
        full_message = message
        if errors:
            full_message = f"{message}: {'; '.join(errors)}"
        super().__init__(full_message)
        self.errors = errors or []
        self.response = response
