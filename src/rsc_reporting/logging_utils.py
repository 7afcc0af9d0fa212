"""Logging helpers: CLI handler setup and secret redaction."""

import logging

from rich.console import Console
from rich.logging import RichHandler

REDACTED = "***REDACTED***"


class TokenRedactionFilter(logging.Filter):
    """Logging filter that replaces raw secrets with ``***REDACTED***``."""

    def __init__(self, *secrets: str) -> None:
        super().__init__()
        self._secrets: list[str] = []
        self.add(*secrets)

    def add(self, *secrets: str) -> None:
        """Redact *secrets* too; empty and repeated values are skipped."""
        for secret in secrets:
            if secret and secret not in self._secrets:
                self._secrets.append(secret)

    def _redact(self, value: str) -> str:
        for secret in self._secrets:
            value = value.replace(secret, REDACTED)
        return value

    def _contains_secret(self, value: object) -> bool:
        text = str(value)
        return any(secret in text for secret in self._secrets)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        if self._contains_secret(record.msg):
            record.msg = self._redact(str(record.msg))
        if record.args:
            args = record.args
            if isinstance(args, tuple):
                record.args = tuple(
                    self._redact(str(a)) if self._contains_secret(a) else a for a in args
                )
            elif isinstance(args, dict):
                record.args = {
                    k: self._redact(str(v)) if self._contains_secret(v) else v
                    for k, v in args.items()
                }
        return True


_redaction = TokenRedactionFilter()


def install_redaction(*secrets: str) -> TokenRedactionFilter:
    """Add *secrets* to the shared redaction filter and attach it to every root handler.

    Repeated connects extend one filter rather than stacking new ones.
    """
    _redaction.add(*secrets)
    for handler in logging.getLogger().handlers:
        handler.addFilter(_redaction)
    return _redaction


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Configure logging with RichHandler."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # Suppress httpx HTTP request logging unless verbose
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
