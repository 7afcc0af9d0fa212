"""Cross-platform compatibility helpers."""

import getpass
import logging
import os
import re
import socket
import sys

logger = logging.getLogger(__name__)


def is_windows() -> bool:
    """Return True when running on Windows (DPAPI is available)."""
    return sys.platform == "win32"


def secure_file(path: "os.PathLike[str] | str") -> None:
    """Restrict a persisted URL or credential file to its owner (0600).

    Skipped on Windows, where the credential file is DPAPI-protected instead.
    Filesystems that reject chmod leave the file as written.
    """
    if is_windows():
        return
    try:
        os.chmod(path, 0o600)
    except OSError as e:
        logger.debug(f"Could not restrict permissions on {path}: {e}")


def _slug(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9_-]+", "_", value).strip("_") or "unknown"


def machine_name() -> str:
    """Filesystem-safe host name of this machine."""
    return _slug(socket.gethostname())


def user_name() -> str:
    """Filesystem-safe name of the current OS user."""
    try:
        return _slug(getpass.getuser())
    except (KeyError, OSError):
        return _slug(os.environ.get("USERNAME") or os.environ.get("USER") or "unknown")
