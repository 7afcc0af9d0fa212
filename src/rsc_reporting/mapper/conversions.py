"""Unit conversions applied while flattening GraphQL nodes.

All conversions are null-safe: ``None`` (or an unparseable value) in
gives ``None`` out, never an exception.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
BYTES_PER_GB = 1000**3


def _from_epoch_ms(value: float) -> datetime | None:
    try:
        return EPOCH + timedelta(milliseconds=value)
    except (OverflowError, ValueError):
        logger.debug(f"Epoch milliseconds out of range: {value!r}")
        return None


def to_utc_datetime(value: Any) -> datetime | None:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts UNIX epoch milliseconds (int, float or digit string),
    ISO-8601 strings (with or without milliseconds, ``Z`` or offset),
    and datetimes. Naive values are taken to be UTC.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        return _from_epoch_ms(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.lstrip("-").isdigit():
            return _from_epoch_ms(int(text))
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_unix_ms(value: datetime | None) -> int | None:
    """Inverse of ``to_utc_datetime`` for epoch-millisecond input."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(milliseconds=1)


def _to_number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def bytes_to_gb(value: Any) -> float | None:
    """Bytes to decimal gigabytes (1000^3), rounded to 2 places."""
    number = _to_number(value)
    if number is None:
        return None
    return round(number / BYTES_PER_GB, 2)


def _elapsed(value: Any, now: datetime | None) -> timedelta | None:
    then = to_utc_datetime(value)
    if then is None:
        return None
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now - then


def hours_since(value: Any, now: datetime | None = None) -> float | None:
    """Hours between a timestamp and *now* (UTC), rounded to 1 place."""
    elapsed = _elapsed(value, now)
    if elapsed is None:
        return None
    return round(elapsed.total_seconds() / 3600, 1)


def days_since(value: Any, now: datetime | None = None) -> float | None:
    """Days between a timestamp and *now* (UTC), rounded to 1 place."""
    elapsed = _elapsed(value, now)
    if elapsed is None:
        return None
    return round(elapsed.total_seconds() / 86400, 1)
