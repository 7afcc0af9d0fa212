"""Backup compliance windows per object.

Checking "is there a backup from today" against calendar midnight gives
wrong answers: a single early-morning backup satisfies yesterday's window
but not today's. Windows are therefore anchored to a fixed clock time (the
start of the backup window, 20:00 local by default) and each one covers
the 24 hours before that anchor.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field

from ..mapper.conversions import to_utc_datetime
from ..resources.fetch import get_snapshots
from ..session.client import RscSession

logger = logging.getLogger(__name__)


class ComplianceWindow(BaseModel):
    """Backup presence for one 24-hour window of one object."""

    rsc_instance: str | None = Field(default=None, alias="RSCInstance")
    object_id: str = Field(alias="ObjectID")
    day_index: int = Field(alias="Day", description="1 = most recent window")
    range_start: datetime = Field(alias="RangeStart", description="Later bound (exclusive)")
    range_end: datetime = Field(alias="RangeEnd", description="Earlier bound (inclusive)")
    backup_found: bool = Field(alias="BackupFound")
    snapshot_count: int = Field(default=0, alias="SnapshotCount")

    model_config = {"populate_by_name": True}

    def contains(self, when: datetime) -> bool:
        return self.range_end <= when < self.range_start

    def to_row(self) -> dict:
        return self.model_dump(by_alias=True)


def window_anchor(now: datetime, hour: int = 20, minute: int = 0) -> datetime:
    """The configured clock time on *now*'s calendar day, in *now*'s timezone."""
    if not 0 <= hour <= 23 or not 0 <= minute <= 59:
        raise ValueError(f"Invalid backup window start {hour:02d}:{minute:02d}")
    return now.replace(hour=hour, minute=minute, second=0, microsecond=0)


def compliance_windows(
    object_id: str,
    snapshot_times: Iterable[datetime | str | int | None],
    days: int = 7,
    hour: int = 20,
    minute: int = 0,
    now: datetime | None = None,
    instance: str | None = None,
) -> list[ComplianceWindow]:
    """
    One record per day for the *days* most recent backup windows.

    Window 1 runs from the anchor (``hour``:``minute``) yesterday up to the
    anchor today; window N ends where window N-1 starts. A window's
    ``BackupFound`` is true iff at least one snapshot falls in
    ``[RangeEnd, RangeStart)``.

    Args:
        object_id: Object the snapshots belong to
        snapshot_times: Snapshot timestamps (datetimes, ISO strings or epoch ms)
        days: Number of windows to report
        hour: Backup window start hour (local time by default)
        minute: Backup window start minute
        now: Reference instant (default: now, local time)
        instance: RSC instance tag for the records

    Returns:
        ``days`` windows, most recent first
    """
    if days < 1:
        raise ValueError("days must be at least 1")

    now = now or datetime.now().astimezone()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    anchor = window_anchor(now, hour, minute)

    timestamps = [ts for ts in (to_utc_datetime(t) for t in snapshot_times) if ts is not None]

    windows = []
    for day in range(1, days + 1):
        range_start = anchor - timedelta(days=day - 1)
        range_end = range_start - timedelta(days=1)
        count = sum(1 for ts in timestamps if range_end <= ts < range_start)
        windows.append(
            ComplianceWindow(
                RSCInstance=instance,
                ObjectID=object_id,
                Day=day,
                RangeStart=range_start,
                RangeEnd=range_end,
                BackupFound=count > 0,
                SnapshotCount=count,
            )
        )
    return windows


def object_compliance(
    session: RscSession,
    object_id: str,
    days: int = 7,
    hour: int = 20,
    minute: int = 0,
    now: datetime | None = None,
) -> tuple[list[ComplianceWindow], list[str]]:
    """
    Fetch an object's snapshots and evaluate its compliance windows.

    Returns:
        Tuple of (windows, list of error messages from the snapshot fetch)
    """
    snapshots = get_snapshots(session, object_id)
    windows = compliance_windows(
        object_id,
        (s.snapshot_date for s in snapshots),
        days=days,
        hour=hour,
        minute=minute,
        now=now,
        instance=session.instance,
    )
    missed = sum(1 for w in windows if not w.backup_found)
    logger.info(f"{object_id}: {days - missed}/{days} windows with a backup")
    return windows, snapshots.errors
