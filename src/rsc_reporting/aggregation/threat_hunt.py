"""Threat-hunt result roll-up.

A hunt result nests objects -> snapshot results -> matches. The roll-up
materializes four independent tiers from that single result: per-match
records, per-snapshot summaries, per-object summaries and one hunt summary.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..mapper.conversions import bytes_to_gb, to_utc_datetime
from ..mapper.flatten import get_path


class _HuntRecord(BaseModel):
    rsc_instance: str | None = Field(default=None, alias="RSCInstance")
    hunt_id: str | None = Field(default=None, alias="HuntID")

    model_config = {"populate_by_name": True}

    def to_row(self) -> dict:
        return self.model_dump(by_alias=True)


class ThreatHuntMatch(_HuntRecord):
    """One indicator match in one file of one snapshot."""

    hunt_name: str | None = Field(default=None, alias="HuntName")
    object_id: str | None = Field(default=None, alias="ObjectID")
    object_name: str | None = Field(default=None, alias="Object")
    object_type: str | None = Field(default=None, alias="ObjectType")
    cluster: str | None = Field(default=None, alias="Cluster")
    snapshot_id: str | None = Field(default=None, alias="SnapshotID")
    snapshot_date: datetime | None = Field(default=None, alias="SnapshotDate")
    indicator: str | None = Field(default=None, alias="Indicator")
    match_type: str | None = Field(default=None, alias="MatchType")
    file_path: str | None = Field(default=None, alias="FilePath")
    file_size_gb: float | None = Field(default=None, alias="FileSizeGB")
    sha256: str | None = Field(default=None, alias="SHA256")
    file_modified: datetime | None = Field(default=None, alias="FileModified")


class ThreatHuntSnapshotSummary(_HuntRecord):
    """Matches and scan counts for one snapshot."""

    object_id: str | None = Field(default=None, alias="ObjectID")
    object_name: str | None = Field(default=None, alias="Object")
    snapshot_id: str | None = Field(default=None, alias="SnapshotID")
    snapshot_date: datetime | None = Field(default=None, alias="SnapshotDate")
    files_scanned: int = Field(default=0, alias="FilesScanned")
    files_skipped: int = Field(default=0, alias="FilesSkipped")
    matches: int = Field(default=0, alias="Matches")
    files_matched: int = Field(default=0, alias="FilesMatched")


class ThreatHuntObjectSummary(_HuntRecord):
    """Snapshots scanned versus snapshots with matches for one object."""

    object_id: str | None = Field(default=None, alias="ObjectID")
    object_name: str | None = Field(default=None, alias="Object")
    object_type: str | None = Field(default=None, alias="ObjectType")
    cluster: str | None = Field(default=None, alias="Cluster")
    snapshots_scanned: int = Field(default=0, alias="SnapshotsScanned")
    snapshots_with_matches: int = Field(default=0, alias="SnapshotsWithMatches")
    matches: int = Field(default=0, alias="Matches")
    files_scanned: int = Field(default=0, alias="FilesScanned")
    first_matched_snapshot: datetime | None = Field(default=None, alias="FirstMatchedSnapshot")
    last_matched_snapshot: datetime | None = Field(default=None, alias="LastMatchedSnapshot")


class ThreatHuntSummary(_HuntRecord):
    """Totals across the whole hunt."""

    name: str | None = Field(default=None, alias="Name")
    status: str | None = Field(default=None, alias="Status")
    start_time: datetime | None = Field(default=None, alias="StartTime")
    end_time: datetime | None = Field(default=None, alias="EndTime")
    objects: int = Field(default=0, alias="Objects")
    objects_with_matches: int = Field(default=0, alias="ObjectsWithMatches")
    snapshots: int = Field(default=0, alias="Snapshots")
    snapshots_with_matches: int = Field(default=0, alias="SnapshotsWithMatches")
    matches: int = Field(default=0, alias="Matches")
    files_scanned: int = Field(default=0, alias="FilesScanned")
    unique_files_matched: int = Field(default=0, alias="UniqueFilesMatched")


@dataclass
class ThreatHuntRollup:
    """All tiers of a threat-hunt roll-up."""

    summary: ThreatHuntSummary
    objects: list[ThreatHuntObjectSummary] = field(default_factory=list)
    snapshots: list[ThreatHuntSnapshotSummary] = field(default_factory=list)
    matches: list[ThreatHuntMatch] = field(default_factory=list)


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _list(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def rollup_threat_hunt(result: dict[str, Any], instance: str | None = None) -> ThreatHuntRollup:
    """
    Aggregate one threat-hunt result into match, snapshot, object and hunt tiers.

    Args:
        result: ``threatHuntResult`` object as returned by the API
        instance: RSC instance tag for the records

    Returns:
        ThreatHuntRollup with every tier fully materialized
    """
    hunt_id = result.get("huntId")
    hunt_name = result.get("name")
    base = {"RSCInstance": instance, "HuntID": hunt_id}

    matches: list[ThreatHuntMatch] = []
    snapshots: list[ThreatHuntSnapshotSummary] = []
    objects: list[ThreatHuntObjectSummary] = []
    matched_files: set[tuple[str | None, str | None]] = set()

    for obj in _list(result.get("objects")):
        object_id = obj.get("fid")
        object_name = obj.get("name")
        object_base = {**base, "ObjectID": object_id, "Object": object_name}
        obj_snapshots = _list(obj.get("snapshotResults"))
        obj_matches = 0
        obj_files = 0
        matched_dates: list[datetime] = []

        for snap in obj_snapshots:
            snapshot_id = snap.get("snapshotFid")
            snapshot_date = to_utc_datetime(snap.get("snapshotDate"))
            snap_matches = _list(snap.get("matches"))
            files_scanned = _int(snap.get("scannedFilesCount"))

            for match in snap_matches:
                matches.append(
                    ThreatHuntMatch(
                        **object_base,
                        HuntName=hunt_name,
                        ObjectType=obj.get("objectType"),
                        Cluster=get_path(obj, "cluster.name"),
                        SnapshotID=snapshot_id,
                        SnapshotDate=snapshot_date,
                        Indicator=match.get("indicator"),
                        MatchType=match.get("matchType"),
                        FilePath=match.get("filePath"),
                        FileSizeGB=bytes_to_gb(match.get("fileSizeBytes")),
                        SHA256=match.get("sha256"),
                        FileModified=to_utc_datetime(match.get("modifiedTime")),
                    )
                )
                matched_files.add((object_id, match.get("filePath")))

            snapshots.append(
                ThreatHuntSnapshotSummary(
                    **object_base,
                    SnapshotID=snapshot_id,
                    SnapshotDate=snapshot_date,
                    FilesScanned=files_scanned,
                    FilesSkipped=_int(snap.get("skippedFilesCount")),
                    Matches=len(snap_matches),
                    FilesMatched=len({m.get("filePath") for m in snap_matches}),
                )
            )
            obj_matches += len(snap_matches)
            obj_files += files_scanned
            if snap_matches and snapshot_date is not None:
                matched_dates.append(snapshot_date)

        objects.append(
            ThreatHuntObjectSummary(
                **object_base,
                ObjectType=obj.get("objectType"),
                Cluster=get_path(obj, "cluster.name"),
                SnapshotsScanned=len(obj_snapshots),
                SnapshotsWithMatches=sum(1 for s in obj_snapshots if _list(s.get("matches"))),
                Matches=obj_matches,
                FilesScanned=obj_files,
                FirstMatchedSnapshot=min(matched_dates) if matched_dates else None,
                LastMatchedSnapshot=max(matched_dates) if matched_dates else None,
            )
        )

    summary = ThreatHuntSummary(
        **base,
        Name=hunt_name,
        Status=result.get("status"),
        StartTime=to_utc_datetime(result.get("startTime")),
        EndTime=to_utc_datetime(result.get("endTime")),
        Objects=len(objects),
        ObjectsWithMatches=sum(1 for o in objects if o.matches),
        Snapshots=len(snapshots),
        SnapshotsWithMatches=sum(1 for s in snapshots if s.matches),
        Matches=len(matches),
        FilesScanned=sum(s.files_scanned for s in snapshots),
        UniqueFilesMatched=len(matched_files),
    )
    return ThreatHuntRollup(summary=summary, objects=objects, snapshots=snapshots, matches=matches)
