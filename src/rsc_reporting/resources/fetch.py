"""Fetch RSC resources as typed flat records."""

from __future__ import annotations

import logging
import string
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from ..graphql import queries
from ..mapper.flatten import flatten_all
from ..session.client import RscSession, ensure_connected
from .catalog import (
    ANOMALIES,
    AWS_EC2_INSTANCES,
    AWS_EC2_VOLUMES,
    AWS_S3_BUCKET_TAGS,
    AWS_S3_BUCKETS,
    CLUSTERS,
    EVENTS,
    OBJECTS,
    SLA_DOMAINS,
    SNAPSHOTS,
    THREAT_HUNTS,
    ResourceSpec,
    get_resource,
)
from .models import (
    AnomalyRecord,
    ClusterRecord,
    Ec2InstanceRecord,
    Ec2VolumeRecord,
    EventRecord,
    FlatRecord,
    ObjectRecord,
    S3BucketRecord,
    S3BucketTagRecord,
    SlaDomainRecord,
    SnapshotRecord,
    ThreatHuntRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=FlatRecord)


@dataclass
class RecordSet(Generic[R]):
    """Records from one fetch, in server order, plus any errors that stopped it."""

    records: list[R] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __iter__(self) -> Iterator[R]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def rows(self) -> list[dict[str, Any]]:
        """Records as column-name keyed dicts."""
        return [record.to_row() for record in self.records]


def _iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def fetch_resource(
    session: RscSession,
    resource: ResourceSpec | str,
    variables: dict[str, Any] | None = None,
    extras: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> RecordSet[Any]:
    """
    Fetch all pages of a resource and flatten them into typed records.

    Args:
        session: Connected RSC session
        resource: Resource spec or its catalog name
        variables: GraphQL variables (filters) for this fetch
        extras: Values added to every record (e.g., the ObjectID a
            snapshot list was fetched for)
        now: Reference instant for relative-age fields

    Returns:
        RecordSet; ``errors`` holds query errors that stopped the fetch and
        one message per record that failed validation
    """
    ensure_connected(session)
    spec = get_resource(resource) if isinstance(resource, str) else resource

    result = session.fetch_all(spec.query, variables=variables)
    rows = flatten_all(result.nodes, spec.fields, session.instance, spec.fan_out, now=now)

    records = []
    errors = list(result.errors)
    for index, row in enumerate(rows):
        if extras:
            row.update(extras)
        if spec.url_path:
            row["URL"] = _object_url(session, spec.url_path, row)
        try:
            records.append(spec.record_model.model_validate(row))
        except ValidationError as e:
            message = _invalid_row_message(spec, index, row, e)
            logger.warning(message)
            errors.append(message)

    logger.info(f"Fetched {len(records)} {spec.name} records from {session.instance}")
    return RecordSet(records=records, errors=errors)


def _invalid_row_message(
    spec: ResourceSpec, index: int, row: dict[str, Any], error: ValidationError
) -> str:
    """One-line description of a record that failed validation."""
    label = next(
        (row[key] for key in ("ObjectID", "ID", spec.fields[0].name) if row.get(key)),
        f"#{index + 1}",
    )
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in error.errors()
    )
    return f"Skipped {spec.name} record {label}: {details}"


def _object_url(session: RscSession, template: str, row: dict[str, Any]) -> str | None:
    """UI link for a record; None when any field the template needs is missing."""
    names = [name for _, name, _, _ in string.Formatter().parse(template) if name]
    if any(row.get(name) is None for name in names):
        return None
    return session.object_url(template.format(**row))


def get_objects(
    session: RscSession,
    object_types: list[str] | None = None,
    name: str | None = None,
) -> RecordSet[ObjectRecord]:
    """Protected objects, optionally filtered by type and name."""
    object_filter: dict[str, Any] = {}
    if object_types:
        object_filter["objectType"] = object_types
    if name:
        object_filter["searchTerm"] = name
    return fetch_resource(session, OBJECTS, {"filter": object_filter} if object_filter else None)


def get_snapshots(session: RscSession, object_id: str) -> RecordSet[SnapshotRecord]:
    """All snapshots of one object, newest first."""
    return fetch_resource(
        session, SNAPSHOTS, {"objectId": object_id}, extras={"ObjectID": object_id}
    )


def get_events(
    session: RscSession,
    object_name: str | None = None,
    since: datetime | None = None,
    event_types: list[str] | None = None,
) -> RecordSet[EventRecord]:
    """
    Event series, optionally narrowed by object name, type and start time.

    Filtering by object name can match several objects with the same name;
    use ``aggregation.events.object_events`` to narrow to one object.
    """
    filters: dict[str, Any] = {}
    if object_name:
        filters["objectName"] = object_name
    if since:
        filters["lastUpdatedTimeGt"] = _iso(since)
    if event_types:
        filters["lastActivityType"] = event_types
    return fetch_resource(session, EVENTS, {"filters": filters} if filters else None)


def get_clusters(session: RscSession) -> RecordSet[ClusterRecord]:
    """Rubrik clusters with capacity metrics."""
    return fetch_resource(session, CLUSTERS)


def get_sla_domains(session: RscSession) -> RecordSet[SlaDomainRecord]:
    """Global and cluster SLA domains."""
    return fetch_resource(session, SLA_DOMAINS)


def get_s3_buckets(session: RscSession) -> RecordSet[S3BucketRecord]:
    return fetch_resource(session, AWS_S3_BUCKETS)


def get_s3_bucket_tags(session: RscSession) -> RecordSet[S3BucketTagRecord]:
    return fetch_resource(session, AWS_S3_BUCKET_TAGS)


def get_ec2_instances(session: RscSession) -> RecordSet[Ec2InstanceRecord]:
    return fetch_resource(session, AWS_EC2_INSTANCES)


def get_ec2_volumes(session: RscSession) -> RecordSet[Ec2VolumeRecord]:
    return fetch_resource(session, AWS_EC2_VOLUMES)


def get_anomalies(session: RscSession, since: datetime | None = None) -> RecordSet[AnomalyRecord]:
    """Anomaly detection results, optionally only those detected after *since*."""
    variables = {"filter": {"beginTime": _iso(since)}} if since else None
    return fetch_resource(session, ANOMALIES, variables)


def get_threat_hunts(session: RscSession) -> RecordSet[ThreatHuntRecord]:
    return fetch_resource(session, THREAT_HUNTS)


def get_threat_hunt_result(
    session: RscSession, hunt_id: str
) -> tuple[dict[str, Any] | None, list[str]]:
    """
    Raw result of one threat hunt (objects, snapshots and matches).

    Returns:
        Tuple of (result object or None, list of error messages)
    """
    ensure_connected(session)
    result, errors = session.fetch_one(queries.THREAT_HUNT_RESULT, {"huntId": hunt_id})
    return (result if isinstance(result, dict) else None), errors
