"""RSC resource kinds: typed records, field tables and fetch functions."""

from .catalog import KNOWN_FIELD_DISCREPANCIES, RESOURCES, ResourceSpec, get_resource
from .fetch import (
    RecordSet,
    fetch_resource,
    get_anomalies,
    get_clusters,
    get_ec2_instances,
    get_ec2_volumes,
    get_events,
    get_objects,
    get_s3_bucket_tags,
    get_s3_buckets,
    get_sla_domains,
    get_snapshots,
    get_threat_hunt_result,
    get_threat_hunts,
)
from .models import FlatRecord

__all__ = [
    "KNOWN_FIELD_DISCREPANCIES",
    "RESOURCES",
    "FlatRecord",
    "RecordSet",
    "ResourceSpec",
    "fetch_resource",
    "get_anomalies",
    "get_clusters",
    "get_ec2_instances",
    "get_ec2_volumes",
    "get_events",
    "get_objects",
    "get_resource",
    "get_s3_bucket_tags",
    "get_s3_buckets",
    "get_sla_domains",
    "get_snapshots",
    "get_threat_hunt_result",
    "get_threat_hunts",
]
