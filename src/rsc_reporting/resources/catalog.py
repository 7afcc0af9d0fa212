"""Resource catalog: query, field table and fan-out policy per resource kind.

Some field tables read paths that do not exist in the schema (see
``KNOWN_FIELD_DISCREPANCIES``). Those columns are always null; existing
consumers expect that, so the paths are kept as they are until the
correct behavior is confirmed.
"""

from pydantic import BaseModel, Field

from ..graphql import queries
from ..graphql.executor import PaginatedQuery
from ..mapper.flatten import FieldSpec, field
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


class ResourceSpec(BaseModel):
    """How to fetch and flatten one resource kind."""

    name: str
    description: str
    query: PaginatedQuery
    fields: list[FieldSpec]
    record_model: type[FlatRecord]
    fan_out: str | None = Field(
        default=None,
        description="Dot path to a list; one record per element instead of per node",
    )
    url_path: str | None = Field(
        default=None,
        description="UI path template formatted with the record's fields",
    )

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


# (resource, output field, path read, path the schema actually returns)
KNOWN_FIELD_DISCREPANCIES: list[tuple[str, str, str, str]] = [
    ("aws_ec2_volumes", "VolumeNativeID", "VolumeNativeID", "volumeNativeId"),
    (
        "aws_ec2_instances",
        "ExocomputeConfigured",
        "IsExocomputeConfigured",
        "isExocomputeConfigured",
    ),
]


OBJECTS = ResourceSpec(
    name="objects",
    description="Protected objects across all clusters and clouds",
    query=queries.OBJECTS,
    record_model=ObjectRecord,
    url_path="object_details/{ObjectID}",
    fields=[
        field("Object", "name"),
        field("ObjectID", "fid"),
        field("ObjectCDMID", "id"),
        field("Type", "objectType"),
        field("Location", "location"),
        field("SLADomain", "slaDomain.name"),
        field("SLADomainID", "slaDomain.id"),
        field("Cluster", "cluster.name"),
        field("ClusterID", "cluster.id"),
        field("ProtectionStatus", "protectionStatus"),
        field("ComplianceStatus", "complianceStatus"),
        field("ArchiveComplianceStatus", "archivalComplianceStatus"),
        field("ReplicationComplianceStatus", "replicationComplianceStatus"),
        field("LastSnapshot", "lastSnapshot", "timestamp"),
        field("HoursSinceLastSnapshot", "lastSnapshot", "hours_since"),
        field("LatestArchiveSnapshot", "latestArchivalSnapshot", "timestamp"),
        field("LatestReplicationSnapshot", "latestReplicationSnapshot", "timestamp"),
        field("TotalSnapshots", "totalSnapshots"),
        field("MissedSnapshots", "missedSnapshots"),
        field("LogicalGB", "logicalBytes", "gb"),
        field("PhysicalGB", "physicalBytes", "gb"),
        field("TransferredGB", "transferredBytes", "gb"),
        field("DataReduction", "dataReduction"),
        field("LastUpdated", "pullTime", "timestamp"),
    ],
)

SNAPSHOTS = ResourceSpec(
    name="snapshots",
    description="Snapshots of one object, newest first",
    query=queries.SNAPSHOTS,
    record_model=SnapshotRecord,
    fields=[
        field("SnapshotID", "id"),
        field("SnapshotDate", "date", "timestamp"),
        field("ExpirationDate", "expirationDate", "timestamp"),
        field("OnDemand", "isOnDemandSnapshot", "bool"),
        field("Expired", "isExpired", "bool"),
        field("Indexed", "isIndexed", "bool"),
        field("Quarantined", "isQuarantined", "bool"),
        field("Anomaly", "isAnomaly", "bool"),
        field("Replica", "isReplica", "bool"),
        field("Archive", "isArchivalCopy", "bool"),
        field("SLADomain", "slaDomain.name"),
        field("Cluster", "cluster.name"),
        field("HoursSinceSnapshot", "date", "hours_since"),
    ],
)

EVENTS = ResourceSpec(
    name="events",
    description="Event (activity) series",
    query=queries.EVENTS,
    record_model=EventRecord,
    fields=[
        field("EventID", "activitySeriesId"),
        field("ObjectFID", "fid"),
        field("ObjectID", "objectId"),
        field("Object", "objectName"),
        field("ObjectType", "objectType"),
        field("Type", "lastActivityType"),
        field("Status", "lastActivityStatus"),
        field("Severity", "severity"),
        field("Cluster", "clusterName"),
        field("Location", "location"),
        field("Progress", "progress"),
        field("Message", "activityConnection.nodes.0.message"),
        field("StartTime", "startTime", "timestamp"),
        field("LastUpdated", "lastUpdated", "timestamp"),
        field("HoursSinceUpdate", "lastUpdated", "hours_since"),
    ],
)

CLUSTERS = ResourceSpec(
    name="clusters",
    description="Rubrik clusters with capacity",
    query=queries.CLUSTERS,
    record_model=ClusterRecord,
    url_path="clusters/{ClusterID}/overview",
    fields=[
        field("Cluster", "name"),
        field("ClusterID", "id"),
        field("Version", "version"),
        field("Status", "status"),
        field("SystemStatus", "systemStatus"),
        field("Type", "type"),
        field("Product", "productType"),
        field("Location", "geoLocation.address"),
        field("TotalStorageGB", "metric.totalCapacity", "gb"),
        field("UsedStorageGB", "metric.usedCapacity", "gb"),
        field("FreeStorageGB", "metric.availableCapacity", "gb"),
        field("SnapshotStorageGB", "metric.snapshotCapacity", "gb"),
        field("EstimatedRunwayDays", "estimatedRunway"),
        field("LastConnected", "lastConnectionTime", "timestamp"),
        field("HoursSinceLastConnected", "lastConnectionTime", "hours_since"),
        field("MetricsUpdated", "metric.lastUpdateTime", "timestamp"),
    ],
)

SLA_DOMAINS = ResourceSpec(
    name="sla_domains",
    description="Global and cluster SLA domains",
    query=queries.SLA_DOMAINS,
    record_model=SlaDomainRecord,
    url_path="sla/details/{SLADomainID}",
    fields=[
        field("SLADomain", "name"),
        field("SLADomainID", "id"),
        field("SLAType", "__typename"),
        field("Description", "description", on_type="GlobalSlaReply"),
        field("ProtectedObjects", "protectedObjectCount"),
        field("ObjectTypes", "objectTypes", "join", on_type="GlobalSlaReply"),
        field("RetentionLocked", "isRetentionLockedSla", "bool"),
        field("Frequency", "baseFrequency.duration"),
        field("FrequencyUnit", "baseFrequency.unit"),
        field("Cluster", "cluster.name", on_type="ClusterSlaDomain"),
        field("ClusterID", "cluster.id", on_type="ClusterSlaDomain"),
    ],
)

_S3_FIELDS = [
    field("Bucket", "name"),
    field("BucketID", "id"),
    field("Region", "region", on_type="AwsNativeS3Bucket"),
    field("AWSAccount", "awsAccount.name", on_type="AwsNativeS3Bucket"),
    field("AWSAccountID", "awsAccount.nativeId", on_type="AwsNativeS3Bucket"),
]

AWS_S3_BUCKETS = ResourceSpec(
    name="aws_s3_buckets",
    description="AWS S3 buckets (one record per bucket)",
    query=queries.AWS_S3_BUCKETS,
    record_model=S3BucketRecord,
    url_path="aws/s3/{BucketID}",
    fields=[
        *_S3_FIELDS,
        field("NativeName", "nativeName", on_type="AwsNativeS3Bucket"),
        field("Created", "creationTime", "timestamp", on_type="AwsNativeS3Bucket"),
        field("SLADomain", "effectiveSlaDomain.name", on_type="AwsNativeS3Bucket"),
        field("SLADomainID", "effectiveSlaDomain.id", on_type="AwsNativeS3Bucket"),
        field(
            "ExocomputeConfigured", "isExocomputeConfigured", "bool", on_type="AwsNativeS3Bucket"
        ),
        field("TagCount", "cloudNativeTags", "count", on_type="AwsNativeS3Bucket"),
    ],
)

AWS_S3_BUCKET_TAGS = ResourceSpec(
    name="aws_s3_bucket_tags",
    description="Tags assigned to AWS S3 buckets (one record per tag)",
    query=queries.AWS_S3_BUCKETS,
    record_model=S3BucketTagRecord,
    fan_out="cloudNativeTags",
    fields=[
        *_S3_FIELDS,
        field("TagKey", "key", scope="item"),
        field("TagValue", "value", scope="item"),
    ],
)

_EC2_FIELDS = [
    field("Instance", "instanceName"),
    field("InstanceID", "id"),
    field("InstanceNativeID", "instanceNativeId"),
    field("Region", "region"),
    field("AWSAccount", "awsAccount.name"),
]

AWS_EC2_INSTANCES = ResourceSpec(
    name="aws_ec2_instances",
    description="AWS EC2 instances (one record per instance)",
    query=queries.AWS_EC2_INSTANCES,
    record_model=Ec2InstanceRecord,
    url_path="aws/ec2/{InstanceID}",
    fields=[
        *_EC2_FIELDS,
        field("InstanceType", "instanceType"),
        field("VPC", "vpcName"),
        field("VPCID", "vpcId"),
        field("AWSAccountID", "awsAccount.nativeId"),
        field("SLADomain", "effectiveSlaDomain.name"),
        field("SLADomainID", "effectiveSlaDomain.id"),
        field("ExocomputeConfigured", "IsExocomputeConfigured", "bool"),
        field("Volumes", "attachedEbsVolumes", "count"),
        field("TagCount", "tags", "count"),
    ],
)

AWS_EC2_VOLUMES = ResourceSpec(
    name="aws_ec2_volumes",
    description="EBS volumes attached to AWS EC2 instances (one record per volume)",
    query=queries.AWS_EC2_INSTANCES,
    record_model=Ec2VolumeRecord,
    fan_out="attachedEbsVolumes",
    fields=[
        *_EC2_FIELDS,
        field("VolumeID", "id", scope="item"),
        field("VolumeNativeID", "VolumeNativeID", scope="item"),
        field("VolumeName", "volumeName", scope="item"),
        field("VolumeSizeGiB", "sizeInGiBs", scope="item"),
        field("VolumeType", "volumeType", scope="item"),
    ],
)

ANOMALIES = ResourceSpec(
    name="anomalies",
    description="Anomaly detection results",
    query=queries.ANOMALIES,
    record_model=AnomalyRecord,
    fields=[
        field("AnomalyID", "id"),
        field("ObjectID", "workloadId"),
        field("Object", "objectName"),
        field("ObjectType", "objectType"),
        field("Location", "location"),
        field("Cluster", "cluster.name"),
        field("ClusterID", "cluster.id"),
        field("Severity", "severity"),
        field("IsAnomaly", "isAnomaly", "bool"),
        field("Probability", "anomalyProbability"),
        field("Encryption", "encryption"),
        field("DetectionTime", "detectionTime", "timestamp"),
        field("HoursSinceDetection", "detectionTime", "hours_since"),
        field("SnapshotDate", "snapshotDate", "timestamp"),
        field("SnapshotID", "snapshotFid"),
        field("PreviousSnapshotID", "previousSnapshotFid"),
        field("SuspiciousFilesAdded", "suspiciousFilesAdded"),
        field("SuspiciousFilesModified", "suspiciousFilesModified"),
        field("SuspiciousFilesDeleted", "suspiciousFilesDeleted"),
        field("FilesAdded", "filesAdded"),
        field("FilesModified", "filesModified"),
        field("FilesDeleted", "filesDeleted"),
        field("AddedGB", "bytesAdded", "gb"),
        field("ModifiedGB", "bytesModified", "gb"),
        field("DeletedGB", "bytesDeleted", "gb"),
    ],
)

THREAT_HUNTS = ResourceSpec(
    name="threat_hunts",
    description="Threat hunts",
    query=queries.THREAT_HUNTS,
    record_model=ThreatHuntRecord,
    url_path="threat_hunts/{HuntID}",
    fields=[
        field("HuntID", "huntId"),
        field("Name", "name"),
        field("Status", "status"),
        field("Type", "huntType"),
        field("StartTime", "startTime", "timestamp"),
        field("EndTime", "endTime", "timestamp"),
        field("Cluster", "clusterName"),
        field("Matches", "matchesFound"),
        field("ObjectsScanned", "objectsScanned"),
        field("ObjectsMatched", "objectsMatched"),
        field("SnapshotsScanned", "snapshotsScanned"),
    ],
)

RESOURCES: dict[str, ResourceSpec] = {
    spec.name: spec
    for spec in (
        OBJECTS,
        SNAPSHOTS,
        EVENTS,
        CLUSTERS,
        SLA_DOMAINS,
        AWS_S3_BUCKETS,
        AWS_S3_BUCKET_TAGS,
        AWS_EC2_INSTANCES,
        AWS_EC2_VOLUMES,
        ANOMALIES,
        THREAT_HUNTS,
    )
}


def get_resource(name: str) -> ResourceSpec:
    """Look up a resource by name (``-`` and ``_`` are interchangeable)."""
    key = name.strip().lower().replace("-", "_")
    if key not in RESOURCES:
        raise KeyError(f"Unknown resource '{name}'. Known: {', '.join(sorted(RESOURCES))}")
    return RESOURCES[key]
