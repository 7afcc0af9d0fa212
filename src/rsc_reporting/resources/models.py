"""Typed flat records, one per RSC resource kind.

Attributes are snake_case; aliases carry the column names used in
exports and by downstream consumers (``ObjectID``, ``RSCInstance``...).
"""

from datetime import datetime

from pydantic import BaseModel, Field


class FlatRecord(BaseModel):
    """Common base: every record is tagged with its RSC instance."""

    rsc_instance: str = Field(alias="RSCInstance")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_row(self) -> dict:
        """Column-name keyed dict for exports."""
        return self.model_dump(by_alias=True)


class ObjectRecord(FlatRecord):
    """Protected object from the global inventory."""

    object_name: str | None = Field(default=None, alias="Object")
    object_id: str | None = Field(default=None, alias="ObjectID")
    object_cdm_id: str | None = Field(default=None, alias="ObjectCDMID")
    object_type: str | None = Field(default=None, alias="Type")
    location: str | None = Field(default=None, alias="Location")
    sla_domain: str | None = Field(default=None, alias="SLADomain")
    sla_domain_id: str | None = Field(default=None, alias="SLADomainID")
    cluster: str | None = Field(default=None, alias="Cluster")
    cluster_id: str | None = Field(default=None, alias="ClusterID")
    protection_status: str | None = Field(default=None, alias="ProtectionStatus")
    compliance_status: str | None = Field(default=None, alias="ComplianceStatus")
    archive_compliance_status: str | None = Field(default=None, alias="ArchiveComplianceStatus")
    replication_compliance_status: str | None = Field(
        default=None, alias="ReplicationComplianceStatus"
    )
    last_snapshot: datetime | None = Field(default=None, alias="LastSnapshot")
    hours_since_last_snapshot: float | None = Field(default=None, alias="HoursSinceLastSnapshot")
    latest_archive_snapshot: datetime | None = Field(default=None, alias="LatestArchiveSnapshot")
    latest_replication_snapshot: datetime | None = Field(
        default=None, alias="LatestReplicationSnapshot"
    )
    total_snapshots: int | None = Field(default=None, alias="TotalSnapshots")
    missed_snapshots: int | None = Field(default=None, alias="MissedSnapshots")
    logical_gb: float | None = Field(default=None, alias="LogicalGB")
    physical_gb: float | None = Field(default=None, alias="PhysicalGB")
    transferred_gb: float | None = Field(default=None, alias="TransferredGB")
    data_reduction: float | None = Field(default=None, alias="DataReduction")
    last_updated: datetime | None = Field(default=None, alias="LastUpdated")
    url: str | None = Field(default=None, alias="URL")


class SnapshotRecord(FlatRecord):
    """Snapshot of a single object."""

    object_id: str | None = Field(default=None, alias="ObjectID")
    snapshot_id: str | None = Field(default=None, alias="SnapshotID")
    snapshot_date: datetime | None = Field(default=None, alias="SnapshotDate")
    expiration_date: datetime | None = Field(default=None, alias="ExpirationDate")
    on_demand: bool | None = Field(default=None, alias="OnDemand")
    expired: bool | None = Field(default=None, alias="Expired")
    indexed: bool | None = Field(default=None, alias="Indexed")
    quarantined: bool | None = Field(default=None, alias="Quarantined")
    anomaly: bool | None = Field(default=None, alias="Anomaly")
    replica: bool | None = Field(default=None, alias="Replica")
    archive: bool | None = Field(default=None, alias="Archive")
    sla_domain: str | None = Field(default=None, alias="SLADomain")
    cluster: str | None = Field(default=None, alias="Cluster")
    hours_since_snapshot: float | None = Field(default=None, alias="HoursSinceSnapshot")


class EventRecord(FlatRecord):
    """Activity (event) series."""

    event_id: str | None = Field(default=None, alias="EventID")
    object_fid: str | None = Field(default=None, alias="ObjectFID")
    object_id: str | None = Field(default=None, alias="ObjectID")
    object_name: str | None = Field(default=None, alias="Object")
    object_type: str | None = Field(default=None, alias="ObjectType")
    event_type: str | None = Field(default=None, alias="Type")
    status: str | None = Field(default=None, alias="Status")
    severity: str | None = Field(default=None, alias="Severity")
    cluster: str | None = Field(default=None, alias="Cluster")
    location: str | None = Field(default=None, alias="Location")
    progress: str | None = Field(default=None, alias="Progress")
    message: str | None = Field(default=None, alias="Message")
    start_time: datetime | None = Field(default=None, alias="StartTime")
    last_updated: datetime | None = Field(default=None, alias="LastUpdated")
    hours_since_update: float | None = Field(default=None, alias="HoursSinceUpdate")


class ClusterRecord(FlatRecord):
    """Rubrik cluster with capacity metrics."""

    cluster: str | None = Field(default=None, alias="Cluster")
    cluster_id: str | None = Field(default=None, alias="ClusterID")
    version: str | None = Field(default=None, alias="Version")
    status: str | None = Field(default=None, alias="Status")
    system_status: str | None = Field(default=None, alias="SystemStatus")
    cluster_type: str | None = Field(default=None, alias="Type")
    product: str | None = Field(default=None, alias="Product")
    location: str | None = Field(default=None, alias="Location")
    total_storage_gb: float | None = Field(default=None, alias="TotalStorageGB")
    used_storage_gb: float | None = Field(default=None, alias="UsedStorageGB")
    free_storage_gb: float | None = Field(default=None, alias="FreeStorageGB")
    snapshot_storage_gb: float | None = Field(default=None, alias="SnapshotStorageGB")
    estimated_runway_days: int | None = Field(default=None, alias="EstimatedRunwayDays")
    last_connected: datetime | None = Field(default=None, alias="LastConnected")
    hours_since_last_connected: float | None = Field(
        default=None, alias="HoursSinceLastConnected"
    )
    metrics_updated: datetime | None = Field(default=None, alias="MetricsUpdated")
    url: str | None = Field(default=None, alias="URL")


class SlaDomainRecord(FlatRecord):
    """SLA domain (global or cluster-local)."""

    sla_domain: str | None = Field(default=None, alias="SLADomain")
    sla_domain_id: str | None = Field(default=None, alias="SLADomainID")
    sla_type: str | None = Field(default=None, alias="SLAType")
    description: str | None = Field(default=None, alias="Description")
    protected_objects: int | None = Field(default=None, alias="ProtectedObjects")
    object_types: str | None = Field(default=None, alias="ObjectTypes")
    retention_locked: bool | None = Field(default=None, alias="RetentionLocked")
    frequency: int | None = Field(default=None, alias="Frequency")
    frequency_unit: str | None = Field(default=None, alias="FrequencyUnit")
    cluster: str | None = Field(default=None, alias="Cluster")
    cluster_id: str | None = Field(default=None, alias="ClusterID")
    url: str | None = Field(default=None, alias="URL")


class S3BucketRecord(FlatRecord):
    """AWS S3 bucket in the cloud-native inventory."""

    bucket: str | None = Field(default=None, alias="Bucket")
    bucket_id: str | None = Field(default=None, alias="BucketID")
    native_name: str | None = Field(default=None, alias="NativeName")
    region: str | None = Field(default=None, alias="Region")
    created: datetime | None = Field(default=None, alias="Created")
    aws_account: str | None = Field(default=None, alias="AWSAccount")
    aws_account_id: str | None = Field(default=None, alias="AWSAccountID")
    sla_domain: str | None = Field(default=None, alias="SLADomain")
    sla_domain_id: str | None = Field(default=None, alias="SLADomainID")
    exocompute_configured: bool | None = Field(default=None, alias="ExocomputeConfigured")
    tag_count: int | None = Field(default=None, alias="TagCount")
    url: str | None = Field(default=None, alias="URL")


class S3BucketTagRecord(FlatRecord):
    """One tag assigned to an S3 bucket."""

    bucket: str | None = Field(default=None, alias="Bucket")
    bucket_id: str | None = Field(default=None, alias="BucketID")
    region: str | None = Field(default=None, alias="Region")
    aws_account: str | None = Field(default=None, alias="AWSAccount")
    aws_account_id: str | None = Field(default=None, alias="AWSAccountID")
    tag_key: str | None = Field(default=None, alias="TagKey")
    tag_value: str | None = Field(default=None, alias="TagValue")


class Ec2InstanceRecord(FlatRecord):
    """AWS EC2 instance in the cloud-native inventory."""

    instance: str | None = Field(default=None, alias="Instance")
    instance_id: str | None = Field(default=None, alias="InstanceID")
    instance_native_id: str | None = Field(default=None, alias="InstanceNativeID")
    instance_type: str | None = Field(default=None, alias="InstanceType")
    region: str | None = Field(default=None, alias="Region")
    vpc: str | None = Field(default=None, alias="VPC")
    vpc_id: str | None = Field(default=None, alias="VPCID")
    aws_account: str | None = Field(default=None, alias="AWSAccount")
    aws_account_id: str | None = Field(default=None, alias="AWSAccountID")
    sla_domain: str | None = Field(default=None, alias="SLADomain")
    sla_domain_id: str | None = Field(default=None, alias="SLADomainID")
    exocompute_configured: bool | None = Field(default=None, alias="ExocomputeConfigured")
    volumes: int | None = Field(default=None, alias="Volumes")
    tag_count: int | None = Field(default=None, alias="TagCount")
    url: str | None = Field(default=None, alias="URL")


class Ec2VolumeRecord(FlatRecord):
    """One EBS volume attached to an EC2 instance."""

    instance: str | None = Field(default=None, alias="Instance")
    instance_id: str | None = Field(default=None, alias="InstanceID")
    instance_native_id: str | None = Field(default=None, alias="InstanceNativeID")
    region: str | None = Field(default=None, alias="Region")
    aws_account: str | None = Field(default=None, alias="AWSAccount")
    volume_id: str | None = Field(default=None, alias="VolumeID")
    volume_native_id: str | None = Field(default=None, alias="VolumeNativeID")
    volume_name: str | None = Field(default=None, alias="VolumeName")
    volume_size_gib: int | None = Field(default=None, alias="VolumeSizeGiB")
    volume_type: str | None = Field(default=None, alias="VolumeType")


class AnomalyRecord(FlatRecord):
    """Ransomware/anomaly investigation result for one snapshot."""

    anomaly_id: str | None = Field(default=None, alias="AnomalyID")
    object_id: str | None = Field(default=None, alias="ObjectID")
    object_name: str | None = Field(default=None, alias="Object")
    object_type: str | None = Field(default=None, alias="ObjectType")
    location: str | None = Field(default=None, alias="Location")
    cluster: str | None = Field(default=None, alias="Cluster")
    cluster_id: str | None = Field(default=None, alias="ClusterID")
    severity: str | None = Field(default=None, alias="Severity")
    is_anomaly: bool | None = Field(default=None, alias="IsAnomaly")
    probability: float | None = Field(default=None, alias="Probability")
    encryption: str | None = Field(default=None, alias="Encryption")
    detection_time: datetime | None = Field(default=None, alias="DetectionTime")
    hours_since_detection: float | None = Field(default=None, alias="HoursSinceDetection")
    snapshot_date: datetime | None = Field(default=None, alias="SnapshotDate")
    snapshot_id: str | None = Field(default=None, alias="SnapshotID")
    previous_snapshot_id: str | None = Field(default=None, alias="PreviousSnapshotID")
    suspicious_files_added: int | None = Field(default=None, alias="SuspiciousFilesAdded")
    suspicious_files_modified: int | None = Field(default=None, alias="SuspiciousFilesModified")
    suspicious_files_deleted: int | None = Field(default=None, alias="SuspiciousFilesDeleted")
    files_added: int | None = Field(default=None, alias="FilesAdded")
    files_modified: int | None = Field(default=None, alias="FilesModified")
    files_deleted: int | None = Field(default=None, alias="FilesDeleted")
    added_gb: float | None = Field(default=None, alias="AddedGB")
    modified_gb: float | None = Field(default=None, alias="ModifiedGB")
    deleted_gb: float | None = Field(default=None, alias="DeletedGB")


class ThreatHuntRecord(FlatRecord):
    """Threat hunt listing entry."""

    hunt_id: str | None = Field(default=None, alias="HuntID")
    name: str | None = Field(default=None, alias="Name")
    status: str | None = Field(default=None, alias="Status")
    hunt_type: str | None = Field(default=None, alias="Type")
    start_time: datetime | None = Field(default=None, alias="StartTime")
    end_time: datetime | None = Field(default=None, alias="EndTime")
    cluster: str | None = Field(default=None, alias="Cluster")
    matches: int | None = Field(default=None, alias="Matches")
    objects_scanned: int | None = Field(default=None, alias="ObjectsScanned")
    objects_matched: int | None = Field(default=None, alias="ObjectsMatched")
    snapshots_scanned: int | None = Field(default=None, alias="SnapshotsScanned")
    url: str | None = Field(default=None, alias="URL")
