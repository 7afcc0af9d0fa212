"""Tests for resource fetchers and their field tables."""

import json
from datetime import datetime, timezone

import httpx
import pytest
import respx

from rsc_reporting.errors import NotConnectedError
from rsc_reporting.resources import (
    KNOWN_FIELD_DISCREPANCIES,
    RESOURCES,
    get_clusters,
    get_ec2_instances,
    get_ec2_volumes,
    get_events,
    get_objects,
    get_resource,
    get_s3_bucket_tags,
    get_s3_buckets,
    get_sla_domains,
    get_snapshots,
    get_threat_hunt_result,
)
from rsc_reporting.session import ensure_connected

from .conftest import BASE_URL, GRAPHQL_URL, INSTANCE, connection_page


def _variables(route, index: int = 0) -> dict:
    return json.loads(route.calls[index].request.content)["variables"]


BUCKETS = [
    {
        "__typename": "AwsNativeS3Bucket",
        "id": "b-1",
        "name": "logs",
        "region": "US_EAST_1",
        "awsAccount": {"name": "prod", "nativeId": "111122223333"},
        "cloudNativeTags": [{"key": "env", "value": "prod"}, {"key": "owner", "value": "ops"}],
    },
    {
        "__typename": "AwsNativeS3Bucket",
        "id": "b-2",
        "name": "untagged",
        "region": "US_WEST_2",
        "awsAccount": {"name": "dev", "nativeId": "444455556666"},
        "cloudNativeTags": [],
    },
]

INSTANCES = [
    {
        "id": "i-rubrik-1",
        "instanceName": "web-01",
        "instanceNativeId": "i-0abc",
        "region": "US_EAST_1",
        "awsAccount": {"name": "prod", "nativeId": "111122223333"},
        "isExocomputeConfigured": True,
        "attachedEbsVolumes": [
            {"id": "v-1", "volumeNativeId": "vol-0aaa", "volumeName": "root", "sizeInGiBs": 8},
            {"id": "v-2", "volumeNativeId": "vol-0bbb", "volumeName": "data", "sizeInGiBs": 100},
        ],
        "tags": [{"key": "env", "value": "prod"}],
    }
]


@respx.mock
def test_s3_bucket_tags_fan_out_per_tag(session):
    respx.post(GRAPHQL_URL).mock(return_value=connection_page("awsNativeS3Buckets", BUCKETS))

    tags = get_s3_bucket_tags(session)

    assert tags.ok
    assert [(t.bucket, t.tag_key, t.tag_value) for t in tags] == [
        ("logs", "env", "prod"),
        ("logs", "owner", "ops"),
    ]
    assert all(t.rsc_instance == INSTANCE for t in tags)
    assert tags.records[0].aws_account_id == "111122223333"


@respx.mock
def test_s3_buckets_one_record_per_bucket_with_url(session):
    respx.post(GRAPHQL_URL).mock(return_value=connection_page("awsNativeS3Buckets", BUCKETS))

    buckets = get_s3_buckets(session)

    assert [b.bucket for b in buckets] == ["logs", "untagged"]
    assert [b.tag_count for b in buckets] == [2, 0]
    assert buckets.records[0].url == f"{BASE_URL}/aws/s3/b-1"


@respx.mock
def test_ec2_volumes_fan_out_and_volume_native_id_is_null(session):
    respx.post(GRAPHQL_URL).mock(return_value=connection_page("awsNativeEc2Instances", INSTANCES))

    volumes = get_ec2_volumes(session)

    assert [(v.instance, v.volume_id, v.volume_size_gib) for v in volumes] == [
        ("web-01", "v-1", 8),
        ("web-01", "v-2", 100),
    ]
    # Path differs from the schema's volumeNativeId; kept as-is
    assert all(v.volume_native_id is None for v in volumes)


@respx.mock
def test_ec2_instances_exocompute_flag_is_null(session):
    respx.post(GRAPHQL_URL).mock(return_value=connection_page("awsNativeEc2Instances", INSTANCES))

    instances = get_ec2_instances(session)

    assert instances.records[0].volumes == 2
    assert instances.records[0].exocompute_configured is None
    assert instances.records[0].url == f"{BASE_URL}/aws/ec2/i-rubrik-1"


def test_known_discrepancies_match_field_tables():
    for resource, output_name, path, _ in KNOWN_FIELD_DISCREPANCIES:
        paths = {f.name: f.path for f in RESOURCES[resource].fields}
        assert paths[output_name] == path


@respx.mock
def test_objects_filters_and_url(session):
    route = respx.post(GRAPHQL_URL).mock(
        return_value=connection_page(
            "snappableConnection",
            [
                {
                    "fid": "fid-1",
                    "id": "VirtualMachine:::1",
                    "name": "vm-01",
                    "objectType": "VmwareVirtualMachine",
                    "slaDomain": {"id": "sla-1", "name": "Gold"},
                    "cluster": {"id": "c-1", "name": "prod-01"},
                    "lastSnapshot": "2024-05-10T10:00:00.000Z",
                    "logicalBytes": 5_000_000_000,
                },
                {"name": "no-fid"},
            ],
        )
    )

    objects = get_objects(session, object_types=["VmwareVirtualMachine"], name="vm")

    first, second = objects.records
    assert first.object_id == "fid-1"
    assert first.url == f"{BASE_URL}/object_details/fid-1"
    assert first.last_snapshot == datetime(2024, 5, 10, 10, 0, tzinfo=timezone.utc)
    assert first.logical_gb == 5.0
    assert second.url is None
    assert _variables(route)["filter"] == {
        "objectType": ["VmwareVirtualMachine"],
        "searchTerm": "vm",
    }
    assert _variables(route)["first"] == 2


@respx.mock
def test_sla_domains_union_fields(session):
    respx.post(GRAPHQL_URL).mock(
        return_value=connection_page(
            "slaDomains",
            [
                {
                    "__typename": "GlobalSlaReply",
                    "id": "g-1",
                    "name": "Gold",
                    "description": "Daily",
                    "objectTypes": ["VSPHERE_OBJECT_TYPE"],
                },
                {
                    "__typename": "ClusterSlaDomain",
                    "id": "c-sla",
                    "name": "Legacy",
                    "description": "hidden",
                    "cluster": {"id": "c-1", "name": "prod-01"},
                },
            ],
        )
    )

    slas = get_sla_domains(session)

    global_sla, cluster_sla = slas.records
    assert global_sla.description == "Daily"
    assert global_sla.cluster is None
    assert cluster_sla.description is None
    assert cluster_sla.cluster == "prod-01"


@respx.mock
def test_events_filters(session):
    route = respx.post(GRAPHQL_URL).mock(
        return_value=connection_page(
            "activitySeriesConnection",
            [
                {
                    "activitySeriesId": "e-1",
                    "fid": "fid-1",
                    "objectName": "vm-01",
                    "lastActivityType": "BACKUP",
                    "lastUpdated": "2024-05-10T10:00:00Z",
                    "activityConnection": {"nodes": [{"message": "Backup succeeded"}]},
                }
            ],
            shape="edges",
        )
    )

    events = get_events(
        session,
        object_name="vm-01",
        since=datetime(2024, 5, 1, tzinfo=timezone.utc),
        event_types=["BACKUP"],
    )

    assert events.records[0].message == "Backup succeeded"
    assert events.records[0].object_fid == "fid-1"
    filters = _variables(route)["filters"]
    assert filters == {
        "objectName": "vm-01",
        "lastUpdatedTimeGt": "2024-05-01T00:00:00Z",
        "lastActivityType": ["BACKUP"],
    }
    assert _variables(route)["sortBy"] == "LAST_UPDATED"


@respx.mock
def test_snapshots_carry_object_id(session):
    route = respx.post(GRAPHQL_URL).mock(
        return_value=connection_page(
            "snapshotOfASnappableConnection",
            [{"id": "s-1", "date": "2024-05-10T01:00:00Z", "isOnDemandSnapshot": False}],
            shape="edges",
        )
    )

    snapshots = get_snapshots(session, "fid-1")

    assert snapshots.records[0].object_id == "fid-1"
    assert snapshots.records[0].on_demand is False
    assert _variables(route)["objectId"] == "fid-1"


@respx.mock
def test_errors_come_back_with_partial_records(session):
    respx.post(GRAPHQL_URL).mock(
        side_effect=[
            connection_page("clusterConnection", [{"id": "c-1", "name": "a"}], "c1", True),
            httpx.Response(200, json={"errors": [{"message": "Internal error"}]}),
        ]
    )

    clusters = get_clusters(session)

    assert [c.cluster for c in clusters] == ["a"]
    assert clusters.errors == ["Internal error"]
    assert clusters.records[0].url == f"{BASE_URL}/clusters/c-1/overview"


@respx.mock
def test_invalid_node_is_reported_and_others_kept(session):
    respx.post(GRAPHQL_URL).mock(
        return_value=connection_page(
            "clusterConnection",
            [
                {"id": "c-1", "name": "a", "estimatedRunway": 90},
                {"id": "c-2", "name": "b", "estimatedRunway": 12.5},
            ],
        )
    )

    clusters = get_clusters(session)

    assert [c.cluster for c in clusters] == ["a"]
    assert clusters.records[0].estimated_runway_days == 90
    assert len(clusters.errors) == 1
    assert clusters.errors[0].startswith("Skipped clusters record b: EstimatedRunwayDays")


@respx.mock
def test_threat_hunt_result(session):
    respx.post(GRAPHQL_URL).mock(
        return_value=httpx.Response(
            200, json={"data": {"threatHuntResult": {"huntId": "h-1", "objects": []}}}
        )
    )

    result, errors = get_threat_hunt_result(session, "h-1")

    assert result == {"huntId": "h-1", "objects": []}
    assert errors == []


def test_disconnected_session_is_rejected(session):
    session.disconnect()

    with pytest.raises(NotConnectedError):
        get_clusters(session)


def test_ensure_connected_without_session():
    with pytest.raises(NotConnectedError, match="Run connect"):
        ensure_connected(None)


def test_get_resource_names():
    assert get_resource("aws-s3-bucket-tags").fan_out == "cloudNativeTags"
    assert get_resource("SLA_DOMAINS").name == "sla_domains"
    with pytest.raises(KeyError):
        get_resource("tape_libraries")
