"""GraphQL documents for the RSC reporting resources."""

from .executor import PaginatedQuery

OBJECTS_QUERY = """
query ObjectListQuery($first: Int, $after: String, $filter: SnappableFilterInput) {
  snappableConnection(first: $first, after: $after, filter: $filter) {
    nodes {
      id
      fid
      name
      objectType
      location
      slaDomain {
        id
        name
      }
      cluster {
        id
        name
      }
      protectionStatus
      complianceStatus
      archivalComplianceStatus
      replicationComplianceStatus
      lastSnapshot
      latestArchivalSnapshot
      latestReplicationSnapshot
      totalSnapshots
      missedSnapshots
      logicalBytes
      physicalBytes
      transferredBytes
      dataReduction
      logicalDataReduction
      pullTime
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

SNAPSHOTS_QUERY = """
query SnapshotsListQuery($objectId: String!, $first: Int, $after: String, $sortOrder: SortOrder) {
  snapshotOfASnappableConnection(workloadId: $objectId, first: $first, after: $after, sortOrder: $sortOrder) {
    edges {
      node {
        id
        date
        expirationDate
        isOnDemandSnapshot
        isExpired
        isIndexed
        isQuarantined
        isAnomaly
        ... on CdmSnapshot {
          cluster {
            id
            name
          }
          slaDomain {
            name
          }
          snapshotRetentionInfo {
            archivalInfos {
              name
              isSnapshotPresent
            }
          }
        }
        ... on PolarisSnapshot {
          isReplica
          isArchivalCopy
          slaDomain {
            name
          }
        }
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

EVENTS_QUERY = """
query EventSeriesListQuery($first: Int, $after: String, $filters: ActivitySeriesFilter, $sortBy: ActivitySeriesSortField, $sortOrder: SortOrder) {
  activitySeriesConnection(first: $first, after: $after, filters: $filters, sortBy: $sortBy, sortOrder: $sortOrder) {
    edges {
      node {
        id
        fid
        activitySeriesId
        lastUpdated
        lastActivityType
        lastActivityStatus
        objectId
        objectName
        objectType
        severity
        progress
        isCancelable
        location
        clusterUuid
        clusterName
        startTime
        activityConnection(first: 1) {
          nodes {
            id
            message
            time
            severity
          }
        }
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

CLUSTERS_QUERY = """
query ClusterListQuery($first: Int, $after: String, $filter: ClusterFilterInput) {
  clusterConnection(first: $first, after: $after, filter: $filter) {
    nodes {
      id
      name
      version
      status
      systemStatus
      type
      productType
      lastConnectionTime
      geoLocation {
        address
      }
      metric {
        totalCapacity
        usedCapacity
        availableCapacity
        snapshotCapacity
        lastUpdateTime
      }
      estimatedRunway
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

SLA_DOMAINS_QUERY = """
query SLAListQuery($first: Int, $after: String, $filter: [GlobalSlaFilterInput!]) {
  slaDomains(first: $first, after: $after, filter: $filter) {
    edges {
      node {
        id
        name
        __typename
        ... on GlobalSlaReply {
          description
          protectedObjectCount
          objectTypes
          isRetentionLockedSla
          baseFrequency {
            duration
            unit
          }
          localRetentionLimit {
            duration
            unit
          }
        }
        ... on ClusterSlaDomain {
          fid
          protectedObjectCount
          isRetentionLockedSla
          cluster {
            id
            name
          }
          baseFrequency {
            duration
            unit
          }
        }
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

AWS_S3_BUCKETS_QUERY = """
query AwsS3BucketListQuery($first: Int, $after: String, $filter: AwsNativeS3BucketFilters) {
  awsNativeS3Buckets(first: $first, after: $after, bucketFilters: $filter) {
    edges {
      node {
        id
        name
        __typename
        ... on AwsNativeS3Bucket {
          nativeName
          region
          creationTime
          isExocomputeConfigured
          isOnboarding
          awsAccount {
            id
            name
            nativeId
          }
          effectiveSlaDomain {
            id
            name
          }
          cloudNativeTags {
            key
            value
          }
        }
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

AWS_EC2_INSTANCES_QUERY = """
query AwsEc2InstanceListQuery($first: Int, $after: String, $filter: AwsNativeEc2InstanceFilters) {
  awsNativeEc2Instances(first: $first, after: $after, ec2InstanceFilters: $filter) {
    edges {
      node {
        id
        instanceNativeId
        instanceName
        instanceType
        region
        vpcName
        vpcId
        isExocomputeConfigured
        awsAccount {
          id
          name
          nativeId
        }
        effectiveSlaDomain {
          id
          name
        }
        attachedEbsVolumes {
          id
          volumeNativeId
          volumeName
          sizeInGiBs
          volumeType
        }
        tags {
          key
          value
        }
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

ANOMALIES_QUERY = """
query AnomalyListQuery($first: Int, $after: String, $filter: AnomalyResultFilterInput) {
  anomalyResultOpaqueConnection(first: $first, after: $after, filter: $filter) {
    nodes {
      id
      workloadId
      objectName
      objectType
      location
      severity
      detectionTime
      snapshotDate
      snapshotFid
      previousSnapshotFid
      isAnomaly
      anomalyProbability
      encryption
      suspiciousFilesAdded
      suspiciousFilesModified
      suspiciousFilesDeleted
      filesAdded
      filesModified
      filesDeleted
      bytesAdded
      bytesModified
      bytesDeleted
      cluster {
        id
        name
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

THREAT_HUNTS_QUERY = """
query ThreatHuntListQuery($first: Int, $after: String, $beginTime: DateTime, $endTime: DateTime) {
  threatHunts(first: $first, after: $after, beginTime: $beginTime, endTime: $endTime) {
    edges {
      node {
        huntId
        name
        status
        huntType
        startTime
        endTime
        clusterName
        matchesFound
        objectsScanned
        objectsMatched
        snapshotsScanned
      }
    }
    pageInfo {
      endCursor
      hasNextPage
    }
  }
}
"""

THREAT_HUNT_RESULT_QUERY = """
query ThreatHuntResultQuery($huntId: String!) {
  threatHuntResult(huntId: $huntId) {
    huntId
    name
    status
    startTime
    endTime
    objects {
      fid
      name
      objectType
      cluster {
        id
        name
      }
      snapshotResults {
        snapshotFid
        snapshotDate
        scannedFilesCount
        skippedFilesCount
        matches {
          indicator
          matchType
          filePath
          fileSizeBytes
          sha256
          modifiedTime
        }
      }
    }
  }
}
"""

OBJECTS = PaginatedQuery(
    operation_name="ObjectListQuery",
    document=OBJECTS_QUERY,
    connection="snappableConnection",
)

SNAPSHOTS = PaginatedQuery(
    operation_name="SnapshotsListQuery",
    document=SNAPSHOTS_QUERY,
    variables={"sortOrder": "DESC"},
    connection="snapshotOfASnappableConnection",
)

EVENTS = PaginatedQuery(
    operation_name="EventSeriesListQuery",
    document=EVENTS_QUERY,
    variables={"sortBy": "LAST_UPDATED", "sortOrder": "DESC"},
    connection="activitySeriesConnection",
)

CLUSTERS = PaginatedQuery(
    operation_name="ClusterListQuery",
    document=CLUSTERS_QUERY,
    connection="clusterConnection",
)

SLA_DOMAINS = PaginatedQuery(
    operation_name="SLAListQuery",
    document=SLA_DOMAINS_QUERY,
    connection="slaDomains",
)

AWS_S3_BUCKETS = PaginatedQuery(
    operation_name="AwsS3BucketListQuery",
    document=AWS_S3_BUCKETS_QUERY,
    connection="awsNativeS3Buckets",
)

AWS_EC2_INSTANCES = PaginatedQuery(
    operation_name="AwsEc2InstanceListQuery",
    document=AWS_EC2_INSTANCES_QUERY,
    connection="awsNativeEc2Instances",
)

ANOMALIES = PaginatedQuery(
    operation_name="AnomalyListQuery",
    document=ANOMALIES_QUERY,
    connection="anomalyResultOpaqueConnection",
)

THREAT_HUNTS = PaginatedQuery(
    operation_name="ThreatHuntListQuery",
    document=THREAT_HUNTS_QUERY,
    connection="threatHunts",
)

THREAT_HUNT_RESULT = PaginatedQuery(
    operation_name="ThreatHuntResultQuery",
    document=THREAT_HUNT_RESULT_QUERY,
    connection="threatHuntResult",
    paginated=False,
)
