from collections.abc import Iterable
from typing import Any

import pandas as pd

from ..resources.models import AnomalyRecord

SUMMARY_COLUMNS = [
    "RSCInstance",
    "ObjectID",
    "Object",
    "ObjectType",
    "Cluster",
    "Anomalies",
    "FirstDetection",
    "LastDetection",
    "SuspiciousFiles",
]

_SUSPICIOUS = ["SuspiciousFilesAdded", "SuspiciousFilesModified", "SuspiciousFilesDeleted"]


def summarize_anomalies(
    data: Iterable[AnomalyRecord | dict[str, Any]] | pd.DataFrame,
) -> pd.DataFrame:
    """
    Roll anomaly results up to one row per object.
    Counts anomalies, takes the first and last detection time and totals the
    suspicious added, modified and deleted files. Rows are sorted by anomaly
    count (descending), then object name.
    """
    if isinstance(data, pd.DataFrame):
        df = data.copy()
    else:
        rows = [r.to_row() if isinstance(r, AnomalyRecord) else dict(r) for r in data]
        df = pd.DataFrame(rows)
    if df.empty or "ObjectID" not in df.columns:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    for column in ["RSCInstance", "Object", "ObjectType", "Cluster", "DetectionTime", *_SUSPICIOUS]:
        if column not in df.columns:
            df[column] = None
    df["DetectionTime"] = pd.to_datetime(df["DetectionTime"], errors="coerce", utc=True)
    df["SuspiciousFiles"] = (
        df[_SUSPICIOUS].apply(pd.to_numeric, errors="coerce").fillna(0).sum(axis=1).astype(int)
    )

    result = (
        df.groupby("ObjectID", dropna=False)
        .agg(
            RSCInstance=("RSCInstance", "first"),
            Object=("Object", "first"),
            ObjectType=("ObjectType", "first"),
            Cluster=("Cluster", "first"),
            Anomalies=("ObjectID", "size"),
            FirstDetection=("DetectionTime", "min"),
            LastDetection=("DetectionTime", "max"),
            SuspiciousFiles=("SuspiciousFiles", "sum"),
        )
        .reset_index()
        .sort_values(["Anomalies", "Object"], ascending=[False, True])
        .reset_index(drop=True)
    )
    return result[SUMMARY_COLUMNS]
