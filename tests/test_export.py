"""Tests for CSV/JSON export."""

import json

import pandas as pd
import pytest

from rsc_reporting.export import to_dataframe, write_records
from rsc_reporting.resources.models import ClusterRecord

RECORDS = [
    ClusterRecord(RSCInstance="acme.my.rubrik.com", Cluster="prod-01", TotalStorageGB=12.5),
    ClusterRecord(RSCInstance="acme.my.rubrik.com", Cluster="dr-01"),
]


def test_to_dataframe_uses_column_names():
    df = to_dataframe(RECORDS)

    assert list(df["Cluster"]) == ["prod-01", "dr-01"]
    assert "RSCInstance" in df.columns


def test_write_csv(tmp_path):
    path = write_records(RECORDS, tmp_path / "out" / "clusters.csv")

    df = pd.read_csv(path)
    assert list(df["Cluster"]) == ["prod-01", "dr-01"]
    assert df.loc[0, "TotalStorageGB"] == 12.5


def test_write_json(tmp_path):
    path = write_records([{"a": 1}, {"a": 2}], tmp_path / "rows.JSON")

    assert json.loads(path.read_text()) == [{"a": 1}, {"a": 2}]


def test_unsupported_suffix(tmp_path):
    with pytest.raises(ValueError, match="Unsupported output format"):
        write_records(RECORDS, tmp_path / "clusters.xlsx")
