"""Derived reports built on fetched records."""

from .anomalies import summarize_anomalies
from .compliance import ComplianceWindow, compliance_windows, object_compliance, window_anchor
from .events import dedupe_events, filter_events_for_object, object_events
from .threat_hunt import (
    ThreatHuntMatch,
    ThreatHuntObjectSummary,
    ThreatHuntRollup,
    ThreatHuntSnapshotSummary,
    ThreatHuntSummary,
    rollup_threat_hunt,
)

__all__ = [
    "ComplianceWindow",
    "ThreatHuntMatch",
    "ThreatHuntObjectSummary",
    "ThreatHuntRollup",
    "ThreatHuntSnapshotSummary",
    "ThreatHuntSummary",
    "compliance_windows",
    "dedupe_events",
    "filter_events_for_object",
    "object_compliance",
    "object_events",
    "rollup_threat_hunt",
    "summarize_anomalies",
    "window_anchor",
]
