"""Flatten nested GraphQL nodes into flat records via declared field tables."""

from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, Field

from .conversions import bytes_to_gb, days_since, hours_since, to_utc_datetime

Conversion = Literal["timestamp", "gb", "hours_since", "days_since", "bool", "count", "join"]


class FieldSpec(BaseModel):
    """Mapping for a single output field."""

    name: str = Field(description="Output field name (e.g., 'ObjectID')")
    path: str = Field(description="Dot-notation path in the node (e.g., 'cluster.name')")
    convert: Conversion | None = Field(default=None, description="Conversion to apply")
    scope: Literal["node", "item"] = Field(
        default="node",
        description="Read from the node, or from the fanned-out element",
    )
    on_type: str | None = Field(
        default=None,
        description="Only read when the node's __typename matches (union fragments)",
    )

    model_config = {"frozen": True}


def field(name: str, path: str, convert: Conversion | None = None, **kwargs: Any) -> FieldSpec:
    """Shorthand for building field tables."""
    return FieldSpec(name=name, path=path, convert=convert, **kwargs)


def get_path(data: Any, path: str) -> Any:
    """
    Extract a value from nested dicts using dot notation.

    Numeric parts index into lists (``activityConnection.nodes.0.message``).
    Returns None when any step is missing.
    """
    current = data
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, dict):
            current = current.get(part)
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            current = current[index] if index < len(current) else None
        else:
            return None
    return current


def convert_value(value: Any, convert: Conversion | None, now: datetime) -> Any:
    """Apply a named conversion."""
    if convert is None:
        return value
    if convert == "timestamp":
        return to_utc_datetime(value)
    if convert == "gb":
        return bytes_to_gb(value)
    if convert == "hours_since":
        return hours_since(value, now)
    if convert == "days_since":
        return days_since(value, now)
    if value is None:
        return None
    if convert == "bool":
        return bool(value)
    if convert == "count":
        return len(value) if isinstance(value, (list, tuple)) else 0
    if convert == "join":
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value if v)
        return str(value)
    return value


def flatten(
    node: dict[str, Any],
    fields: Iterable[FieldSpec],
    instance: str,
    item: Any = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Flatten one node into a record.

    Args:
        node: Raw GraphQL node
        fields: Field table
        instance: RSC instance hostname, stored as ``RSCInstance``
        item: Fanned-out element for ``scope="item"`` fields
        now: Reference instant for relative-age fields (default: now, UTC)

    Returns:
        Dict of output field name to value; unresolved fields are None
    """
    now = now or datetime.now(timezone.utc)
    typename = node.get("__typename")
    record: dict[str, Any] = {"RSCInstance": instance}

    for spec in fields:
        if spec.on_type and typename != spec.on_type:
            record[spec.name] = None
            continue
        source = item if spec.scope == "item" else node
        record[spec.name] = convert_value(get_path(source, spec.path), spec.convert, now)

    return record


def flatten_all(
    nodes: Iterable[dict[str, Any]],
    fields: Iterable[FieldSpec],
    instance: str,
    fan_out: str | None = None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """
    Flatten nodes in order.

    Without ``fan_out`` each node yields one record. With ``fan_out`` (a dot
    path to a list in the node) each node yields one record per element,
    and nodes with an empty or missing list yield nothing.
    """
    fields = list(fields)
    now = now or datetime.now(timezone.utc)
    records: list[dict[str, Any]] = []

    for node in nodes:
        if fan_out is None:
            records.append(flatten(node, fields, instance, now=now))
            continue
        items = get_path(node, fan_out)
        if not isinstance(items, list):
            continue
        for item in items:
            records.append(flatten(node, fields, instance, item=item, now=now))

    return records
