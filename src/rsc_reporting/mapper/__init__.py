"""Transformation of GraphQL nodes into flat records."""

from .conversions import bytes_to_gb, days_since, hours_since, to_unix_ms, to_utc_datetime
from .flatten import FieldSpec, field, flatten, flatten_all, get_path

__all__ = [
    "FieldSpec",
    "bytes_to_gb",
    "days_since",
    "field",
    "flatten",
    "flatten_all",
    "get_path",
    "hours_since",
    "to_unix_ms",
    "to_utc_datetime",
]
