"""Client-side event matching and duplicate suppression.

The events API filters by object *name*, which can collide across
objects. Events are fetched by name and then matched to the object on
``fid`` locally.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from ..resources.fetch import RecordSet, get_events
from ..resources.models import EventRecord
from ..session.client import RscSession

logger = logging.getLogger(__name__)


def _utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def filter_events_for_object(events: Iterable[EventRecord], object_id: str) -> list[EventRecord]:
    """Events whose ``fid`` equals *object_id*."""
    return [event for event in events if event.object_fid == object_id]


def dedupe_events(
    events: Iterable[EventRecord],
    since: datetime | None = None,
    until: datetime | None = None,
) -> list[EventRecord]:
    """
    Drop repeated event IDs and events outside ``[since, until]``.

    The first occurrence of each ``EventID`` wins; order is preserved.
    Events without a ``LastUpdated`` time are kept only when no range is given.
    """
    since, until = _utc(since), _utc(until)
    seen: set[str] = set()
    kept: list[EventRecord] = []

    for event in events:
        when = event.last_updated
        if since is not None or until is not None:
            if when is None:
                continue
            if since is not None and when < since:
                continue
            if until is not None and when > until:
                continue
        key = event.event_id or ""
        if key and key in seen:
            continue
        seen.add(key)
        kept.append(event)

    return kept


def object_events(
    session: RscSession,
    object_id: str,
    object_name: str,
    since: datetime | None = None,
    until: datetime | None = None,
) -> RecordSet[EventRecord]:
    """
    Events for one object, matched on ``fid`` and deduplicated.

    Errors from the fetch are passed through with whatever records were
    retrieved before the error.
    """
    fetched = get_events(session, object_name=object_name, since=since)
    matched = filter_events_for_object(fetched, object_id)
    unique = dedupe_events(matched, since=since, until=until)
    logger.debug(
        f"{object_name}: {len(fetched)} events by name, {len(matched)} for {object_id}, "
        f"{len(unique)} after de-duplication"
    )
    return RecordSet(records=unique, errors=fetched.errors)
