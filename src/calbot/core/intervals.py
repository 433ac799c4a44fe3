from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..domain import TimeSlot
from .datetime_format import parse_event_boundary


def overlaps(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open overlap test: intervals that only touch do not overlap."""

    return start_a < end_b and start_b < end_a


def event_interval(event: Dict[str, Any], *, tz: Optional[tzinfo] = None) -> Optional[Tuple[datetime, datetime]]:
    start = parse_event_boundary(event.get("start"), tz=tz)
    end = parse_event_boundary(event.get("end"), tz=tz)
    if start is None or end is None:
        return None
    return start, end


def find_conflicts(
    events: Iterable[Dict[str, Any]],
    window_start: datetime,
    window_end: datetime,
    *,
    tz: Optional[tzinfo] = None,
) -> List[Dict[str, Any]]:
    conflicts: list[Dict[str, Any]] = []
    for event in events:
        interval = event_interval(event, tz=tz)
        if interval is None:
            continue
        if overlaps(interval[0], interval[1], window_start, window_end):
            conflicts.append(event)
    return conflicts


def busy_slots(events: Iterable[Dict[str, Any]], *, tz: Optional[tzinfo] = None) -> List[TimeSlot]:
    """Timed events as busy intervals sorted by start; all-day events never block time."""

    slots = []
    for event in events:
        if not (event.get("start") or {}).get("dateTime") or not (event.get("end") or {}).get("dateTime"):
            continue
        interval = event_interval(event, tz=tz)
        if interval is not None:
            slots.append(TimeSlot(start=interval[0], end=interval[1]))
    return sorted(slots, key=lambda slot: slot.start)


def find_free_slots(
    busy: Iterable[TimeSlot],
    window_start: datetime,
    window_end: datetime,
    minimum_minutes: int,
) -> List[TimeSlot]:
    """Sweep the window left to right and collect gaps of at least ``minimum_minutes``."""

    target_delta = timedelta(minutes=minimum_minutes)
    spans = [(slot.start, slot.end) for slot in busy]
    spans.sort(key=lambda span: span[0])
    free: list[TimeSlot] = []
    cursor = window_start
    for start_dt, end_dt in spans:
        if cursor >= window_end:
            break
        if end_dt <= cursor:
            continue
        gap_end = min(start_dt, window_end)
        if gap_end > cursor and gap_end - cursor >= target_delta:
            free.append(TimeSlot(start=cursor, end=gap_end))
        cursor = max(cursor, end_dt)
    if window_end > cursor and window_end - cursor >= target_delta:
        free.append(TimeSlot(start=cursor, end=window_end))
    return free
