"""Date normalization and interval arithmetic shared by the calendar tools."""

from .datetime_format import (
    CANONICAL_PATTERN,
    event_time_zone,
    format_instant,
    is_valid_format,
    normalize,
    parse_datetime_value,
    parse_event_boundary,
    resolve_timezone,
    timezone_name,
    to_event_datetime,
    to_instant,
    with_offset,
)
from .intervals import busy_slots, event_interval, find_conflicts, find_free_slots, overlaps

__all__ = [
    "CANONICAL_PATTERN",
    "busy_slots",
    "event_interval",
    "event_time_zone",
    "find_conflicts",
    "find_free_slots",
    "format_instant",
    "is_valid_format",
    "normalize",
    "overlaps",
    "parse_datetime_value",
    "parse_event_boundary",
    "resolve_timezone",
    "timezone_name",
    "to_event_datetime",
    "to_instant",
    "with_offset",
]
