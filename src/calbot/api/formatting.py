from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, List, Optional

from ..core import parse_event_boundary
from ..domain import TimeSlot

NO_EVENTS_MESSAGE = "No events found in the specified time range."


def _local(moment: datetime, tz: Optional[tzinfo]) -> datetime:
    return moment.astimezone(tz) if tz else moment


def format_moment(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    return _local(moment, tz).strftime("%a %b %d, %Y %I:%M %p %Z").strip()


def format_time_range(event: Dict[str, Any], tz: Optional[tzinfo] = None) -> Optional[str]:
    start_raw = event.get("start") or {}
    end_raw = event.get("end") or {}
    if start_raw.get("date") and not start_raw.get("dateTime"):
        end_date = end_raw.get("date")
        if end_date and end_date != start_raw["date"]:
            return f"{start_raw['date']} to {end_date} (all day)"
        return f"{start_raw['date']} (all day)"

    start = parse_event_boundary(start_raw, tz=tz)
    end = parse_event_boundary(end_raw, tz=tz)
    if start is None:
        return None
    if end is None:
        return format_moment(start, tz)
    start_local, end_local = _local(start, tz), _local(end, tz)
    if start_local.date() == end_local.date():
        return f"{format_moment(start, tz)} - {end_local.strftime('%I:%M %p')}"
    return f"{format_moment(start, tz)} - {format_moment(end, tz)}"


def format_event(event: Dict[str, Any], tz: Optional[tzinfo] = None) -> str:
    lines = [event.get("summary") or "Untitled Event"]
    if event.get("id"):
        lines.append(f"   Event ID: {event['id']}")
    calendar_id = event.get("calendarId") or (event.get("organizer") or {}).get("email")
    if calendar_id:
        lines.append(f"   Calendar ID: {calendar_id}")
    when = format_time_range(event, tz)
    if when:
        lines.append(f"   When: {when}")
    if event.get("location"):
        lines.append(f"   Location: {event['location']}")
    attendees = [attendee.get("email") for attendee in event.get("attendees") or [] if attendee.get("email")]
    if attendees:
        lines.append(f"   Attendees: {', '.join(attendees)}")
    if event.get("description"):
        lines.append(f"   Description: {event['description']}")
    if event.get("htmlLink"):
        lines.append(f"   Link: {event['htmlLink']}")
    return "\n".join(lines)


def format_events(events: Iterable[Dict[str, Any]], tz: Optional[tzinfo] = None) -> str:
    blocks = [f"{index}. {format_event(event, tz)}" for index, event in enumerate(events, start=1)]
    return "\n\n".join(blocks) if blocks else NO_EVENTS_MESSAGE


def format_conflicts(conflicts: List[Dict[str, Any]], tz: Optional[tzinfo] = None) -> str:
    if not conflicts:
        return "No conflicts found in the specified time range."
    return f"Found {len(conflicts)} conflicts:\n\n{format_events(conflicts, tz)}"


def format_free_slots(slots: List[TimeSlot], tz: Optional[tzinfo] = None) -> str:
    if not slots:
        return "No free time slots found in the specified range."
    lines = [
        f"{index}. {format_moment(slot.start, tz)} - {format_moment(slot.end, tz)} ({slot.minutes:g} minutes)"
        for index, slot in enumerate(slots, start=1)
    ]
    return f"Found {len(slots)} free time slots:\n\n" + "\n".join(lines)


def format_calendars(calendars: Iterable[Dict[str, Any]]) -> str:
    blocks = []
    for index, calendar in enumerate(calendars, start=1):
        summary = calendar.get("summary") or "Untitled Calendar"
        marker = " (primary)" if calendar.get("primary") else ""
        description = calendar.get("description") or "No description"
        blocks.append(f"{index}. {summary}{marker}\n   ID: {calendar.get('id')}\n   {description}")
    if not blocks:
        return "No calendars available."
    return "Available calendars:\n\n" + "\n\n".join(blocks)
