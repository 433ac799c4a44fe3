from __future__ import annotations

from .registry import DATE_TIME_FORMAT, EMAIL_FORMAT, ToolRegistry, ToolSpec

_FLEXIBLE_DATE_HINT = 'accepts ISO 8601, "today", "tomorrow", "1/15/2024", "in 2 hours", etc.'


def _datetime(description: str) -> dict:
    return {"type": "string", "format": DATE_TIME_FORMAT, "description": description}


def _attendees(description: str) -> dict:
    return {
        "type": "array",
        "items": {"type": "string", "format": EMAIL_FORMAT},
        "description": description,
    }


def _calendar_id(description: str) -> dict:
    return {"type": "string", "description": description}


BASH_TOOL = ToolSpec(
    name="bash",
    description=(
        "Execute a shell command on the local machine and return its combined output and exit code. "
        "Commands are killed after a short timeout. Be careful with destructive commands."
    ),
    properties={"command": {"type": "string", "description": "The shell command to execute"}},
    required=("command",),
    category="local",
)

GET_EVENTS_TOOL = ToolSpec(
    name="get_events_in_time_range",
    description=(
        "Get events from Google Calendar within a specified time range. Can search both upcoming and "
        "historical events. Useful for checking the schedule and seeing what is planned or what happened."
    ),
    properties={
        "maxResults": {
            "type": "integer",
            "description": "Maximum number of events to return (default: 10)",
            "minimum": 1,
            "maximum": 100,
        },
        "calendarId": _calendar_id('Calendar ID to query (default: "primary" for main calendar)'),
        "timeMin": _datetime(f"Lower bound (inclusive) for event start time ({_FLEXIBLE_DATE_HINT}, default: now)"),
        "timeMax": _datetime(f"Upper bound (exclusive) for event end time ({_FLEXIBLE_DATE_HINT})"),
    },
    ordering=(("timeMin", "timeMax"),),
)

CREATE_EVENT_TOOL = ToolSpec(
    name="create_event",
    description="Create a new event in Google Calendar. Use this to schedule meetings, appointments, or any calendar events.",
    properties={
        "title": {"type": "string", "description": "Event title/summary"},
        "startDateTime": _datetime('Event start date and time in ISO 8601 format (e.g., "2024-01-15T14:30:00")'),
        "endDateTime": _datetime("Event end date and time in ISO 8601 format"),
        "description": {"type": "string", "description": "Event description (optional)"},
        "location": {"type": "string", "description": "Event location (optional)"},
        "attendees": _attendees("List of attendee email addresses (optional)"),
        "calendarId": _calendar_id('Calendar ID where to create the event (default: "primary")'),
    },
    required=("title", "startDateTime", "endDateTime"),
    ordering=(("startDateTime", "endDateTime"),),
)

CREATE_QUICK_EVENT_TOOL = ToolSpec(
    name="create_quick_event",
    description="Create a quick event with minimal information. Automatically calculates end time based on duration.",
    properties={
        "title": {"type": "string", "description": "Event title/summary"},
        "startDateTime": _datetime("Event start date and time in ISO 8601 format"),
        "durationMinutes": {
            "type": "integer",
            "description": "Duration of the event in minutes (default: 60)",
            "minimum": 1,
        },
        "description": {"type": "string", "description": "Event description (optional)"},
        "location": {"type": "string", "description": "Event location (optional)"},
        "attendees": _attendees("List of attendee email addresses (optional)"),
        "calendarId": _calendar_id('Calendar ID where to create the event (default: "primary")'),
    },
    required=("title", "startDateTime"),
)

UPDATE_EVENT_TOOL = ToolSpec(
    name="update_event",
    description="Update an existing event in Google Calendar. Use this to modify event details, reschedule, or change attendees.",
    properties={
        "eventId": {"type": "string", "description": "The ID of the event to update"},
        "title": {"type": "string", "description": "Updated event title/summary (optional)"},
        "startDateTime": _datetime("Updated start date and time in ISO 8601 format (optional)"),
        "endDateTime": _datetime("Updated end date and time in ISO 8601 format (optional)"),
        "description": {"type": "string", "description": "Updated event description (optional)"},
        "location": {"type": "string", "description": "Updated event location (optional)"},
        "attendees": _attendees("Updated list of attendee email addresses (optional)"),
        "calendarId": _calendar_id('Calendar ID where the event exists (default: "primary")'),
    },
    required=("eventId",),
    ordering=(("startDateTime", "endDateTime"),),
)

DELETE_EVENT_TOOL = ToolSpec(
    name="delete_event",
    description="Delete an event from Google Calendar. Use this to cancel meetings or remove events.",
    properties={
        "eventId": {"type": "string", "description": "The ID of the event to delete"},
        "calendarId": _calendar_id('Calendar ID where the event exists (default: "primary")'),
    },
    required=("eventId",),
)

CHECK_CONFLICTS_TOOL = ToolSpec(
    name="check_conflicts",
    description="Check for scheduling conflicts in a given time range. Useful before scheduling new events.",
    properties={
        "startTime": _datetime("Start time to check in ISO 8601 format"),
        "endTime": _datetime("End time to check in ISO 8601 format"),
        "calendarId": _calendar_id('Calendar ID to check (default: "primary")'),
    },
    required=("startTime", "endTime"),
    ordering=(("startTime", "endTime"),),
)

FIND_FREE_TIME_TOOL = ToolSpec(
    name="find_free_time",
    description="Find available time slots in a given date range. Perfect for finding when to schedule new meetings.",
    properties={
        "startDate": _datetime("Start of the search range in ISO 8601 format"),
        "endDate": _datetime("End of the search range in ISO 8601 format"),
        "slotDurationMinutes": {
            "type": "integer",
            "description": "Minimum duration for free slots in minutes (default: 60)",
            "minimum": 1,
        },
        "calendarId": _calendar_id('Calendar ID to search (default: "primary")'),
    },
    required=("startDate", "endDate"),
    ordering=(("startDate", "endDate"),),
)

GET_CALENDARS_TOOL = ToolSpec(
    name="get_calendars",
    description="Get a list of all available calendars. Useful for finding calendar IDs or seeing what calendars are available.",
)

DEFAULT_TOOLS = (
    BASH_TOOL,
    GET_EVENTS_TOOL,
    CREATE_EVENT_TOOL,
    CREATE_QUICK_EVENT_TOOL,
    UPDATE_EVENT_TOOL,
    DELETE_EVENT_TOOL,
    CHECK_CONFLICTS_TOOL,
    FIND_FREE_TIME_TOOL,
    GET_CALENDARS_TOOL,
)


def build_tool_registry() -> ToolRegistry:
    return ToolRegistry(DEFAULT_TOOLS)
