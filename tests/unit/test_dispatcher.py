"""Tool dispatch: validation before side effects, result text and error rendering."""

import time
from dataclasses import replace

import pytest

from calbot.domain import BackendError, ToolCallRequest
from calbot.orchestrator import ToolDispatcher


def process_running(pid):
    try:
        with open(f"/proc/{pid}/stat") as stat:
            state = stat.read().rsplit(")", 1)[1].split()[0]
    except FileNotFoundError:
        return False
    return state != "Z"


def call(name, call_id="call_1", **arguments):
    return ToolCallRequest(id=call_id, name=name, input=arguments)


class TestRouting:
    async def test_unknown_tool(self, dispatcher):
        result = await dispatcher.dispatch(call("send_email"))
        assert result.tool_call_id == "call_1"
        assert result.content == "Error executing send_email: Unsupported tool: send_email"

    async def test_calendar_tool_without_auth(self, offline_dispatcher):
        result = await offline_dispatcher.dispatch(call("get_calendars"))
        assert result.content == "Error executing get_calendars: Google Calendar authentication required"

    async def test_bash_works_without_calendar(self, offline_dispatcher):
        result = await offline_dispatcher.dispatch(call("bash", command="echo hello"))
        assert result.content == "STDOUT:\nhello\n\nSTDERR:\n\nEXIT CODE: 0"

    async def test_dispatch_all_keeps_request_order(self, dispatcher):
        results = await dispatcher.dispatch_all(
            [call("get_calendars", "call_a"), call("bash", "call_b", command="exit 3")]
        )
        assert [result.tool_call_id for result in results] == ["call_a", "call_b"]
        assert results[0].content.startswith("Available calendars:")
        assert results[1].content.endswith("EXIT CODE: 3")

    async def test_calls_in_one_batch_run_concurrently(self, dispatcher):
        started = time.monotonic()
        await dispatcher.dispatch_all(
            [call("bash", "call_a", command="sleep 1"), call("bash", "call_b", command="sleep 1")]
        )
        assert time.monotonic() - started < 1.8


class TestShell:
    async def test_nonzero_exit_and_stderr(self, dispatcher):
        result = await dispatcher.dispatch(call("bash", command="echo oops >&2; exit 2"))
        assert result.content == "STDOUT:\n\nSTDERR:\noops\n\nEXIT CODE: 2"

    async def test_timeout_kills_command(self, registry, agent_settings, tz, tmp_path):
        pid_file = tmp_path / "shell.pid"
        quick = ToolDispatcher(registry, settings=replace(agent_settings, shell_timeout=1.0), tz=tz)
        started = time.monotonic()
        result = await quick.dispatch(call("bash", command=f"echo $$ > {pid_file}; exec sleep 15"))
        assert result.content == "Error executing bash: Command timed out after 1 seconds"
        assert time.monotonic() - started < 5
        assert not process_running(int(pid_file.read_text()))

    async def test_empty_command_is_rejected(self, dispatcher):
        result = await dispatcher.dispatch(call("bash", command="  "))
        assert result.content.startswith("Error executing bash: command is required and cannot be empty")


class TestEventWrites:
    async def test_create_event_body(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(
            call(
                "create_event",
                title="Review",
                startDateTime="2024-01-16T14:00:00",
                endDateTime="2024-01-16T15:00:00",
                location="Room 4",
                attendees=["ana@example.com"],
            )
        )
        assert fake_calendar.call_names() == ["insert_event"]
        _, (calendar_id, body), _ = fake_calendar.calls[0]
        assert calendar_id == "primary"
        assert body == {
            "summary": "Review",
            "start": {"dateTime": "2024-01-16T14:00:00", "timeZone": "America/New_York"},
            "end": {"dateTime": "2024-01-16T15:00:00", "timeZone": "America/New_York"},
            "location": "Room 4",
            "attendees": [{"email": "ana@example.com"}],
        }
        assert result.content.startswith("Event created successfully!\n\nReview\n   Event ID: evt-new")

    async def test_create_event_keeps_utc_zone_for_utc_input(self, dispatcher, fake_calendar):
        await dispatcher.dispatch(
            call("create_event", title="Sync", startDateTime="2024-01-16T14:00:00Z", endDateTime="2024-01-16T15:00:00Z")
        )
        body = fake_calendar.calls[0][1][1]
        assert body["start"] == {"dateTime": "2024-01-16T14:00:00Z", "timeZone": "UTC"}

    async def test_create_event_with_loose_dates(self, dispatcher, fake_calendar):
        await dispatcher.dispatch(call("create_event", title="Lunch", startDateTime="tomorrow", endDateTime="in 2 days"))
        body = fake_calendar.calls[0][1][1]
        assert body["start"] == {"dateTime": "2024-01-16T15:00:00.000Z", "timeZone": "America/New_York"}
        assert body["end"]["dateTime"] == "2024-01-17T15:00:00.000Z"

    async def test_quick_event_defaults_to_one_hour(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(call("create_quick_event", title="Call", startDateTime="2024-01-16T14:00:00"))
        body = fake_calendar.calls[0][1][1]
        assert body["end"] == {"dateTime": "2024-01-16T20:00:00.000Z", "timeZone": "America/New_York"}
        assert result.content.startswith("Quick event created successfully!")

    async def test_quick_event_duration(self, dispatcher, fake_calendar):
        await dispatcher.dispatch(
            call("create_quick_event", title="Call", startDateTime="2024-01-16T14:00:00", durationMinutes=30)
        )
        assert fake_calendar.calls[0][1][1]["end"]["dateTime"] == "2024-01-16T19:30:00.000Z"

    async def test_update_with_start_after_end_never_reaches_backend(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(
            call("update_event", eventId="evt-1", startDateTime="2024-01-15T15:00:00", endDateTime="2024-01-15T14:00:00")
        )
        assert fake_calendar.calls == []
        assert result.content.startswith("Error executing update_event: startDateTime must be before endDateTime")

    async def test_update_sends_only_given_fields(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(call("update_event", eventId="evt-1", title="Renamed", calendarId="team"))
        assert fake_calendar.calls == [("update_event", ("team", "evt-1", {"summary": "Renamed"}), {})]
        assert result.content.startswith("Event updated successfully!\n\nRenamed")

    async def test_update_without_changes_is_rejected(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(call("update_event", eventId="evt-1"))
        assert fake_calendar.calls == []
        assert result.content.startswith("Error executing update_event: eventId needs at least one of")

    async def test_invalid_attendee_is_rejected(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(
            call(
                "create_event",
                title="Review",
                startDateTime="2024-01-16T14:00:00",
                endDateTime="2024-01-16T15:00:00",
                attendees=["nobody"],
            )
        )
        assert fake_calendar.calls == []
        assert result.content.startswith("Error executing create_event: attendees[0] must be a valid email address")

    async def test_unparseable_date(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(
            call("create_event", title="Review", startDateTime="someday soon", endDateTime="2024-01-16T15:00:00")
        )
        assert fake_calendar.calls == []
        assert result.content.startswith('Error executing create_event: startDateTime: Unable to parse date format: "someday soon"')

    async def test_delete(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(call("delete_event", eventId="evt-9"))
        assert fake_calendar.calls == [("delete_event", ("primary", "evt-9"), {})]
        assert result.content == "Event deleted successfully!"


class TestEventReads:
    async def test_get_events_defaults(self, dispatcher, fake_calendar):
        result = await dispatcher.dispatch(call("get_events_in_time_range"))
        assert fake_calendar.calls == [
            (
                "list_events",
                ("primary",),
                {"time_min": "2024-01-15T15:00:00.000Z", "time_max": None, "max_results": 10},
            )
        ]
        assert result.content == "No events found in the specified time range."

    async def test_get_events_bounds_get_offsets(self, dispatcher, fake_calendar):
        await dispatcher.dispatch(
            call("get_events_in_time_range", timeMin="2024-01-15T00:00:00", timeMax="2024-01-16T00:00:00", maxResults=5)
        )
        kwargs = fake_calendar.calls[0][2]
        assert kwargs == {
            "time_min": "2024-01-15T00:00:00-05:00",
            "time_max": "2024-01-16T00:00:00-05:00",
            "max_results": 5,
        }

    async def test_get_events_lists_numbered_blocks(self, dispatcher, fake_calendar):
        fake_calendar.events = [
            {
                "id": "evt-1",
                "summary": "Standup",
                "start": {"dateTime": "2024-01-15T09:00:00-05:00"},
                "end": {"dateTime": "2024-01-15T09:15:00-05:00"},
            }
        ]
        result = await dispatcher.dispatch(call("get_events_in_time_range"))
        assert result.content.startswith("1. Standup\n   Event ID: evt-1\n   When: Mon Jan 15, 2024 09:00 AM EST - 09:15 AM")

    async def test_check_conflicts(self, dispatcher, fake_calendar):
        fake_calendar.events = [
            {"summary": "Before", "start": {"dateTime": "2024-01-15T09:00:00-05:00"}, "end": {"dateTime": "2024-01-15T10:00:00-05:00"}},
            {"summary": "Clash", "start": {"dateTime": "2024-01-15T10:30:00-05:00"}, "end": {"dateTime": "2024-01-15T11:30:00-05:00"}},
        ]
        result = await dispatcher.dispatch(
            call("check_conflicts", startTime="2024-01-15T10:00:00", endTime="2024-01-15T11:00:00")
        )
        assert fake_calendar.calls[0][2]["max_results"] == 250
        assert result.content.startswith("Found 1 conflicts:\n\n1. Clash")

    async def test_no_conflicts(self, dispatcher):
        result = await dispatcher.dispatch(
            call("check_conflicts", startTime="2024-01-15T10:00:00", endTime="2024-01-15T11:00:00")
        )
        assert result.content == "No conflicts found in the specified time range."

    async def test_find_free_time(self, dispatcher, fake_calendar):
        fake_calendar.events = [
            {"summary": "Lunch", "start": {"dateTime": "2024-01-15T12:00:00-05:00"}, "end": {"dateTime": "2024-01-15T13:00:00-05:00"}},
        ]
        result = await dispatcher.dispatch(
            call("find_free_time", startDate="2024-01-15T09:00:00", endDate="2024-01-15T17:00:00")
        )
        lines = result.content.splitlines()
        assert lines[0] == "Found 2 free time slots:"
        assert lines[2].endswith("(180 minutes)")
        assert lines[3].endswith("(240 minutes)")

    async def test_get_calendars(self, dispatcher):
        result = await dispatcher.dispatch(call("get_calendars"))
        assert result.content.startswith("Available calendars:\n\n1. Work (primary)\n   ID: primary")


class TestBackendFailures:
    async def test_backend_error_is_classified(self, dispatcher, fake_calendar):
        fake_calendar.error = BackendError("Not Found", status=404)
        result = await dispatcher.dispatch(call("delete_event", eventId="evt-9"))
        assert result.content == (
            "Error executing delete_event: Resource not found. The calendar or event may have been deleted"
        )

    async def test_unexpected_errors_become_results(self, dispatcher, fake_calendar):
        fake_calendar.error = RuntimeError("boom")
        result = await dispatcher.dispatch(call("get_calendars"))
        assert result.content == "Error executing get_calendars: boom"

    @pytest.mark.parametrize("value", ["5", True])
    async def test_type_errors_are_reported(self, dispatcher, fake_calendar, value):
        result = await dispatcher.dispatch(call("get_events_in_time_range", maxResults=value))
        assert fake_calendar.calls == []
        assert result.content.startswith("Error executing get_events_in_time_range: maxResults must be an integer")
