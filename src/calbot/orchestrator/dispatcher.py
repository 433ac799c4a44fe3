from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, tzinfo
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from ..api import ToolRegistry, validate_arguments
from ..api.formatting import (
    format_calendars,
    format_conflicts,
    format_event,
    format_events,
    format_free_slots,
)
from ..config import AgentSettings
from ..core import (
    busy_slots,
    find_conflicts,
    find_free_slots,
    format_instant,
    resolve_timezone,
    to_event_datetime,
    to_instant,
    with_offset,
)
from ..domain import (
    AuthRequiredError,
    BackendError,
    CalbotError,
    ToolCallRequest,
    ToolResultMessage,
    UnknownToolError,
    ValidationError,
)
from ..services import format_backend_error, run_shell_command

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60
DEFAULT_SLOT_MINUTES = 60
WINDOW_QUERY_LIMIT = 250
UPDATABLE_FIELDS = ("title", "startDateTime", "endDateTime", "description", "location", "attendees")

Handler = Callable[[Dict[str, Any], Mapping[str, Any], datetime], Awaitable[str]]


class ToolDispatcher:
    """Runs validated tool calls and always answers with a tool-result message.

    ``calendar`` is the authenticated calendar client, or ``None`` when the user
    has not connected a calendar; calendar tools then report that instead of
    running. Blocking client calls run in worker threads.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        settings: AgentSettings,
        calendar: Optional[Any] = None,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.registry = registry
        self.settings = settings
        self.calendar = calendar
        self.tz = tz or resolve_timezone(settings.timezone)
        self._clock = clock
        self._handlers: Dict[str, Handler] = {
            "bash": self._bash,
            "get_events_in_time_range": self._get_events_in_time_range,
            "create_event": self._create_event,
            "create_quick_event": self._create_quick_event,
            "update_event": self._update_event,
            "delete_event": self._delete_event,
            "check_conflicts": self._check_conflicts,
            "find_free_time": self._find_free_time,
            "get_calendars": self._get_calendars,
        }

    def now(self) -> datetime:
        return self._clock() if self._clock else datetime.now(self.tz)

    async def dispatch(self, request: ToolCallRequest) -> ToolResultMessage:
        logger.info("Dispatching %s (%s) with %s", request.name, request.id, request.input)
        try:
            content = await self._run(request)
        except BackendError as exc:
            content = f"Error executing {request.name}: {format_backend_error(exc)}"
        except CalbotError as exc:
            logger.info("Tool %s rejected: %s", request.name, exc)
            content = f"Error executing {request.name}: {exc}"
        except Exception as exc:  # noqa: BLE001
            logger.exception("Tool %s failed unexpectedly", request.name)
            content = f"Error executing {request.name}: {exc}"
        return ToolResultMessage(tool_call_id=request.id, content=content)

    async def dispatch_all(self, requests: Iterable[ToolCallRequest]) -> List[ToolResultMessage]:
        return list(await asyncio.gather(*(self.dispatch(request) for request in requests)))

    async def _run(self, request: ToolCallRequest) -> str:
        spec = self.registry.get(request.name)
        handler = self._handlers.get(request.name)
        if spec is None or handler is None:
            raise UnknownToolError(request.name)
        if spec.requires_calendar and self.calendar is None:
            raise AuthRequiredError()
        now = self.now()
        arguments = validate_arguments(spec, request.input, tz=self.tz, now=now)
        return await handler(arguments, request.input, now)

    async def _call(self, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(method, *args, **kwargs)

    def _calendar_id(self, arguments: Mapping[str, Any]) -> str:
        return arguments.get("calendarId") or self.settings.default_calendar_id

    def _event_time(self, raw: Mapping[str, Any], field: str, now: datetime) -> Dict[str, str]:
        return to_event_datetime(raw[field], field, tz=self.tz, now=now).to_body()

    # ------------------------------------------------------------------ local

    async def _bash(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        result = await run_shell_command(arguments["command"], timeout=self.settings.shell_timeout)
        return result.render()

    # ------------------------------------------------------------------ calendar

    async def _get_events_in_time_range(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        time_min = arguments.get("timeMin") or format_instant(now)
        time_max = arguments.get("timeMax")
        events = await self._call(
            self.calendar.list_events,
            self._calendar_id(arguments),
            time_min=with_offset(time_min, tz=self.tz),
            time_max=with_offset(time_max, tz=self.tz) if time_max else None,
            max_results=arguments.get("maxResults", self.settings.default_max_results),
        )
        return format_events(events, self.tz)

    async def _create_event(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        body: Dict[str, Any] = {
            "summary": arguments["title"],
            "start": self._event_time(raw, "startDateTime", now),
            "end": self._event_time(raw, "endDateTime", now),
        }
        self._apply_details(body, arguments)
        created = await self._call(self.calendar.insert_event, self._calendar_id(arguments), body)
        return f"Event created successfully!\n\n{format_event(created, self.tz)}"

    async def _create_quick_event(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        start = self._event_time(raw, "startDateTime", now)
        duration = arguments.get("durationMinutes", DEFAULT_DURATION_MINUTES)
        ends_at = to_instant(arguments["startDateTime"], tz=self.tz) + timedelta(minutes=duration)
        body: Dict[str, Any] = {
            "summary": arguments["title"],
            "start": start,
            "end": {"dateTime": format_instant(ends_at), "timeZone": start["timeZone"]},
        }
        self._apply_details(body, arguments)
        created = await self._call(self.calendar.insert_event, self._calendar_id(arguments), body)
        return f"Quick event created successfully!\n\n{format_event(created, self.tz)}"

    async def _update_event(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        if not any(name in arguments for name in UPDATABLE_FIELDS):
            raise ValidationError("eventId", arguments["eventId"], f"needs at least one of {', '.join(UPDATABLE_FIELDS)} to update")
        body: Dict[str, Any] = {}
        if "title" in arguments:
            body["summary"] = arguments["title"]
        if "startDateTime" in arguments:
            body["start"] = self._event_time(raw, "startDateTime", now)
        if "endDateTime" in arguments:
            body["end"] = self._event_time(raw, "endDateTime", now)
        self._apply_details(body, arguments)
        updated = await self._call(
            self.calendar.update_event,
            self._calendar_id(arguments),
            arguments["eventId"],
            body,
        )
        return f"Event updated successfully!\n\n{format_event(updated, self.tz)}"

    async def _delete_event(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        await self._call(self.calendar.delete_event, self._calendar_id(arguments), arguments["eventId"])
        return "Event deleted successfully!"

    async def _check_conflicts(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        start, end = arguments["startTime"], arguments["endTime"]
        events = await self._window_events(arguments, start, end)
        conflicts = find_conflicts(events, to_instant(start, tz=self.tz), to_instant(end, tz=self.tz), tz=self.tz)
        return format_conflicts(conflicts, self.tz)

    async def _find_free_time(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        start, end = arguments["startDate"], arguments["endDate"]
        events = await self._window_events(arguments, start, end)
        slots = find_free_slots(
            busy_slots(events, tz=self.tz),
            to_instant(start, tz=self.tz),
            to_instant(end, tz=self.tz),
            arguments.get("slotDurationMinutes", DEFAULT_SLOT_MINUTES),
        )
        return format_free_slots(slots, self.tz)

    async def _get_calendars(self, arguments: Dict[str, Any], raw: Mapping[str, Any], now: datetime) -> str:
        calendars = await self._call(self.calendar.list_calendars)
        return format_calendars(calendars)

    # ------------------------------------------------------------------ helpers

    async def _window_events(self, arguments: Mapping[str, Any], start: str, end: str) -> List[Dict[str, Any]]:
        return await self._call(
            self.calendar.list_events,
            self._calendar_id(arguments),
            time_min=with_offset(start, tz=self.tz),
            time_max=with_offset(end, tz=self.tz),
            max_results=WINDOW_QUERY_LIMIT,
        )

    @staticmethod
    def _apply_details(body: Dict[str, Any], arguments: Mapping[str, Any]) -> None:
        if "description" in arguments:
            body["description"] = arguments["description"]
        if "location" in arguments:
            body["location"] = arguments["location"]
        if "attendees" in arguments:
            body["attendees"] = [{"email": email} for email in arguments["attendees"]]
