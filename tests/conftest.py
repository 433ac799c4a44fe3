"""
Shared fixtures for calbot tests.

Fakes stand in for the two external collaborators: the completion service
(streams built from real ``openai`` chunk types) and the calendar client.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

import pytest
from openai.types.chat import ChatCompletionChunk

from calbot.api import build_tool_registry
from calbot.config import AgentSettings
from calbot.orchestrator import ToolDispatcher

# ===== STREAM HELPERS =====


def make_chunk(
    *,
    content: Optional[str] = None,
    tool_calls: Optional[List[Dict[str, Any]]] = None,
    finish_reason: Optional[str] = None,
) -> ChatCompletionChunk:
    delta: Dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    return ChatCompletionChunk.model_validate(
        {
            "id": "chatcmpl-test",
            "object": "chat.completion.chunk",
            "created": 0,
            "model": "test-model",
            "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
        }
    )


def tool_fragment(
    index: int,
    *,
    call_id: Optional[str] = None,
    name: Optional[str] = None,
    arguments: Optional[str] = None,
) -> ChatCompletionChunk:
    fragment: Dict[str, Any] = {"index": index}
    if call_id is not None:
        fragment["id"] = call_id
        fragment["type"] = "function"
    function: Dict[str, Any] = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    if function:
        fragment["function"] = function
    return make_chunk(tool_calls=[fragment])


class FakeStream:
    """Async iterator over prepared chunks; records how far it was consumed."""

    def __init__(self, chunks: List[ChatCompletionChunk]):
        self._chunks = list(chunks)
        self.consumed = 0

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChatCompletionChunk:
        if self.consumed >= len(self._chunks):
            raise StopAsyncIteration
        chunk = self._chunks[self.consumed]
        self.consumed += 1
        return chunk


class _FakeCompletions:
    def __init__(self, streams: List[List[ChatCompletionChunk]]):
        self._streams = list(streams)
        self.requests: List[Dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> FakeStream:
        # Snapshot the messages; the session builds a fresh list per request.
        self.requests.append({**kwargs, "messages": list(kwargs["messages"])})
        if not self._streams:
            raise AssertionError("No more scripted completion streams")
        scripted = self._streams.pop(0)
        if isinstance(scripted, Exception):
            raise scripted
        return FakeStream(scripted)


class _FakeChat:
    def __init__(self, completions: _FakeCompletions):
        self.completions = completions


class FakeCompletionClient:
    """Mimics ``AsyncOpenAI`` just enough for ``client.chat.completions.create``."""

    def __init__(self, streams: List[List[ChatCompletionChunk]]):
        self.completions = _FakeCompletions(streams)
        self.chat = _FakeChat(self.completions)

    @property
    def requests(self) -> List[Dict[str, Any]]:
        return self.completions.requests


# ===== CALENDAR FAKE =====


class FakeCalendar:
    """In-memory stand-in for ``GoogleCalendarClient`` that records every call."""

    def __init__(self, events: Optional[List[Dict[str, Any]]] = None):
        self.events = list(events or [])
        self.calls: List[tuple] = []
        self.calendars = [
            {"id": "primary", "summary": "Work", "primary": True},
            {"id": "team@group.calendar.google.com", "summary": "Team"},
        ]
        self.error: Optional[Exception] = None

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))
        if self.error is not None:
            raise self.error

    def list_events(self, calendar_id, *, time_min, time_max=None, max_results=10, order_by="startTime"):
        self._record("list_events", calendar_id, time_min=time_min, time_max=time_max, max_results=max_results)
        return list(self.events)

    def insert_event(self, calendar_id, body):
        self._record("insert_event", calendar_id, body)
        return {"id": "evt-new", "htmlLink": "https://calendar.example/evt-new", **body}

    def update_event(self, calendar_id, event_id, body):
        self._record("update_event", calendar_id, event_id, body)
        return {"id": event_id, "summary": "Existing", **body}

    def delete_event(self, calendar_id, event_id):
        self._record("delete_event", calendar_id, event_id)

    def list_calendars(self):
        self._record("list_calendars")
        return list(self.calendars)

    def call_names(self) -> List[str]:
        return [name for name, _, _ in self.calls]


# ===== FIXTURES =====


@pytest.fixture
def tz() -> ZoneInfo:
    return ZoneInfo("America/New_York")


@pytest.fixture
def fixed_now(tz) -> datetime:
    """Monday 2024-01-15 10:00 in New York."""
    return datetime(2024, 1, 15, 10, 0, 0, tzinfo=tz)


@pytest.fixture
def registry():
    return build_tool_registry()


@pytest.fixture
def agent_settings(tmp_path: Path) -> AgentSettings:
    return AgentSettings(
        shell_timeout=10.0,
        contacts_path=tmp_path / "coworker_config.json",
        timezone="America/New_York",
    )


@pytest.fixture
def fake_calendar() -> FakeCalendar:
    return FakeCalendar()


@pytest.fixture
def dispatcher(registry, agent_settings, fake_calendar, tz, fixed_now) -> ToolDispatcher:
    return ToolDispatcher(
        registry,
        settings=agent_settings,
        calendar=fake_calendar,
        tz=tz,
        clock=lambda: fixed_now,
    )


@pytest.fixture
def offline_dispatcher(registry, agent_settings, tz, fixed_now) -> ToolDispatcher:
    """Dispatcher for a session whose calendar never connected."""
    return ToolDispatcher(registry, settings=agent_settings, calendar=None, tz=tz, clock=lambda: fixed_now)
