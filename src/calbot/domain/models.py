"""Typed shapes exchanged between the session, the dispatcher and the calendar client.

Messages mirror the chat-completions wire format so they can be sent back to the
completion service verbatim through ``to_param``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

SYSTEM_ROLE = "system"
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"
TOOL_ROLE = "tool"


class ToolCallRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)

    def to_param(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": json.dumps(self.input)},
        }


class SystemMessage(BaseModel):
    role: Literal["system"] = SYSTEM_ROLE
    content: str

    def to_param(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


class UserMessage(BaseModel):
    role: Literal["user"] = USER_ROLE
    content: str

    def to_param(self) -> Dict[str, Any]:
        return {"role": self.role, "content": self.content}


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = ASSISTANT_ROLE
    content: Optional[str] = None
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)

    def to_param(self) -> Dict[str, Any]:
        # Content may only be null when the message carries tool calls.
        param: Dict[str, Any] = {"role": self.role, "content": self.content or ("" if not self.tool_calls else None)}
        if self.tool_calls:
            param["tool_calls"] = [call.to_param() for call in self.tool_calls]
        return param


class ToolResultMessage(BaseModel):
    role: Literal["tool"] = TOOL_ROLE
    tool_call_id: str
    content: str

    def to_param(self) -> Dict[str, Any]:
        return {"role": self.role, "tool_call_id": self.tool_call_id, "content": self.content}


Message = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolResultMessage],
    Field(discriminator="role"),
]


@dataclass(frozen=True, slots=True)
class EventDateTime:
    """The ``{dateTime, timeZone}`` pair used by calendar write operations."""

    date_time: str
    time_zone: str

    def to_body(self) -> Dict[str, str]:
        return {"dateTime": self.date_time, "timeZone": self.time_zone}


@dataclass(frozen=True, slots=True)
class TimeSlot:
    start: datetime
    end: datetime

    @property
    def minutes(self) -> float:
        return (self.end - self.start).total_seconds() / 60


@dataclass(slots=True)
class Contact:
    name: str
    email: str
    role: Optional[str] = None
    first_met: Optional[str] = None
    meeting_count: Optional[int] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Contact":
        email = str(record["email"])
        count = record.get("meetingCount")
        return cls(
            name=str(record.get("name") or email.split("@")[0]),
            email=email,
            role=record.get("role"),
            first_met=record.get("firstMet"),
            meeting_count=int(count) if isinstance(count, (int, float)) else None,
        )
