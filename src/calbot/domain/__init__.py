"""Domain models and error taxonomy for the calendar agent."""

from __future__ import annotations

from .errors import (
    AuthRequiredError,
    BackendError,
    CalbotError,
    ConversationStateError,
    DateParseError,
    ShellTimeoutError,
    StreamParseError,
    UnknownToolError,
    ValidationError,
)
from .models import (
    AssistantMessage,
    Contact,
    EventDateTime,
    Message,
    SystemMessage,
    TimeSlot,
    ToolCallRequest,
    ToolResultMessage,
    UserMessage,
)

__all__ = [
    "AssistantMessage",
    "AuthRequiredError",
    "BackendError",
    "CalbotError",
    "Contact",
    "ConversationStateError",
    "DateParseError",
    "EventDateTime",
    "Message",
    "ShellTimeoutError",
    "StreamParseError",
    "SystemMessage",
    "TimeSlot",
    "ToolCallRequest",
    "ToolResultMessage",
    "UnknownToolError",
    "UserMessage",
    "ValidationError",
]
