from __future__ import annotations

from typing import Any, Optional


class CalbotError(Exception):
    """Base class for failures raised inside the agent core."""


class DateParseError(CalbotError):
    """Raised when a date/time value matches none of the recognized shapes."""

    def __init__(self, field: str, value: Any, detail: Optional[str] = None) -> None:
        self.field = field
        self.value = value
        message = f'{field}: Unable to parse date format: "{value}"'
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class ValidationError(CalbotError):
    """Raised when tool arguments break their declared contract."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"{field} {reason}. Received: {_describe(value)}")


class AuthRequiredError(CalbotError):
    """Raised when a calendar tool runs without an authenticated client."""

    def __init__(self, message: str = "Google Calendar authentication required") -> None:
        super().__init__(message)


class BackendError(CalbotError):
    """Raised when the calendar service answers with an error payload."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        reason: Optional[str] = None,
        operation: Optional[str] = None,
    ) -> None:
        self.message = message
        self.status = status
        self.reason = reason
        self.operation = operation
        super().__init__(message)


class StreamParseError(CalbotError):
    """Raised when a streamed tool call's argument text is not valid JSON."""

    def __init__(self, index: int, name: str, raw_arguments: str, detail: str) -> None:
        self.index = index
        self.name = name
        self.raw_arguments = raw_arguments
        self.detail = detail
        super().__init__(f"Failed to parse tool call arguments for {name or '<unnamed>'} (slot {index}): {detail}")


class ShellTimeoutError(CalbotError):
    """Raised when a shell command outlives its time limit."""

    def __init__(self, command: str, timeout: float) -> None:
        self.command = command
        self.timeout = timeout
        super().__init__(f"Command timed out after {timeout:g} seconds")


class UnknownToolError(CalbotError):
    """Raised when the model requests a tool that is not registered."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unsupported tool: {name}")


class ConversationStateError(CalbotError):
    """Raised when a user message is sent while tool calls are still unanswered."""


def _describe(value: Any) -> str:
    return f'{type(value).__name__} "{value}"'
