"""Collaborators the agent talks to: the calendar service, Google auth and the local shell."""

from __future__ import annotations

from .calendar import GoogleCalendarClient
from .errors import backend_error_from_http, format_backend_error
from .shell import ShellResult, run_shell_command

__all__ = [
    "GoogleCalendarClient",
    "ShellResult",
    "backend_error_from_http",
    "format_backend_error",
    "run_shell_command",
]
