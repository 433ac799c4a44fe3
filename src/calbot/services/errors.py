"""Translation of calendar-service failures into messages the model can act on."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from googleapiclient.errors import HttpError

from ..domain import BackendError

logger = logging.getLogger(__name__)

ISO_EXAMPLE = '"2024-01-15T14:30:00"'

_DATE_WORDING = re.compile(r"(?<!up)date|time", re.IGNORECASE)

_REASON_MESSAGES = {
    "invalid": f"Invalid parameter value. Please check your date format (use ISO 8601 like {ISO_EXAMPLE}) and other parameters",
    "badRequest": f"Bad request. Please check your date/time format (use ISO 8601 like {ISO_EXAMPLE}) and parameter types",
    "notFound": "Resource not found. The calendar or event may not exist or may have been deleted",
    "forbidden": "Access denied. You may not have permission to access this calendar",
    "unauthorized": "Authentication failed. Please re-authenticate with Google Calendar",
}


def format_backend_error(error: BackendError) -> str:
    """Map a backend failure onto a fixed, user-facing category."""

    if error.reason in _REASON_MESSAGES:
        return _REASON_MESSAGES[error.reason]

    message = error.message or "Unknown error"
    status = error.status
    if status == 400:
        lowered = message.lower()
        if _DATE_WORDING.search(message):
            return (
                f"Invalid date/time format. Please use ISO 8601 format like {ISO_EXAMPLE} "
                'or "2024-01-15T14:30:00Z"'
            )
        if "calendar" in lowered:
            return 'Invalid calendar ID. Use "primary" for your main calendar or get valid IDs with get_calendars'
        if "event" in lowered:
            return "Invalid event ID. Get valid event IDs from get_events_in_time_range"
        return (
            f"Bad request: {message}. Please check your parameters "
            f"(especially date formats - use ISO 8601 like {ISO_EXAMPLE})"
        )
    if status == 401:
        return "Authentication failed. Please re-authenticate with Google Calendar"
    if status == 403:
        return "Permission denied. Check that you have calendar access permissions"
    if status == 404:
        return "Resource not found. The calendar or event may have been deleted"
    return f"Google Calendar API error ({status or 'unknown'}): {message}"


def _error_payload(content: Any) -> dict:
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    if not content:
        return {}
    try:
        payload = json.loads(content)
    except (TypeError, ValueError):
        return {}
    error = payload.get("error") if isinstance(payload, dict) else None
    return error if isinstance(error, dict) else {}


def backend_error_from_http(exc: HttpError, operation: Optional[str] = None) -> BackendError:
    payload = _error_payload(getattr(exc, "content", None))
    details = payload.get("errors") or []
    first = details[0] if details and isinstance(details[0], dict) else {}

    status = getattr(getattr(exc, "resp", None), "status", None) or payload.get("code")
    message = first.get("message") or payload.get("message") or getattr(exc, "reason", None) or str(exc)
    reason = first.get("reason")

    logger.warning("Calendar %s failed: status=%s reason=%s message=%s", operation or "request", status, reason, message)
    return BackendError(
        str(message),
        status=int(status) if status is not None else None,
        reason=reason,
        operation=operation,
    )
