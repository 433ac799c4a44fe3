from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httplib2
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .errors import backend_error_from_http

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GoogleCalendarClient:
    """Thin wrapper around the Calendar v3 resource exposing the operations the tools use.

    Each request gets its own authorized HTTP transport so concurrent tool calls
    can share one client from worker threads.
    """

    service: Any
    credentials: Optional[Any] = None
    send_updates: str = "all"

    @classmethod
    def from_credentials(cls, credentials: Any, *, send_updates: str = "all") -> "GoogleCalendarClient":
        service = build("calendar", "v3", credentials=credentials, cache_discovery=False)
        return cls(service=service, credentials=credentials, send_updates=send_updates)

    def _execute(self, operation: str, request: Any) -> Any:
        try:
            if self.credentials is None:
                return request.execute()
            return request.execute(http=AuthorizedHttp(self.credentials, http=httplib2.Http()))
        except HttpError as exc:
            raise backend_error_from_http(exc, operation) from exc

    def list_events(
        self,
        calendar_id: str,
        *,
        time_min: str,
        time_max: Optional[str] = None,
        max_results: int = 10,
        order_by: str = "startTime",
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "calendarId": calendar_id,
            "timeMin": time_min,
            "maxResults": max_results,
            "singleEvents": True,
            "orderBy": order_by,
        }
        if time_max:
            params["timeMax"] = time_max
        logger.debug("Listing events: %s", params)
        response = self._execute("list_events", self.service.events().list(**params))
        return list(response.get("items") or [])

    def insert_event(self, calendar_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        request = self.service.events().insert(calendarId=calendar_id, body=body, sendUpdates=self.send_updates)
        return self._execute("insert_event", request)

    def update_event(self, calendar_id: str, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        # Partial bodies: patch keeps every field the caller did not send.
        request = self.service.events().patch(
            calendarId=calendar_id,
            eventId=event_id,
            body=body,
            sendUpdates=self.send_updates,
        )
        return self._execute("update_event", request)

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        request = self.service.events().delete(calendarId=calendar_id, eventId=event_id, sendUpdates=self.send_updates)
        self._execute("delete_event", request)

    def list_calendars(self) -> List[Dict[str, Any]]:
        response = self._execute("list_calendars", self.service.calendarList().list())
        return list(response.get("items") or [])
