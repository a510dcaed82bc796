"""HTTP implementation of the timeline's event mutation surface."""
import datetime as dt
import logging
from typing import Any
from uuid import UUID

import requests

from timediary.schedule.day_window import ResolvedEvent
from timediary.timeline.gesture import CommitError

logger = logging.getLogger(__name__)


def _jsonable(fields: dict[str, Any]) -> dict[str, Any]:
    payload = {}
    for key, value in fields.items():
        if isinstance(value, (dt.date, dt.time)):
            value = value.isoformat()
        elif isinstance(value, UUID):
            value = str(value)
        payload[key] = value
    return payload


class HttpEventMutations:
    """Creates, updates and deletes events through the JSON API.

    Any transport error or non-2xx response becomes a `CommitError` so the
    timeline controller can roll back its optimistic change.
    """

    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"{method} {url} failed: {e}")
            raise CommitError(str(e)) from e
        return response.json() if response.content else {}

    def create_event(
        self,
        date: dt.date,
        title: str,
        start_time: dt.time,
        end_time: dt.time,
        category_id: UUID | None,
        is_plan: bool,
        description: str,
    ) -> ResolvedEvent:
        payload = _jsonable({
            "date": date,
            "title": title,
            "start_time": start_time,
            "end_time": end_time,
            "category_id": category_id,
            "is_plan": is_plan,
            "description": description,
        })
        data = self._request("POST", "/events", payload)
        return ResolvedEvent.from_dict(data["event"])

    def update_event(self, event_id: UUID, fields: dict[str, Any]) -> ResolvedEvent:
        data = self._request("PATCH", f"/events/{event_id}", _jsonable(fields))
        return ResolvedEvent.from_dict(data["event"])

    def delete_event(self, event_id: UUID) -> None:
        self._request("DELETE", f"/events/{event_id}")
