"""Download published ICS calendars."""
import logging

import requests

from timediary.core.config import settings

logger = logging.getLogger(__name__)

ICS_HEADERS = {
    "Accept": "text/calendar, text/plain;q=0.9, */*;q=0.1",
    "User-Agent": "time-diary/0.1",
}


class CalendarFetchError(Exception):
    """A subscription could not be downloaded or read."""


def normalize_calendar_url(url: str) -> str:
    """Rewrite `webcal://` links to `https://` and trim whitespace."""
    url = url.strip()
    if url.lower().startswith("webcal://"):
        return "https://" + url[len("webcal://"):]
    return url


def fetch_ics(url: str, timeout: float | None = None, session: requests.Session | None = None) -> str:
    """Return the raw ICS text behind `url`."""
    target = normalize_calendar_url(url)
    http = session or requests
    try:
        response = http.get(
            target,
            headers=ICS_HEADERS,
            timeout=timeout or settings.calendar_fetch_timeout,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning(f"Failed to fetch calendar {target}: {e}")
        raise CalendarFetchError(f"Failed to fetch calendar: {e}") from e

    if "BEGIN:VCALENDAR" not in response.text:
        raise CalendarFetchError(f"Not an iCalendar document: {target}")
    return response.text
