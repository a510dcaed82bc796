"""Parse published iCalendar (ICS) feeds into calendar entries.

Documents are read with `icalendar`. Recurring events are expanded with
`dateutil.rrule`: rules with COUNT or UNTIL are expanded in full, open-ended
rules only within a window around a reference date.
"""
import datetime as dt
import itertools
import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, replace

from dateutil.rrule import rruleset, rrulestr
from icalendar import Calendar

logger = logging.getLogger(__name__)

EXPANSION_WINDOW = dt.timedelta(days=366)
MAX_OCCURRENCES = 1000

DATE_PROPERTIES = ("DTSTART", "DTEND", "DURATION", "RECURRENCE-ID", "EXDATE", "RRULE")


class CalendarParseError(ValueError):
    """The feed is not a readable iCalendar document."""


@dataclass(frozen=True)
class CalendarEntry:
    """One VEVENT (or one occurrence of a recurring VEVENT)."""
    uid: str | None
    title: str
    start: dt.datetime
    end: dt.datetime | None = None
    is_all_day: bool = False
    description: str = ""
    location: str = ""
    rrule: str | None = None
    calendar_id: str | None = None
    calendar_name: str | None = None
    calendar_color: str | None = None

    def to_dict(self) -> dict:
        return {
            "uid": self.uid,
            "title": self.title,
            "start": self.start.isoformat(),
            "end": self.end.isoformat() if self.end else None,
            "is_all_day": self.is_all_day,
            "description": self.description,
            "location": self.location,
            "calendar_id": self.calendar_id,
            "calendar_name": self.calendar_name,
            "calendar_color": self.calendar_color,
        }


def _decoded(component, name: str):
    prop = component.get(name)
    if prop is None:
        return None
    try:
        return prop.dt
    except AttributeError:
        raise CalendarParseError(f"Invalid {name} value: {prop!r}") from None


def _as_datetime(value) -> tuple[dt.datetime, bool]:
    """Widen an ICS DATE or DATE-TIME; the flag tells whether it was a date."""
    if isinstance(value, dt.datetime):
        return value, False
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time()), True
    raise CalendarParseError(f"Not a date or date-time: {value!r}")


def _align(value: dt.datetime, like: dt.datetime) -> dt.datetime:
    """Give `value` the awareness of `like` so the two compare."""
    if like.tzinfo is None:
        return value.replace(tzinfo=None)
    if value.tzinfo is None:
        return value.replace(tzinfo=like.tzinfo)
    return value.astimezone(like.tzinfo)


def _text(component, name: str) -> str:
    value = component.get(name)
    return str(value) if value is not None else ""


def _rules(component) -> list[str]:
    raw = component.get("RRULE")
    if raw is None:
        return []
    rules = raw if isinstance(raw, list) else [raw]
    return [rule.to_ical().decode() for rule in rules]


def _exdates(component, start: dt.datetime) -> list[dt.datetime]:
    raw = component.get("EXDATE")
    if raw is None:
        return []
    excluded = []
    for group in raw if isinstance(raw, list) else [raw]:
        for item in group.dts:
            value = item.dt
            if not isinstance(value, dt.datetime):
                value = dt.datetime.combine(value, start.time())
            excluded.append(_align(value, start))
    return excluded


def _check_errors(component) -> None:
    for name, message in getattr(component, "errors", None) or []:
        if name in DATE_PROPERTIES:
            raise CalendarParseError(f"Invalid {name} in event {component.get('UID')}: {message}")


def expand_recurrence(
    entry: CalendarEntry,
    component,
    around: dt.date,
    overridden: Sequence[dt.datetime] = (),
) -> list[CalendarEntry]:
    """One entry per occurrence of a recurring event.

    EXDATE values and occurrences replaced by a RECURRENCE-ID override are
    left out. An unreadable rule keeps only the first occurrence.
    """
    start = entry.start
    rules = _rules(component)
    occurrences = rruleset()
    try:
        for rule in rules:
            occurrences.rrule(rrulestr(rule, dtstart=start, ignoretz=start.tzinfo is None))
    except ValueError as e:
        logger.warning(f"Unreadable RRULE on event {entry.uid}, keeping the first occurrence: {e}")
        return [replace(entry, rrule=None)]

    for value in _exdates(component, start) + [_align(v, start) for v in overridden]:
        occurrences.exdate(value)

    if all("COUNT=" in rule or "UNTIL=" in rule for rule in rules):
        instants = list(itertools.islice(occurrences, MAX_OCCURRENCES))
    else:
        since = dt.datetime.combine(around - EXPANSION_WINDOW, dt.time(), tzinfo=start.tzinfo)
        until = dt.datetime.combine(around + EXPANSION_WINDOW, dt.time(), tzinfo=start.tzinfo)
        instants = occurrences.between(since, until, inc=True)

    duration = entry.end - start if entry.end is not None else None
    return [
        replace(
            entry,
            uid=f"{entry.uid}-{instant:%Y%m%dT%H%M}",
            start=instant,
            end=instant + duration if duration is not None else None,
            rrule=None,
        )
        for instant in instants
    ]


def parse_ics(text: str | bytes, around: dt.date | None = None) -> list[CalendarEntry]:
    """Extract every VEVENT in an ICS document.

    Events without DTSTART are skipped. Open-ended recurring events are
    expanded a year either side of `around` (today when None).

    Raises CalendarParseError when the document or one of its event dates
    cannot be read.
    """
    try:
        calendar = Calendar.from_ical(text)
    except ValueError as e:
        raise CalendarParseError(f"Invalid iCalendar document: {e}") from e
    around = around or dt.date.today()

    components = list(calendar.walk("VEVENT"))
    overridden = defaultdict(list)
    for component in components:
        _check_errors(component)
        recurrence_id = _decoded(component, "RECURRENCE-ID")
        if recurrence_id is not None:
            overridden[_text(component, "UID")].append(_as_datetime(recurrence_id)[0])

    entries = []
    for component in components:
        start_value = _decoded(component, "DTSTART")
        if start_value is None:
            continue
        start, is_all_day = _as_datetime(start_value)

        end_value = _decoded(component, "DTEND")
        if end_value is not None:
            end = _align(_as_datetime(end_value)[0], start)
        elif component.get("DURATION") is not None:
            end = start + _decoded(component, "DURATION")
        else:
            end = None

        rules = _rules(component)
        uid = _text(component, "UID") or None
        entry = CalendarEntry(
            uid=uid,
            title=_text(component, "SUMMARY"),
            start=start,
            end=end,
            is_all_day=is_all_day,
            description=_text(component, "DESCRIPTION"),
            location=_text(component, "LOCATION"),
            rrule="\n".join(rules) or None,
        )
        if rules and component.get("RECURRENCE-ID") is None:
            entries.extend(expand_recurrence(entry, component, around, overridden.get(uid or "", [])))
        else:
            entries.append(entry)

    return entries


def _naive(value: dt.datetime, tz: dt.tzinfo | None) -> dt.datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(tz).replace(tzinfo=None)


def entries_for_date(
    entries: list[CalendarEntry], day: dt.date, tz: dt.tzinfo | None = None
) -> list[CalendarEntry]:
    """Entries overlapping `day`, sorted by start.

    Zoned entries are converted to `tz` (the server's zone when None) before
    comparing against the local day.
    """
    day_start = dt.datetime.combine(day, dt.time())
    day_end = day_start + dt.timedelta(days=1)

    matches = []
    for entry in entries:
        start = _naive(entry.start, tz)
        if entry.is_all_day:
            start = dt.datetime.combine(start.date(), dt.time())

        if entry.end is not None:
            end = _naive(entry.end, tz)
            if entry.is_all_day:
                end = dt.datetime.combine(end.date(), dt.time())
        elif entry.is_all_day:
            end = start + dt.timedelta(days=1)
        else:
            end = dt.datetime.combine(start.date(), dt.time(23, 59, 59, 999999))

        if start < day_end and end > day_start:
            matches.append((start, entry))

    matches.sort(key=lambda pair: pair[0])
    return [entry for _, entry in matches]
