"""Project recurring routines onto concrete dates.

Routines are never stored as events. For a given date a routine either
materialises as a virtual plan-column event or it doesn't, depending on its
weekday set and its inclusive validity window.
"""
import datetime as dt
from collections.abc import Iterable

from timediary.schedule.clock import clock_from_minutes, minutes_of, resolve_bounds
from timediary.schedule.day_window import ResolvedEvent
from timediary.schedule.weekdays import js_weekday

DEFAULT_ROUTINE_MINUTES = 30


def is_active_on(routine, day: dt.date) -> bool:
    """Whether `routine` applies on `day`.

    `weekdays` is the stored list of ints; empty or None means every day.
    """
    weekdays = set(routine.weekdays or ())
    if weekdays and js_weekday(day) not in weekdays:
        return False
    if routine.start_date and day < routine.start_date:
        return False
    if routine.end_date and day > routine.end_date:
        return False
    return True


def routines_for(routines: Iterable, day: dt.date) -> list:
    """Routines that apply on `day`, in their given order."""
    return [routine for routine in routines if is_active_on(routine, day)]


def materialize(routine, day: dt.date) -> ResolvedEvent | None:
    """Virtual plan event for `routine` on `day`, or None."""
    if routine.scheduled_time is None or not is_active_on(routine, day):
        return None

    start_time = routine.scheduled_time.replace(second=0, microsecond=0)
    duration = routine.duration or DEFAULT_ROUTINE_MINUTES
    end_time = clock_from_minutes(minutes_of(start_time) + duration)
    start, end = resolve_bounds(day, start_time, end_time)
    title = f"{routine.emoji} {routine.text}".strip()

    return ResolvedEvent(
        id=None,
        date=day,
        title=title,
        start_time=start_time,
        end_time=end_time,
        start=start,
        end=end,
        is_plan=True,
        routine_id=routine.id,
    )


def materialize_all(routines: Iterable, day: dt.date) -> list[ResolvedEvent]:
    events = [materialize(routine, day) for routine in routines]
    return sorted((e for e in events if e is not None), key=lambda e: e.start)
