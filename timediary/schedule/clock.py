"""Wall-clock arithmetic shared by the resolver and the timeline engine.

Events store a date plus two times of day. The one rule every caller must
apply identically: an end time earlier than the start time belongs to the
next calendar day. `resolve_bounds` is the only place that rule is coded.
"""
import datetime as dt
import math

MINUTES_PER_DAY = 24 * 60
SNAP_MINUTES = 10


def format_hm(value: dt.time | dt.datetime) -> str:
    return value.strftime("%H:%M")


def minutes_of(value: dt.time) -> int:
    return value.hour * 60 + value.minute


def clock_from_minutes(minutes: int) -> dt.time:
    """Time of day for a minute offset; offsets past 24:00 wrap around."""
    minutes %= MINUTES_PER_DAY
    return dt.time(minutes // 60, minutes % 60)


def minutes_from_pixels(y: float, hour_height: float) -> int:
    return math.floor(y * 60 / hour_height)


def snap_minutes(minutes: int, step: int = SNAP_MINUTES) -> int:
    """Round to the nearest multiple of `step`, halves rounding up."""
    return math.floor(minutes / step + 0.5) * step


def crosses_midnight(start: dt.time, end: dt.time) -> bool:
    return end < start


def resolve_bounds(
    day: dt.date, start: dt.time, end: dt.time
) -> tuple[dt.datetime, dt.datetime]:
    """Absolute start and end of an event anchored on `day`."""
    start_at = dt.datetime.combine(day, start)
    end_day = day + dt.timedelta(days=1) if crosses_midnight(start, end) else day
    return start_at, dt.datetime.combine(end_day, end)


def day_bounds(day: dt.date) -> tuple[dt.datetime, dt.datetime]:
    """The 00:00:00 and 23:59:59 instants of `day`."""
    return (
        dt.datetime.combine(day, dt.time(0, 0, 0)),
        dt.datetime.combine(day, dt.time(23, 59, 59)),
    )
