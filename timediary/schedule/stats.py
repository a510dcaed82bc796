"""Monthly aggregates over actual events and routine checks."""
import calendar
import datetime as dt
from collections import defaultdict
from collections.abc import Iterable

from timediary.schedule.day_window import ResolvedEvent
from timediary.schedule.weekdays import js_weekday

UNCATEGORIZED = "Unknown"
WEEKDAY_LABELS = ["일", "월", "화", "수", "목", "금", "토"]


def month_range(year: int, month: int) -> tuple[dt.date, dt.date]:
    """First and last date of a month."""
    last = calendar.monthrange(year, month)[1]
    return dt.date(year, month, 1), dt.date(year, month, last)


def hours_on(event: ResolvedEvent, day: dt.date) -> float:
    """Hours of `event` that fall on `day`."""
    day_start = dt.datetime.combine(day, dt.time())
    day_end = day_start + dt.timedelta(days=1)
    start = max(event.start, day_start)
    end = min(event.end, day_end)
    if end <= start:
        return 0.0
    return (end - start).total_seconds() / 3600


def monthly_time_stats(events: Iterable[ResolvedEvent], year: int, month: int) -> dict:
    """Hours per category for each day of the month.

    Overnight events are split at midnight, so each day only counts the part
    that actually falls on it. Events without a category are grouped under
    "Unknown".
    """
    first, last = month_range(year, month)
    per_day: dict[dt.date, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    totals: dict[str, float] = defaultdict(float)

    for event in events:
        if event.is_plan:
            continue
        name = (event.category or {}).get("name") or UNCATEGORIZED
        day = max(event.start.date(), first)
        while day <= min(event.end.date(), last):
            hours = hours_on(event, day)
            if hours > 0:
                per_day[day][name] += hours
                totals[name] += hours
            day += dt.timedelta(days=1)

    days = []
    day = first
    while day <= last:
        days.append({
            "date": day.isoformat(),
            "weekday": WEEKDAY_LABELS[js_weekday(day)],
            "categories": {name: round(h, 2) for name, h in per_day[day].items()},
        })
        day += dt.timedelta(days=1)

    return {
        "year": year,
        "month": month,
        "days": days,
        "totals": {name: round(h, 2) for name, h in sorted(totals.items())},
    }


def monthly_routine_stats(checks: Iterable, year: int, month: int) -> dict:
    """Number of checked routines on each day of the month."""
    first, last = month_range(year, month)
    counts: dict[dt.date, int] = defaultdict(int)
    for check in checks:
        if check.checked and first <= check.date <= last:
            counts[check.date] += 1

    days = []
    day = first
    while day <= last:
        days.append({"date": day.isoformat(), "checked": counts[day]})
        day += dt.timedelta(days=1)
    return {"year": year, "month": month, "days": days, "total": sum(counts.values())}
