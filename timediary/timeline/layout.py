"""Side-by-side placement of overlapping events in one timeline column.

Plan and actual events are laid out independently. Within a column,
events are packed greedily: each one takes the first sub-column whose
previous occupant has already ended, and its width is set by the busiest
neighbour it actually overlaps rather than by the whole day.
"""
import datetime as dt
from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from functools import lru_cache

from timediary.schedule.clock import MINUTES_PER_DAY
from timediary.schedule.day_window import ResolvedEvent


@dataclass(frozen=True)
class Interval:
    """A half-open [start, end) span with a stable key."""
    key: Hashable
    start: int | float | dt.datetime
    end: int | float | dt.datetime


@dataclass(frozen=True)
class ColumnSlot:
    column: int
    total_columns: int

    @property
    def width_percent(self) -> float:
        return 100 / self.total_columns

    @property
    def left_percent(self) -> float:
        return self.column * self.width_percent


@dataclass(frozen=True)
class Block:
    """An event as drawn on a single displayed day."""
    event: ResolvedEvent
    top_minutes: int
    bottom_minutes: int
    slot: ColumnSlot

    def to_dict(self) -> dict:
        return {
            "event": self.event.to_dict(),
            "top_minutes": self.top_minutes,
            "bottom_minutes": self.bottom_minutes,
            "column": self.slot.column,
            "total_columns": self.slot.total_columns,
            "width_percent": self.slot.width_percent,
            "left_percent": self.slot.left_percent,
        }


def overlaps(a: Interval, b: Interval) -> bool:
    return max(a.start, b.start) < min(a.end, b.end)


def layout_columns(intervals: Iterable[Interval]) -> dict[Hashable, ColumnSlot]:
    """Assign each interval a column index and a column count.

    Intervals with no positive duration are skipped. Two overlapping
    intervals never share a column.
    """
    valid = [interval for interval in intervals if interval.end > interval.start]
    # Start ascending, longer first on ties so it claims the lower column.
    ordered = sorted(valid, key=lambda i: i.end, reverse=True)
    ordered.sort(key=lambda i: i.start)

    column_ends = []
    columns = {}
    for interval in ordered:
        for index, last_end in enumerate(column_ends):
            if last_end <= interval.start:
                column_ends[index] = interval.end
                columns[interval.key] = index
                break
        else:
            column_ends.append(interval.end)
            columns[interval.key] = len(column_ends) - 1

    slots = {}
    for interval in ordered:
        widest = columns[interval.key]
        for other in ordered:
            if other is not interval and overlaps(interval, other):
                widest = max(widest, columns[other.key])
        slots[interval.key] = ColumnSlot(columns[interval.key], widest + 1)
    return slots


@lru_cache(maxsize=128)
def _cached_layout(intervals: tuple[Interval, ...]) -> dict[Hashable, ColumnSlot]:
    return layout_columns(intervals)


def event_key(event: ResolvedEvent, position: int) -> Hashable:
    """Stable layout key: the event id, the routine id, or the position."""
    if event.id is not None:
        return event.id
    if event.routine_id is not None:
        return ("routine", event.routine_id)
    return ("draft", position)


def minutes_on(event: ResolvedEvent, day: dt.date) -> tuple[int, int]:
    """The event's span on `day` in minutes from midnight, clamped to the day."""
    day_start = dt.datetime.combine(day, dt.time())
    top = int((event.start - day_start).total_seconds() // 60)
    bottom = int((event.end - day_start).total_seconds() // 60)
    return max(top, 0), min(bottom, MINUTES_PER_DAY)


def layout_day(events: Sequence[ResolvedEvent], day: dt.date) -> list[Block]:
    """Lay out one column of events for the displayed `day`."""
    spans = {}
    intervals = []
    for position, event in enumerate(events):
        key = event_key(event, position)
        top, bottom = minutes_on(event, day)
        if bottom <= top:
            continue
        spans[key] = (event, top, bottom)
        intervals.append(Interval(key, top, bottom))

    slots = _cached_layout(tuple(intervals))
    blocks = [
        Block(event, top, bottom, slots[key])
        for key, (event, top, bottom) in spans.items()
    ]
    return sorted(blocks, key=lambda b: (b.top_minutes, b.slot.column))


def layout_plan_and_actual(
    events: Sequence[ResolvedEvent], day: dt.date
) -> dict[str, list[Block]]:
    """Lay out the plan and actual columns separately."""
    return {
        "plan": layout_day([e for e in events if e.is_plan], day),
        "actual": layout_day([e for e in events if not e.is_plan], day),
    }
