"""Resolve which events belong on a day and when the owner woke and slept.

Both resolvers are pure functions over candidate records; the two `fetch_*`
helpers are the only record-store queries they need. Because an event may
cross at most one midnight, looking one day back is always enough.
"""
import datetime as dt
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlmodel import Session, col, select

from timediary.core.config import settings
from timediary.models import Category, Event
from timediary.schedule.clock import day_bounds, format_hm, resolve_bounds

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedEvent:
    """An event with its absolute start and end.

    `id` is None for unsaved or virtual (routine) events.
    """
    id: UUID | None
    date: dt.date
    title: str
    start_time: dt.time
    end_time: dt.time
    start: dt.datetime
    end: dt.datetime
    is_plan: bool = False
    category_id: UUID | None = None
    category: dict[str, Any] | None = field(default=None, compare=False)
    description: str = ""
    routine_id: UUID | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id) if self.id else None,
            "date": self.date.isoformat(),
            "title": self.title,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "is_plan": self.is_plan,
            "category_id": str(self.category_id) if self.category_id else None,
            "category": self.category,
            "description": self.description,
            "routine_id": str(self.routine_id) if self.routine_id else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResolvedEvent":
        """Rebuild an event from its API representation."""

        def _uuid(value):
            return UUID(value) if value else None

        return cls(
            id=_uuid(data.get("id")),
            date=dt.date.fromisoformat(data["date"]),
            title=data.get("title") or "",
            start_time=dt.time.fromisoformat(data["start_time"]),
            end_time=dt.time.fromisoformat(data["end_time"]),
            start=dt.datetime.fromisoformat(data["start"]),
            end=dt.datetime.fromisoformat(data["end"]),
            is_plan=bool(data.get("is_plan")),
            category_id=_uuid(data.get("category_id")),
            category=data.get("category"),
            description=data.get("description") or "",
            routine_id=_uuid(data.get("routine_id")),
        )


@dataclass(frozen=True)
class WakeSleep:
    """Wake and sleep instants around a day. All None when unknown."""
    wake_time: str | None = None
    wake_at: dt.datetime | None = None
    sleep_time: str | None = None
    sleep_at: dt.datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "wake_time": self.wake_time,
            "wake_at": self.wake_at.isoformat() if self.wake_at else None,
            "sleep_time": self.sleep_time,
            "sleep_at": self.sleep_at.isoformat() if self.sleep_at else None,
        }


def _category_payload(event) -> dict[str, Any] | None:
    category = getattr(event, "category", None)
    if category is None:
        return None
    return {"id": str(category.id), "name": category.name, "color": category.color}


def resolve_event(event) -> ResolvedEvent:
    """Attach the absolute interval to a stored event."""
    start, end = resolve_bounds(event.date, event.start_time, event.end_time)
    return ResolvedEvent(
        id=event.id,
        date=event.date,
        title=event.title,
        start_time=event.start_time,
        end_time=event.end_time,
        start=start,
        end=end,
        is_plan=event.is_plan,
        category_id=event.category_id,
        category=_category_payload(event),
        description=event.description or "",
    )


def events_visible_on(day: dt.date, candidates: Iterable) -> list[ResolvedEvent]:
    """Events from `day` and `day - 1` that overlap `day`.

    Both ends are inclusive: an overnight event ending exactly at midnight
    still shows on the following day.
    """
    day_start, day_end = day_bounds(day)
    visible = []
    for event in candidates:
        resolved = resolve_event(event)
        if resolved.start <= day_end and resolved.end >= day_start:
            visible.append(resolved)
    return visible


def resolve_wake_sleep(day: dt.date, candidates: Iterable) -> WakeSleep:
    """Infer wake and sleep times for `day` from sleep events.

    Candidates are actual (non-plan) sleep events dated `day - 1` through
    `day + 1`.

    Wake is the end of the sleep that finishes on `day`; if several do, the
    latest end wins. Times are compared as zero-padded clock values, so
    ordering by `end_time` is safe.

    Sleep is the start of the first sleep dated on or after `day` that
    begins after the wake instant.
    """
    events = sorted(candidates, key=lambda e: (e.date, e.start_time))

    wake = None
    wake_at = None
    for event in events:
        _, end_at = resolve_bounds(event.date, event.start_time, event.end_time)
        if end_at.date() != day:
            continue
        if wake is None or event.end_time > wake.end_time:
            wake, wake_at = event, end_at

    sleep = None
    sleep_at = None
    for event in events:
        if event.date < day:
            continue
        start_at = dt.datetime.combine(event.date, event.start_time)
        if wake_at is not None and start_at <= wake_at:
            continue
        sleep, sleep_at = event, start_at
        break

    return WakeSleep(
        wake_time=format_hm(wake.end_time) if wake else None,
        wake_at=wake_at,
        sleep_time=format_hm(sleep.start_time) if sleep else None,
        sleep_at=sleep_at,
    )


def fetch_day_candidates(session: Session, user_id: int, day: dt.date) -> list[Event]:
    """Events owned by `user_id` dated `day - 1` or `day`."""
    statement = (
        select(Event)
        .where(Event.user_id == user_id)
        .where(col(Event.date).in_([day - dt.timedelta(days=1), day]))
        .order_by(Event.date, Event.start_time)
    )
    return list(session.exec(statement).all())


def fetch_sleep_candidates(
    session: Session,
    user_id: int,
    day: dt.date,
    sleep_title: str | None = None,
    category_marker: str | None = None,
) -> list[Event]:
    """Actual sleep events owned by `user_id` dated `day - 1` through `day + 1`."""
    sleep_title = sleep_title or settings.sleep_title
    category_marker = category_marker or settings.sleep_category_marker
    statement = (
        select(Event)
        .join(Category, Event.category_id == Category.id)
        .where(Event.user_id == user_id)
        .where(Event.date >= day - dt.timedelta(days=1))
        .where(Event.date <= day + dt.timedelta(days=1))
        .where(Event.title == sleep_title)
        .where(col(Category.name).contains(category_marker))
        .where(Event.is_plan == False)  # noqa: E712
        .order_by(Event.date, Event.start_time)
    )
    events = list(session.exec(statement).all())
    logger.debug(f"Found {len(events)} sleep events around {day}")
    return events
