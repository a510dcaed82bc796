"""Event routes for the daily timeline."""
import datetime as dt
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from timediary.core.cache import day_key, get_cache, invalidate_days
from timediary.core.config import settings
from timediary.core.database import get_session, get_user_id
from timediary.models import Category, Event, Routine, Todo
from timediary.models.event import EventCreate, EventUpdate, WakeCreate
from timediary.schedule.clock import clock_from_minutes, minutes_of
from timediary.schedule.day_window import (
    events_visible_on,
    fetch_day_candidates,
    fetch_sleep_candidates,
    resolve_event,
    resolve_wake_sleep,
)
from timediary.schedule.routines import materialize_all
from timediary.timeline.layout import layout_plan_and_actual

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["events"])


def _get_owned_event(session: Session, event_id: UUID, user_id: int) -> Event:
    event = session.get(Event, event_id)
    if not event or event.user_id != user_id:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


def _check_category(session: Session, category_id: UUID | None, user_id: int) -> None:
    if category_id is None:
        return
    category = session.get(Category, category_id)
    if not category or category.user_id != user_id:
        raise HTTPException(status_code=400, detail="Unknown category")


@router.get("")
async def day_view(
    date: dt.date,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Everything the timeline draws for one day.

    Returns the stored events visible on the day (including overnight events
    from the previous date), the routine events materialised for the day, and
    the column layout of the plan and actual sides. The payload is cached
    until an event on this or the previous date changes.
    """
    key = day_key(user_id, date)
    cached = cache.get(key)
    if cached is not None:
        return cached

    events = events_visible_on(date, fetch_day_candidates(session, user_id, date))

    routines = session.exec(
        select(Routine)
        .where(Routine.user_id == user_id)
        .where(Routine.active == True)  # noqa: E712
        .order_by(Routine.sort_order)
    ).all()
    routine_events = materialize_all(routines, date)

    layout = layout_plan_and_actual(events + routine_events, date)
    payload = {
        "date": date.isoformat(),
        "events": [event.to_dict() for event in events],
        "routine_events": [event.to_dict() for event in routine_events],
        "layout": {side: [block.to_dict() for block in blocks] for side, blocks in layout.items()},
    }
    cache.set(key, payload)
    return payload


@router.get("/wake-sleep")
async def wake_sleep(
    date: dt.date,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """
    Wake and sleep times for a day, inferred from actual sleep events.

    All fields are null when no sleep event is recorded around the date.
    """
    candidates = fetch_sleep_candidates(session, user_id, date)
    return resolve_wake_sleep(date, candidates).to_dict()


@router.post("")
async def create_event(
    payload: EventCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Create an event.

    Times may be sent as HH:MM or HH:MM:SS. An end time earlier than the
    start time means the event ends on the following day.
    """
    _check_category(session, payload.category_id, user_id)

    event = Event(
        date=payload.date,
        title=payload.title,
        start_time=payload.start_time,
        end_time=payload.end_time,
        category_id=payload.category_id,
        is_plan=payload.is_plan,
        description=payload.description or "",
        user_id=user_id,
    )
    session.add(event)
    session.commit()
    session.refresh(event)

    invalidate_days(cache, user_id, event.date)
    logger.info(f"Created event {event.id} on {event.date} ({'plan' if event.is_plan else 'actual'})")
    return {"success": True, "event": resolve_event(event).to_dict()}


@router.post("/wake")
async def record_wake(
    payload: WakeCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Record a short actual event marking the wake-up time.
    """
    _check_category(session, payload.category_id, user_id)

    start_time = payload.time.replace(second=0, microsecond=0)
    end_time = clock_from_minutes(minutes_of(start_time) + settings.wake_event_minutes)
    event = Event(
        date=payload.date,
        title=settings.wake_event_title,
        start_time=start_time,
        end_time=end_time,
        category_id=payload.category_id,
        is_plan=False,
        user_id=user_id,
    )
    session.add(event)
    session.commit()
    session.refresh(event)

    invalidate_days(cache, user_id, event.date)
    return {"success": True, "event": resolve_event(event).to_dict()}


@router.patch("/{event_id}")
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Update an event. Only the fields sent are changed.

    Timeline drags send the new date and times; the last write wins.
    """
    event = _get_owned_event(session, event_id, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if "category_id" in changes:
        _check_category(session, changes["category_id"], user_id)

    old_date = event.date
    for field, value in changes.items():
        if value is None and field != "category_id":
            continue
        setattr(event, field, value)
    event.updated_at = dt.datetime.now(dt.UTC)

    session.add(event)
    session.commit()
    session.refresh(event)

    invalidate_days(cache, user_id, old_date, event.date)
    return {"success": True, "event": resolve_event(event).to_dict()}


@router.delete("/{event_id}")
async def delete_event(
    event_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Delete an event.

    Todos that were promoted into this event keep their completion state but
    lose the link.
    """
    event = _get_owned_event(session, event_id, user_id)

    for todo in session.exec(select(Todo).where(Todo.event_id == event.id)).all():
        todo.event_id = None
        session.add(todo)

    day = event.date
    session.delete(event)
    session.commit()

    invalidate_days(cache, user_id, day)
    logger.info(f"Deleted event {event_id}")
    return {"success": True}
