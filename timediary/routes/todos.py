"""Todo routes for the daily task list."""
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, func, select

from timediary.core.cache import get_cache, invalidate_days
from timediary.core.database import get_session, get_user_id
from timediary.models import Event, Todo, TodoCategory
from timediary.models.todo import OrderUpdate, TodoComplete, TodoCreate, TodoUpdate
from timediary.schedule.clock import clock_from_minutes, minutes_of
from timediary.schedule.day_window import resolve_event
from timediary.schedule.routines import DEFAULT_ROUTINE_MINUTES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/todos", tags=["todos"])


def _get_owned_todo(session: Session, todo_id: UUID, user_id: int) -> Todo:
    todo = session.get(Todo, todo_id)
    if not todo or todo.user_id != user_id:
        raise HTTPException(status_code=404, detail="Todo not found")
    return todo


def _check_todo_category(session: Session, todo_category_id: UUID | None, user_id: int) -> None:
    if todo_category_id is None:
        return
    todo_category = session.get(TodoCategory, todo_category_id)
    if not todo_category or todo_category.user_id != user_id:
        raise HTTPException(status_code=400, detail="Unknown todo category")


def event_category_for(session: Session, todo: Todo) -> UUID | None:
    """The event category a completed todo is filed under.

    The todo category's mapping wins; the todo's own category is the fallback.
    """
    if todo.todo_category_id is not None:
        todo_category = session.get(TodoCategory, todo.todo_category_id)
        if todo_category is not None and todo_category.event_category_id is not None:
            return todo_category.event_category_id
    return todo.category_id


@router.post("")
async def create_todo(
    payload: TodoCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """Add a todo to the end of the day's list."""
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="text is required")
    _check_todo_category(session, payload.todo_category_id, user_id)

    last = session.exec(
        select(func.max(Todo.sort_order))
        .where(Todo.user_id == user_id)
        .where(Todo.date == payload.date)
    ).one()

    todo = Todo(
        **payload.model_dump(exclude={"text"}),
        text=payload.text.strip(),
        sort_order=0 if last is None else last + 1,
        user_id=user_id,
    )
    session.add(todo)
    session.commit()
    session.refresh(todo)
    return todo


@router.put("/reorder")
async def reorder_todos(
    orders: list[OrderUpdate],
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    for order in orders:
        todo = _get_owned_todo(session, order.id, user_id)
        todo.sort_order = order.sort_order
        session.add(todo)
    session.commit()
    return {"success": True}


@router.patch("/{todo_id}")
async def update_todo(
    todo_id: UUID,
    payload: TodoUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    todo = _get_owned_todo(session, todo_id, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if "todo_category_id" in changes:
        _check_todo_category(session, changes["todo_category_id"], user_id)
    for field, value in changes.items():
        if value is None and field in ("text", "completed"):
            continue
        setattr(todo, field, value)

    session.add(todo)
    session.commit()
    session.refresh(todo)
    return todo


@router.delete("/{todo_id}")
async def delete_todo(
    todo_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    todo = _get_owned_todo(session, todo_id, user_id)
    session.delete(todo)
    session.commit()
    return {"success": True}


@router.post("/{todo_id}/pomodoro")
async def add_pomodoro(
    todo_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """Count one finished pomodoro session against the todo."""
    todo = _get_owned_todo(session, todo_id, user_id)
    todo.pomodoro_count += 1
    session.add(todo)
    session.commit()
    session.refresh(todo)
    return todo


@router.post("/{todo_id}/complete")
async def complete_todo(
    todo_id: UUID,
    payload: TodoComplete,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Mark a todo done and record it as an actual event.

    The event runs from the given start (or the todo's scheduled time) for
    the given end (or the todo's duration, 30 minutes by default). A todo
    that already produced an event is only marked completed again.
    """
    todo = _get_owned_todo(session, todo_id, user_id)

    event = session.get(Event, todo.event_id) if todo.event_id else None
    if event is None:
        start_time = payload.start_time or todo.scheduled_time
        if start_time is None:
            raise HTTPException(status_code=400, detail="start_time is required")
        end_time = payload.end_time or clock_from_minutes(
            minutes_of(start_time) + (todo.duration or DEFAULT_ROUTINE_MINUTES)
        )
        event = Event(
            date=todo.date,
            title=todo.text,
            start_time=start_time,
            end_time=end_time,
            category_id=event_category_for(session, todo),
            is_plan=False,
            user_id=user_id,
        )
        session.add(event)
        session.flush()
        todo.event_id = event.id
        logger.info(f"Todo {todo.id} completed as event {event.id}")

    todo.completed = True
    session.add(todo)
    session.commit()
    session.refresh(todo)
    session.refresh(event)

    invalidate_days(cache, user_id, event.date)
    return {"success": True, "todo": todo, "event": resolve_event(event).to_dict()}
