"""Daily batch routes: load and save everything beside the timeline."""
import datetime as dt
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from timediary.core.database import get_session, get_user_id
from timediary.models import Feedback, Reflection, Todo
from timediary.models.feedback import FeedbackCreate
from timediary.models.reflection import DailySave
from timediary.routes.routines import active_routines, checks_on
from timediary.schedule.routines import routines_for

logger = logging.getLogger(__name__)

router = APIRouter(tags=["daily"])


def _todos_on(session: Session, user_id: int, day: dt.date) -> list[Todo]:
    statement = (
        select(Todo)
        .where(Todo.user_id == user_id)
        .where(Todo.date == day)
        .order_by(Todo.sort_order)
    )
    return list(session.exec(statement).all())


def _reflection_on(session: Session, user_id: int, day: dt.date) -> Reflection | None:
    statement = (
        select(Reflection)
        .where(Reflection.user_id == user_id)
        .where(Reflection.date == day)
    )
    return session.exec(statement).first()


@router.get("/daily/{date}")
async def load_day(
    date: dt.date,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """
    Load the todo list, reflection, mood, routines and routine checks of a day.

    Routines are filtered to those applying on the date; checks are every
    check stored for the date.
    """
    reflection = _reflection_on(session, user_id, date)
    return {
        "date": date.isoformat(),
        "todos": _todos_on(session, user_id, date),
        "reflection": reflection.reflection_text if reflection else "",
        "mood": reflection.mood if reflection else None,
        "routines": routines_for(active_routines(session, user_id), date),
        "routine_checks": checks_on(session, user_id, date),
    }


@router.post("/daily/{date}")
async def save_day(
    date: dt.date,
    payload: DailySave,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """
    Save a day in one request.

    A todo list, when sent, replaces the stored one in the given order. The
    reflection and mood are upserted.
    """
    if payload.todos is not None:
        for todo in _todos_on(session, user_id, date):
            session.delete(todo)
        for position, item in enumerate(payload.todos):
            session.add(Todo(**item.model_dump(), date=date, sort_order=position, user_id=user_id))

    if payload.reflection is not None or payload.mood is not None:
        reflection = _reflection_on(session, user_id, date)
        if reflection is None:
            reflection = Reflection(date=date, user_id=user_id)
        if payload.reflection is not None:
            reflection.reflection_text = payload.reflection
        if payload.mood is not None:
            reflection.mood = payload.mood or None
        session.add(reflection)

    session.commit()
    logger.info(f"Saved daily data for {date}")
    return {"success": True}


@router.post("/feedback")
async def create_feedback(
    payload: FeedbackCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    if not payload.feedback_text.strip():
        raise HTTPException(status_code=400, detail="feedback_text is required")

    feedback = Feedback(date=payload.date, feedback_text=payload.feedback_text.strip(), user_id=user_id)
    session.add(feedback)
    session.commit()
    session.refresh(feedback)
    return feedback
