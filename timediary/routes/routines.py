"""Routine routes: the recurring habit grid and its daily checks."""
import datetime as dt
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from timediary.core.cache import get_cache, invalidate_owner
from timediary.core.database import get_session, get_user_id
from timediary.models import Routine, RoutineCheck
from timediary.models.routine import RoutineCheckWrite, RoutineCreate, RoutineUpdate
from timediary.models.todo import OrderUpdate
from timediary.schedule.routines import routines_for

logger = logging.getLogger(__name__)

router = APIRouter(tags=["routines"])


def active_routines(session: Session, user_id: int) -> list[Routine]:
    statement = (
        select(Routine)
        .where(Routine.user_id == user_id)
        .where(Routine.active == True)  # noqa: E712
        .order_by(Routine.sort_order)
    )
    return list(session.exec(statement).all())


def checks_on(session: Session, user_id: int, day: dt.date) -> dict[str, bool]:
    """Every stored check for `day`, keyed by routine id.

    Checks are returned whether or not their routine applies on `day`.
    """
    statement = (
        select(RoutineCheck)
        .where(RoutineCheck.user_id == user_id)
        .where(RoutineCheck.date == day)
    )
    return {str(check.routine_id): check.checked for check in session.exec(statement).all()}


def _get_owned_routine(session: Session, routine_id: UUID, user_id: int) -> Routine:
    routine = session.get(Routine, routine_id)
    if not routine or routine.user_id != user_id:
        raise HTTPException(status_code=404, detail="Routine not found")
    return routine


@router.get("/routines")
async def list_routines(
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """Active routines in grid order."""
    return active_routines(session, user_id)


@router.get("/routines/day")
async def routines_on_day(
    date: dt.date,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """
    Routines that apply on a date, with that date's checks.
    """
    return {
        "date": date.isoformat(),
        "routines": routines_for(active_routines(session, user_id), date),
        "checks": checks_on(session, user_id, date),
    }


@router.post("/routines")
async def create_routine(
    payload: RoutineCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Create a routine.

    Weekdays may be sent as a list, a JSON string or a comma-separated
    string; Sunday is 0. Omitting them means every day.
    """
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="text is required")

    fields = payload.model_dump(exclude_none=True)
    fields["text"] = fields["text"].strip()
    routine = Routine(**fields, user_id=user_id)
    session.add(routine)
    session.commit()
    session.refresh(routine)

    invalidate_owner(cache, user_id)
    logger.info(f"Created routine {routine.id}: {routine.text}")
    return routine


@router.put("/routines/reorder")
async def reorder_routines(
    orders: list[OrderUpdate],
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    for order in orders:
        routine = _get_owned_routine(session, order.id, user_id)
        routine.sort_order = order.sort_order
        session.add(routine)
    session.commit()

    invalidate_owner(cache, user_id)
    return {"success": True}


@router.patch("/routines/{routine_id}")
async def update_routine(
    routine_id: UUID,
    payload: RoutineUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Update a routine. Only the fields sent are changed.

    Sending `weekdays: null` makes the routine apply every day.
    """
    routine = _get_owned_routine(session, routine_id, user_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in ("text", "emoji", "active", "sort_order"):
            continue
        setattr(routine, field, value)

    session.add(routine)
    session.commit()
    session.refresh(routine)

    invalidate_owner(cache, user_id)
    return routine


@router.delete("/routines/{routine_id}")
async def delete_routine(
    routine_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Deactivate a routine.

    The row and its checks are kept so past days still show them.
    """
    routine = _get_owned_routine(session, routine_id, user_id)
    routine.active = False
    session.add(routine)
    session.commit()

    invalidate_owner(cache, user_id)
    return {"success": True}


@router.post("/routine-checks")
async def set_routine_check(
    payload: RoutineCheckWrite,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """Check or uncheck a routine on a date."""
    _get_owned_routine(session, payload.routine_id, user_id)

    statement = (
        select(RoutineCheck)
        .where(RoutineCheck.user_id == user_id)
        .where(RoutineCheck.date == payload.date)
        .where(RoutineCheck.routine_id == payload.routine_id)
    )
    check = session.exec(statement).first()
    if check is None:
        check = RoutineCheck(
            date=payload.date,
            routine_id=payload.routine_id,
            checked=payload.checked,
            user_id=user_id,
        )
    else:
        check.checked = payload.checked

    session.add(check)
    session.commit()
    session.refresh(check)

    cache.delete_prefix(f"monthly:{user_id}:")
    return check
