"""Monthly statistics routes."""
import datetime as dt

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select

from timediary.core.cache import get_cache
from timediary.core.database import get_session, get_user_id
from timediary.models import Event, RoutineCheck
from timediary.schedule.day_window import resolve_event
from timediary.schedule.stats import month_range, monthly_routine_stats, monthly_time_stats

router = APIRouter(prefix="/monthly", tags=["monthly"])


@router.get("/time-stats")
async def time_stats(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Hours spent per category on each day of a month.

    Only actual events count. Events from the last day of the previous month
    that run past midnight contribute their morning part.
    """
    key = f"monthly:{user_id}:{year:04d}-{month:02d}:time"
    cached = cache.get(key)
    if cached is not None:
        return cached

    first, last = month_range(year, month)
    statement = (
        select(Event)
        .where(Event.user_id == user_id)
        .where(Event.is_plan == False)  # noqa: E712
        .where(Event.date >= first - dt.timedelta(days=1))
        .where(Event.date <= last)
    )
    events = [resolve_event(event) for event in session.exec(statement).all()]

    stats = monthly_time_stats(events, year, month)
    cache.set(key, stats)
    return stats


@router.get("/routine-stats")
async def routine_stats(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """Number of routines checked on each day of a month."""
    key = f"monthly:{user_id}:{year:04d}-{month:02d}:routines"
    cached = cache.get(key)
    if cached is not None:
        return cached

    first, last = month_range(year, month)
    statement = (
        select(RoutineCheck)
        .where(RoutineCheck.user_id == user_id)
        .where(RoutineCheck.date >= first)
        .where(RoutineCheck.date <= last)
    )
    stats = monthly_routine_stats(session.exec(statement).all(), year, month)
    cache.set(key, stats)
    return stats
