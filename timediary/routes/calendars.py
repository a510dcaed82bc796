"""Calendar subscription routes for external ICS feeds."""
import datetime as dt
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from timediary.calendar.client import normalize_calendar_url
from timediary.calendar.sync import (
    RefreshState,
    calendar_events_for,
    feed_key,
    refresh_subscriptions,
)
from timediary.core.cache import get_cache
from timediary.core.config import settings
from timediary.core.database import get_session, get_user_id
from timediary.models import CalendarSubscription
from timediary.models.subscription import SubscriptionCreate, SubscriptionUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendars", tags=["calendars"])


def _get_owned_subscription(session: Session, subscription_id: UUID, user_id: int) -> CalendarSubscription:
    subscription = session.get(CalendarSubscription, subscription_id)
    if not subscription or subscription.user_id != user_id:
        raise HTTPException(status_code=404, detail="Calendar not found")
    return subscription


@router.get("")
async def list_subscriptions(
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    statement = (
        select(CalendarSubscription)
        .where(CalendarSubscription.user_id == user_id)
        .order_by(CalendarSubscription.created_at)
    )
    return session.exec(statement).all()


@router.post("")
async def create_subscription(
    payload: SubscriptionCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """Subscribe to an ICS calendar. Name, url and color are required."""
    if not payload.name or not payload.url or not payload.color:
        raise HTTPException(status_code=400, detail="name, url and color are required")

    fields = payload.model_dump(exclude_none=True)
    fields["url"] = normalize_calendar_url(payload.url)
    subscription = CalendarSubscription(**fields, user_id=user_id)
    session.add(subscription)
    session.commit()
    session.refresh(subscription)

    logger.info(f"Added calendar subscription {subscription.name}")
    return subscription


@router.get("/events")
async def calendar_events(
    date: dt.date,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """
    Entries of every enabled subscription that fall on a date.

    A calendar that cannot be downloaded is skipped; see /calendars/status.
    """
    entries = calendar_events_for(session, cache, user_id, date)
    return {"date": date.isoformat(), "events": [entry.to_dict() for entry in entries]}


@router.post("/refresh")
async def refresh_now(
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    """Download every enabled subscription now."""
    return refresh_subscriptions(session, cache, user_id=user_id)


@router.get("/status")
async def refresh_status():
    """
    Get the outcome of the latest refreshes.

    Returns the refresh interval, the time of the last run, and per
    subscription the entry count and any error.
    """
    return {
        "refresh_interval_minutes": settings.calendar_refresh_minutes,
        **RefreshState.snapshot(),
    }


@router.patch("/{subscription_id}")
async def update_subscription(
    subscription_id: UUID,
    payload: SubscriptionUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    subscription = _get_owned_subscription(session, subscription_id, user_id)
    changes = payload.model_dump(exclude_none=True)
    if "url" in changes:
        changes["url"] = normalize_calendar_url(changes["url"])
    for field, value in changes.items():
        setattr(subscription, field, value)
    subscription.updated_at = dt.datetime.now(dt.UTC)

    session.add(subscription)
    session.commit()
    session.refresh(subscription)

    cache.delete(feed_key(subscription.id))
    return subscription


@router.delete("/{subscription_id}")
async def delete_subscription(
    subscription_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    subscription = _get_owned_subscription(session, subscription_id, user_id)
    session.delete(subscription)
    session.commit()

    cache.delete(feed_key(subscription_id))
    return {"success": True}
