"""Refresh subscribed ICS calendars into the shared cache."""
import datetime as dt
import logging
from dataclasses import replace
from uuid import UUID

from sqlmodel import Session, select

from timediary.calendar.client import CalendarFetchError, fetch_ics
from timediary.calendar.parser import (
    CalendarEntry,
    CalendarParseError,
    entries_for_date,
    parse_ics,
)
from timediary.core.config import settings
from timediary.models import CalendarSubscription

logger = logging.getLogger(__name__)


def feed_key(subscription_id: UUID) -> str:
    return f"ics:{subscription_id}"


def feed_ttl() -> float:
    # Keep feeds across one missed refresh.
    return settings.calendar_refresh_minutes * 60 * 2


class RefreshState:
    """Outcome of the latest refresh per subscription."""

    _last_refresh: dt.datetime | None = None
    _results: dict[str, dict] = {}

    @classmethod
    def record(cls, subscription_id: UUID, count: int, error: str | None = None) -> None:
        cls._results[str(subscription_id)] = {
            "refreshed_at": dt.datetime.now(dt.UTC).isoformat(),
            "entries": count,
            "error": error,
        }

    @classmethod
    def mark_run(cls) -> None:
        cls._last_refresh = dt.datetime.now(dt.UTC)

    @classmethod
    def snapshot(cls) -> dict:
        return {
            "last_refresh": cls._last_refresh.isoformat() if cls._last_refresh else None,
            "subscriptions": dict(cls._results),
        }

    @classmethod
    def reset(cls) -> None:
        cls._last_refresh = None
        cls._results = {}


def load_subscription(subscription: CalendarSubscription, cache) -> list[CalendarEntry]:
    """Download and parse one subscription, then cache its entries.

    Raises CalendarFetchError when the feed cannot be downloaded or parsed.
    """
    text = fetch_ics(subscription.url)
    try:
        parsed = parse_ics(text)
    except CalendarParseError as e:
        logger.warning(f"Calendar {subscription.name} is not valid iCalendar: {e}")
        raise CalendarFetchError(f"Failed to parse calendar: {e}") from e

    entries = [
        replace(
            entry,
            calendar_id=str(subscription.id),
            calendar_name=subscription.name,
            calendar_color=subscription.color,
        )
        for entry in parsed
    ]
    cache.set(feed_key(subscription.id), entries, ttl=feed_ttl())
    RefreshState.record(subscription.id, len(entries))
    logger.info(f"Loaded {len(entries)} entries from calendar {subscription.name}")
    return entries


def refresh_subscriptions(session: Session, cache, user_id: int | None = None) -> dict:
    """
    Refresh every enabled subscription.

    A failing calendar is logged and counted; the others still refresh.

    Returns dict with refresh statistics.
    """
    statement = select(CalendarSubscription).where(CalendarSubscription.enabled == True)  # noqa: E712
    if user_id is not None:
        statement = statement.where(CalendarSubscription.user_id == user_id)
    subscriptions = session.exec(statement).all()

    stats = {"refreshed": 0, "failed": 0, "entries": 0}
    for subscription in subscriptions:
        try:
            entries = load_subscription(subscription, cache)
        except CalendarFetchError as e:
            logger.error(f"Refresh of calendar {subscription.name} failed: {e}")
            RefreshState.record(subscription.id, 0, str(e))
            stats["failed"] += 1
            continue
        stats["refreshed"] += 1
        stats["entries"] += len(entries)

    RefreshState.mark_run()
    logger.info(f"Calendar refresh completed: {stats}")
    return stats


def calendar_events_for(session: Session, cache, user_id: int, day: dt.date) -> list[CalendarEntry]:
    """Entries from the owner's enabled subscriptions that fall on `day`.

    Feeds missing from the cache are loaded on demand. A feed that fails to
    load contributes nothing.
    """
    statement = (
        select(CalendarSubscription)
        .where(CalendarSubscription.user_id == user_id)
        .where(CalendarSubscription.enabled == True)  # noqa: E712
    )
    entries = []
    for subscription in session.exec(statement).all():
        feed = cache.get(feed_key(subscription.id))
        if feed is None:
            try:
                feed = load_subscription(subscription, cache)
            except CalendarFetchError as e:
                RefreshState.record(subscription.id, 0, str(e))
                continue
        entries.extend(feed)
    return entries_for_date(entries, day)
