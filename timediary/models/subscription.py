"""Calendar subscription model for external ICS feeds.

A subscription points at a published calendar (iCloud, Google, Outlook...)
in iCalendar format. Its entries are read-only and never become timeline
events; they are fetched, parsed and cached by `timediary.calendar.sync`.
"""

import datetime as dt
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class CalendarSubscription(SQLModel, table=True):
    """A subscribed ICS calendar.

    Attributes:
        id: Unique identifier (UUID).
        name: Display name shown as a badge on each entry.
        type: Source kind ("icloud", "google", "outlook", ...).
        type_icon: Emoji shown next to the source kind.
        url: ICS or webcal URL.
        color: Hex colour for the entries.
        enabled: Disabled subscriptions are skipped by refreshes.
        user_id: Owner of this subscription.
        created_at: When the subscription was added.
        updated_at: Last edit.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    type: str = Field(default="icloud")
    type_icon: str = Field(default="📅")
    url: str
    color: str
    enabled: bool = Field(default=True)
    user_id: int = Field(default=1, index=True)
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
    updated_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))


class SubscriptionCreate(SQLModel):
    name: str | None = None
    type: str | None = None
    type_icon: str | None = None
    url: str | None = None
    color: str | None = None
    enabled: bool | None = None


class SubscriptionUpdate(SQLModel):
    name: str | None = None
    type: str | None = None
    type_icon: str | None = None
    url: str | None = None
    color: str | None = None
    enabled: bool | None = None
