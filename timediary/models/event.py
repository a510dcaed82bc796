"""Event model for timeline entries.

An event is anchored to the calendar date it starts on and stores its
wall-clock start and end separately. When `end_time` is earlier than
`start_time` the event runs past midnight and ends on the following date;
every reader resolves it that way through `timediary.schedule.clock`.
"""

import datetime as dt
from typing import TYPE_CHECKING, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

from timediary.models.category import CategoryRead

if TYPE_CHECKING:
    from timediary.models.category import Category


class EventBase(SQLModel):
    date: dt.date = Field(index=True)
    title: str = ""
    start_time: dt.time
    end_time: dt.time
    category_id: UUID | None = Field(default=None, foreign_key="category.id")
    is_plan: bool = Field(default=False)
    description: str = ""


class Event(EventBase, table=True):
    """A scheduled interval on the plan or actual column.

    Attributes:
        id: Unique identifier (UUID).
        date: Calendar date the event starts on.
        title: Short label shown on the timeline block.
        start_time: Wall-clock start.
        end_time: Wall-clock end; earlier than start_time means next day.
        category_id: Optional category (colour, name).
        is_plan: True for the plan column, False for the actual column.
        description: Free text notes.
        user_id: Owner of this event.
        updated_at: Last write, used for last-write-wins edits.
        category: Reference to the Category object.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: int = Field(default=1, index=True)
    updated_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))

    # Relationship
    category: Optional["Category"] = Relationship(back_populates="events")


class EventCreate(SQLModel):
    date: dt.date
    title: str = ""
    start_time: dt.time
    end_time: dt.time
    category_id: UUID | None = None
    is_plan: bool = False
    description: str | None = None


class EventUpdate(SQLModel):
    date: dt.date | None = None
    title: str | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    category_id: UUID | None = None
    is_plan: bool | None = None
    description: str | None = None


class EventRead(EventBase):
    """Event as returned by the API, with the resolved absolute interval."""
    id: UUID | None = None
    start: dt.datetime
    end: dt.datetime
    category: CategoryRead | None = None
    routine_id: UUID | None = None


class WakeCreate(SQLModel):
    """Quick action: record the moment the owner got up."""
    date: dt.date
    time: dt.time = dt.time(10, 0)
    category_id: UUID | None = None
