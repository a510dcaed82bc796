"""Routine and routine-check models.

Routines are recurring habits. They are never stored as events; the day
view projects them into virtual plan-column events on read (see
`timediary.schedule.routines`). A routine check records whether a routine
was done on a given date.
"""

import datetime as dt
from typing import Optional
from uuid import UUID, uuid4

from pydantic import field_validator
from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

from timediary.schedule.weekdays import normalize_weekdays


class Routine(SQLModel, table=True):
    """A recurring routine.

    Attributes:
        id: Unique identifier (UUID).
        text: What the routine is.
        emoji: Icon prefixed to the materialised event title.
        scheduled_time: Time of day the routine starts, if it has one.
        duration: Length in minutes of the materialised event.
        weekdays: Days it applies to, 0-6 with Sunday=0. None means every day.
        start_date: First date it applies (inclusive), None for unbounded.
        end_date: Last date it applies (inclusive), None for unbounded.
        active: False once deleted; inactive routines are kept for history.
        sort_order: Position in the routine grid.
        user_id: Owner of this routine.
        checks: Per-date completion records.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    text: str
    emoji: str = ""
    scheduled_time: dt.time | None = None
    duration: int | None = None
    weekdays: list[int] | None = Field(default=None, sa_column=Column(JSON))
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    active: bool = Field(default=True)
    sort_order: int = Field(default=9999)
    user_id: int = Field(default=1, index=True)

    # Relationship
    checks: list["RoutineCheck"] = Relationship(back_populates="routine")


class RoutineCheck(SQLModel, table=True):
    """Whether a routine was checked off on a date."""
    __table_args__ = (UniqueConstraint("date", "routine_id", "user_id"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    date: dt.date = Field(index=True)
    routine_id: UUID = Field(foreign_key="routine.id")
    checked: bool = Field(default=False)
    user_id: int = Field(default=1, index=True)

    routine: Optional[Routine] = Relationship(back_populates="checks")


class _WeekdaysInput(SQLModel):
    """Request bodies normalise `weekdays` before it reaches the core."""

    weekdays: list[int] | None = None

    @field_validator("weekdays", mode="before")
    @classmethod
    def _normalize_weekdays(cls, value):
        days = normalize_weekdays(value)
        return sorted(days) if days is not None else None


class RoutineCreate(_WeekdaysInput):
    text: str
    emoji: str = ""
    scheduled_time: dt.time | None = None
    duration: int | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    sort_order: int | None = None


class RoutineUpdate(_WeekdaysInput):
    text: str | None = None
    emoji: str | None = None
    scheduled_time: dt.time | None = None
    duration: int | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    active: bool | None = None
    sort_order: int | None = None


class RoutineCheckWrite(SQLModel):
    date: dt.date
    routine_id: UUID
    checked: bool
