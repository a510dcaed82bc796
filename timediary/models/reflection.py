"""Reflection model for the end-of-day mood and diary text."""

import datetime as dt
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from timediary.models.todo import DailyTodo


class Reflection(SQLModel, table=True):
    """One reflection per owner and date.

    Attributes:
        id: Unique identifier (UUID).
        date: Date reflected on.
        mood: Mood marker chosen for the day, if any.
        reflection_text: Free text diary entry.
        user_id: Owner of this reflection.
    """
    __table_args__ = (UniqueConstraint("date", "user_id"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    date: dt.date = Field(index=True)
    mood: str | None = None
    reflection_text: str = ""
    user_id: int = Field(default=1, index=True)


class DailySave(SQLModel):
    """Batch save of a day's todo list and diary entry.

    Fields left out are not touched.
    """
    todos: list[DailyTodo] | None = None
    reflection: str | None = None
    mood: str | None = None
