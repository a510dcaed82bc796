"""Feedback model for quick notes captured from the daily view."""

import datetime as dt
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Feedback(SQLModel, table=True):
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    date: dt.date = Field(index=True)
    feedback_text: str
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))
    user_id: int = Field(default=1, index=True)


class FeedbackCreate(SQLModel):
    date: dt.date
    feedback_text: str = ""
