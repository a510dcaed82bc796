"""Todo category model.

Todo categories group the daily task list. Each one may map to an event
category, which files the actual event a completed todo turns into.
"""

import datetime as dt
from typing import TYPE_CHECKING, Any, Optional
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from timediary.models.category import Category


class TodoCategory(SQLModel, table=True):
    """A category on the todo list.

    Attributes:
        id: Unique identifier (UUID).
        name: Display name.
        color: Hex colour of the todo badge.
        event_category_id: Event category used when a todo is completed.
        user_id: Owner of this category.
        created_at: When the category was created.
        event_category: Reference to the mapped Category object.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    color: str | None = None
    event_category_id: UUID | None = Field(default=None, foreign_key="category.id")
    user_id: int = Field(default=1, index=True)
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))

    # Relationship
    event_category: Optional["Category"] = Relationship()

    def to_dict(self) -> dict[str, Any]:
        event_category = self.event_category
        return {
            "id": str(self.id),
            "name": self.name,
            "color": self.color,
            "event_category_id": str(self.event_category_id) if self.event_category_id else None,
            "event_category": (
                {"id": str(event_category.id), "name": event_category.name, "color": event_category.color}
                if event_category
                else None
            ),
        }


class TodoCategoryCreate(SQLModel):
    name: str | None = None
    color: str | None = None
    event_category_id: UUID | None = None


class TodoCategoryUpdate(SQLModel):
    name: str | None = None
    color: str | None = None
    event_category_id: UUID | None = None
