"""Category model for grouping timeline events.

Categories are user-defined reference data (a name and a hex colour). The
sleep/wake inference relies on the category name carrying the sleep glyph,
so names are free text rather than an enum.
"""

import datetime as dt
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from timediary.models.event import Event


class CategoryBase(SQLModel):
    name: str
    color: str


class Category(CategoryBase, table=True):
    """A user-defined event category.

    A category cannot be deleted while any event still references it; the
    delete route enforces this before touching the row.

    Attributes:
        id: Unique identifier (UUID).
        name: Display name, e.g. "⑤ 잠".
        color: Hex colour used to paint the event block.
        user_id: Owner of this category.
        created_at: When the category was created.
        events: Events filed under this category.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: int = Field(default=1, index=True)
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.UTC))

    # Relationship
    events: list["Event"] = Relationship(back_populates="category")


class CategoryCreate(SQLModel):
    name: str | None = None
    color: str | None = None


class CategoryUpdate(SQLModel):
    name: str | None = None
    color: str | None = None


class CategoryRead(CategoryBase):
    id: UUID
