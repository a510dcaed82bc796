"""Todo model for the daily task list.

Todos live on a single date. Completing one can promote it into an actual
timeline event, which is recorded in `event_id`.
"""

import datetime as dt
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class Todo(SQLModel, table=True):
    """A task on the daily todo list.

    Attributes:
        id: Unique identifier (UUID).
        date: Date the todo belongs to.
        text: Task text.
        completed: Whether the task is done.
        sort_order: Position within the day's list.
        pomodoro_count: Number of pomodoro sessions spent on the task.
        category_id: Event category used when the todo is promoted and its
            todo category maps to none.
        todo_category_id: Todo category the task is filed under.
        scheduled_time: Intended start time, if any.
        duration: Intended length in minutes, if any.
        event_id: Event created when the todo was completed.
        user_id: Owner of this todo.
    """
    id: UUID = Field(default_factory=uuid4, primary_key=True)
    date: dt.date = Field(index=True)
    text: str
    completed: bool = Field(default=False)
    sort_order: int = Field(default=0)
    pomodoro_count: int = Field(default=0)
    category_id: UUID | None = Field(default=None, foreign_key="category.id")
    todo_category_id: UUID | None = Field(default=None, foreign_key="todocategory.id")
    scheduled_time: dt.time | None = None
    duration: int | None = None
    event_id: UUID | None = Field(default=None, foreign_key="event.id")
    user_id: int = Field(default=1, index=True)


class TodoCreate(SQLModel):
    date: dt.date
    text: str
    category_id: UUID | None = None
    todo_category_id: UUID | None = None
    scheduled_time: dt.time | None = None
    duration: int | None = None


class TodoUpdate(SQLModel):
    text: str | None = None
    completed: bool | None = None
    category_id: UUID | None = None
    todo_category_id: UUID | None = None
    scheduled_time: dt.time | None = None
    duration: int | None = None


class OrderUpdate(SQLModel):
    id: UUID
    sort_order: int


class TodoComplete(SQLModel):
    """Times for the actual event a completed todo turns into.

    Missing times fall back to the todo's own schedule.
    """
    start_time: dt.time | None = None
    end_time: dt.time | None = None


class DailyTodo(SQLModel):
    text: str
    completed: bool = False
    pomodoro_count: int = 0
    category_id: UUID | None = None
    todo_category_id: UUID | None = None
    scheduled_time: dt.time | None = None
    duration: int | None = None
