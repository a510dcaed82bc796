"""Todo category routes."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from timediary.core.database import get_session, get_user_id
from timediary.models import Category, Todo, TodoCategory
from timediary.models.todo_category import TodoCategoryCreate, TodoCategoryUpdate

router = APIRouter(prefix="/todo-categories", tags=["todo-categories"])


def get_owned_todo_category(session: Session, todo_category_id: UUID, user_id: int) -> TodoCategory:
    todo_category = session.get(TodoCategory, todo_category_id)
    if not todo_category or todo_category.user_id != user_id:
        raise HTTPException(status_code=404, detail="Todo category not found")
    return todo_category


def _check_event_category(session: Session, category_id: UUID | None, user_id: int) -> None:
    if category_id is None:
        return
    category = session.get(Category, category_id)
    if not category or category.user_id != user_id:
        raise HTTPException(status_code=400, detail="Unknown event category")


@router.get("")
async def list_todo_categories(
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """Todo categories in creation order, each with its mapped event category."""
    statement = (
        select(TodoCategory)
        .where(TodoCategory.user_id == user_id)
        .order_by(TodoCategory.created_at)
    )
    return [todo_category.to_dict() for todo_category in session.exec(statement).all()]


@router.post("")
async def create_todo_category(
    payload: TodoCategoryCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    if not payload.name or not payload.name.strip():
        raise HTTPException(status_code=400, detail="name is required")
    _check_event_category(session, payload.event_category_id, user_id)

    todo_category = TodoCategory(
        name=payload.name.strip(),
        color=payload.color,
        event_category_id=payload.event_category_id,
        user_id=user_id,
    )
    session.add(todo_category)
    session.commit()
    session.refresh(todo_category)
    return todo_category.to_dict()


@router.patch("/{todo_category_id}")
async def update_todo_category(
    todo_category_id: UUID,
    payload: TodoCategoryUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """
    Update a todo category. Only the fields sent are changed.

    Sending `event_category_id: null` removes the mapping.
    """
    todo_category = get_owned_todo_category(session, todo_category_id, user_id)
    changes = payload.model_dump(exclude_unset=True)
    if "event_category_id" in changes:
        _check_event_category(session, changes["event_category_id"], user_id)
    if "name" in changes and not (changes["name"] or "").strip():
        raise HTTPException(status_code=400, detail="name must not be empty")

    for field, value in changes.items():
        setattr(todo_category, field, value.strip() if field == "name" else value)

    session.add(todo_category)
    session.commit()
    session.refresh(todo_category)
    return todo_category.to_dict()


@router.delete("/{todo_category_id}")
async def delete_todo_category(
    todo_category_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """Delete a todo category. Its todos are kept, uncategorised."""
    todo_category = get_owned_todo_category(session, todo_category_id, user_id)

    for todo in session.exec(select(Todo).where(Todo.todo_category_id == todo_category.id)).all():
        todo.todo_category_id = None
        session.add(todo)

    session.delete(todo_category)
    session.commit()
    return {"success": True}
