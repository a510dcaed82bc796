"""Category routes."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from timediary.core.cache import get_cache, invalidate_owner
from timediary.core.database import get_session, get_user_id
from timediary.models import Category, Event, Todo, TodoCategory
from timediary.models.category import CategoryCreate, CategoryUpdate

router = APIRouter(prefix="/categories", tags=["categories"])

CATEGORY_IN_USE = "이 카테고리를 사용하는 이벤트가 있어 삭제할 수 없습니다."


def _get_owned_category(session: Session, category_id: UUID, user_id: int) -> Category:
    category = session.get(Category, category_id)
    if not category or category.user_id != user_id:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("")
async def list_categories(
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    statement = select(Category).where(Category.user_id == user_id).order_by(Category.name)
    return session.exec(statement).all()


@router.post("")
async def create_category(
    payload: CategoryCreate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """Create a category. Both name and color are required."""
    if not payload.name or not payload.color:
        raise HTTPException(status_code=400, detail="name and color are required")

    category = Category(name=payload.name.strip(), color=payload.color, user_id=user_id)
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@router.patch("/{category_id}")
async def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
    cache=Depends(get_cache),
):
    category = _get_owned_category(session, category_id, user_id)
    if payload.name is not None:
        if not payload.name.strip():
            raise HTTPException(status_code=400, detail="name must not be empty")
        category.name = payload.name.strip()
    if payload.color is not None:
        category.color = payload.color

    session.add(category)
    session.commit()
    session.refresh(category)

    # Day views embed the category name and colour.
    invalidate_owner(cache, user_id)
    return category


@router.delete("/{category_id}")
async def delete_category(
    category_id: UUID,
    session: Session = Depends(get_session),
    user_id: int = Depends(get_user_id),
):
    """
    Delete a category.

    Refused with 400 while any event still uses it. Todos and todo
    categories that point at it are unlinked.
    """
    category = _get_owned_category(session, category_id, user_id)

    in_use = session.exec(select(Event.id).where(Event.category_id == category.id).limit(1)).first()
    if in_use is not None:
        raise HTTPException(status_code=400, detail=CATEGORY_IN_USE)

    for todo in session.exec(select(Todo).where(Todo.category_id == category.id)).all():
        todo.category_id = None
        session.add(todo)
    mapped = select(TodoCategory).where(TodoCategory.event_category_id == category.id)
    for todo_category in session.exec(mapped).all():
        todo_category.event_category_id = None
        session.add(todo_category)

    session.delete(category)
    session.commit()
    return {"success": True}
