"""Shared test fixtures."""

import datetime as dt

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from timediary.calendar.sync import RefreshState
from timediary.core.cache import TTLCache, get_cache
from timediary.core.database import get_session
from timediary.main import app
from timediary.models import Category, Event, Routine


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="cache")
def cache_fixture():
    """A fresh cache per test."""
    return TTLCache(300)


@pytest.fixture(name="client")
def client_fixture(session: Session, cache: TTLCache):
    """Create a test client with the test database session and cache."""

    def get_session_override():
        return session

    def get_cache_override():
        return cache

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_cache] = get_cache_override
    RefreshState.reset()
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="sleep_category")
def sleep_category_fixture(session: Session) -> Category:
    """The category sleep events are filed under."""
    category = Category(name="⑤ 잠", color="#6b7280")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture(name="work_category")
def work_category_fixture(session: Session) -> Category:
    category = Category(name="① 일", color="#2563eb")
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


@pytest.fixture(name="overnight_sleep")
def overnight_sleep_fixture(session: Session, sleep_category: Category) -> Event:
    """Actual sleep from 23:00 on 2024-05-01 to 07:00 on 2024-05-02."""
    event = Event(
        date=dt.date(2024, 5, 1),
        title="잠",
        start_time=dt.time(23, 0),
        end_time=dt.time(7, 0),
        category_id=sleep_category.id,
        is_plan=False,
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture(name="morning_routine")
def morning_routine_fixture(session: Session) -> Routine:
    """A weekday-only routine at 07:30 (Monday to Friday, Sunday is 0)."""
    routine = Routine(
        text="스트레칭",
        emoji="🧘",
        scheduled_time=dt.time(7, 30),
        duration=20,
        weekdays=[1, 2, 3, 4, 5],
        sort_order=1,
    )
    session.add(routine)
    session.commit()
    session.refresh(routine)
    return routine
