"""Tests for API routes."""

import datetime as dt
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from timediary.calendar import sync
from timediary.models import CalendarSubscription, Category, Event, Routine, RoutineCheck, Todo


def create_event(client: TestClient, **fields):
    body = {"date": "2024-06-03", "title": "일정", "start_time": "09:00", "end_time": "10:00"}
    body.update(fields)
    response = client.post("/events", json=body)
    assert response.status_code == 200, response.text
    return response.json()["event"]


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient):
        """Test the health endpoint returns OK."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"


class TestEventsRoutes:
    """Tests for event-related routes."""

    def test_create_returns_resolved_event(self, client: TestClient, work_category: Category):
        event = create_event(client, category_id=str(work_category.id), description=None)
        assert event["start_time"] == "09:00:00"
        assert event["end"] == "2024-06-03T10:00:00"
        assert event["description"] == ""
        assert event["category"] == {"id": str(work_category.id), "name": "① 일", "color": "#2563eb"}

    def test_create_with_unknown_category(self, client: TestClient):
        response = client.post(
            "/events",
            json={
                "date": "2024-06-03",
                "start_time": "09:00",
                "end_time": "10:00",
                "category_id": str(uuid4()),
            },
        )
        assert response.status_code == 400

    def test_day_view_includes_overnight_event_from_previous_day(self, client: TestClient):
        create_event(client, date="2024-06-02", title="야간", start_time="23:30", end_time="00:15")

        data = client.get("/events", params={"date": "2024-06-03"}).json()
        assert [e["title"] for e in data["events"]] == ["야간"]
        assert data["events"][0]["end"] == "2024-06-03T00:15:00"
        block = data["layout"]["actual"][0]
        assert (block["top_minutes"], block["bottom_minutes"]) == (0, 15)

    def test_write_invalidates_cached_next_day(self, client: TestClient):
        assert client.get("/events", params={"date": "2024-06-04"}).json()["events"] == []

        create_event(client, title="밤샘", start_time="22:00", end_time="02:00")

        data = client.get("/events", params={"date": "2024-06-04"}).json()
        assert [e["title"] for e in data["events"]] == ["밤샘"]

    def test_day_view_is_cached(self, client: TestClient, session: Session):
        client.get("/events", params={"date": "2024-06-03"})
        # Written behind the API's back, so the cached view stays stale.
        session.add(Event(date=dt.date(2024, 6, 3), start_time=dt.time(8, 0), end_time=dt.time(9, 0)))
        session.commit()
        assert client.get("/events", params={"date": "2024-06-03"}).json()["events"] == []

    def test_day_view_materialises_routines(self, client: TestClient, morning_routine: Routine):
        data = client.get("/events", params={"date": "2024-06-03"}).json()
        routine_event = data["routine_events"][0]
        assert routine_event["id"] is None
        assert routine_event["routine_id"] == str(morning_routine.id)
        assert routine_event["title"] == "🧘 스트레칭"
        assert data["layout"]["plan"][0]["event"]["routine_id"] == str(morning_routine.id)

        sunday = client.get("/events", params={"date": "2024-06-02"}).json()
        assert sunday["routine_events"] == []

    def test_overlapping_events_side_by_side(self, client: TestClient):
        create_event(client, title="a", start_time="09:00", end_time="10:00")
        create_event(client, title="b", start_time="09:30", end_time="11:00")
        create_event(client, title="c", start_time="10:30", end_time="10:45")

        blocks = client.get("/events", params={"date": "2024-06-03"}).json()["layout"]["actual"]
        columns = {b["event"]["title"]: (b["column"], b["total_columns"]) for b in blocks}
        assert columns == {"a": (0, 2), "b": (1, 2), "c": (0, 2)}

    def test_update_event(self, client: TestClient):
        event = create_event(client)
        response = client.patch(
            f"/events/{event['id']}",
            json={"date": "2024-06-04", "start_time": "23:00", "end_time": "01:00"},
        )
        assert response.status_code == 200
        updated = response.json()["event"]
        assert updated["date"] == "2024-06-04"
        assert updated["end"] == "2024-06-05T01:00:00"
        assert updated["title"] == "일정"

        old_day = client.get("/events", params={"date": "2024-06-03"}).json()
        assert old_day["events"] == []

    def test_update_clears_category(self, client: TestClient, work_category: Category):
        event = create_event(client, category_id=str(work_category.id))
        updated = client.patch(f"/events/{event['id']}", json={"category_id": None}).json()["event"]
        assert updated["category"] is None

    def test_update_not_found(self, client: TestClient):
        response = client.patch(f"/events/{uuid4()}", json={"title": "x"})
        assert response.status_code == 404

    def test_delete_event(self, client: TestClient, session: Session):
        event = create_event(client)
        response = client.delete(f"/events/{event['id']}")
        assert response.status_code == 200
        assert session.exec(select(Event)).all() == []

        assert client.delete(f"/events/{event['id']}").status_code == 404

    def test_wake_sleep(self, client: TestClient, overnight_sleep: Event):
        data = client.get("/events/wake-sleep", params={"date": "2024-05-02"}).json()
        assert data["wake_time"] == "07:00"
        assert data["wake_at"] == "2024-05-02T07:00:00"
        assert data["sleep_time"] is None

    def test_wake_sleep_empty(self, client: TestClient):
        data = client.get("/events/wake-sleep", params={"date": "2024-05-02"}).json()
        assert data == {"wake_time": None, "wake_at": None, "sleep_time": None, "sleep_at": None}

    def test_record_wake(self, client: TestClient):
        response = client.post("/events/wake", json={"date": "2024-06-03", "time": "06:40"})
        event = response.json()["event"]
        assert event["title"] == "기상"
        assert event["start_time"] == "06:40:00"
        assert event["end_time"] == "06:41:00"
        assert event["is_plan"] is False


class TestCategoriesRoutes:
    """Tests for category management."""

    def test_create_requires_name_and_color(self, client: TestClient):
        assert client.post("/categories", json={"name": "운동"}).status_code == 400
        response = client.post("/categories", json={"name": "운동", "color": "#22c55e"})
        assert response.status_code == 200
        assert response.json()["name"] == "운동"

    def test_delete_refused_while_in_use(self, client: TestClient, overnight_sleep: Event):
        response = client.delete(f"/categories/{overnight_sleep.category_id}")
        assert response.status_code == 400
        assert "삭제할 수 없습니다" in response.json()["detail"]

    def test_delete_unused(self, client: TestClient, work_category: Category, session: Session):
        assert client.delete(f"/categories/{work_category.id}").status_code == 200
        assert session.exec(select(Category)).all() == []

    def test_rename_updates_cached_day_view(self, client: TestClient, work_category: Category):
        create_event(client, category_id=str(work_category.id))
        client.get("/events", params={"date": "2024-06-03"})
        client.patch(f"/categories/{work_category.id}", json={"name": "② 공부"})

        events = client.get("/events", params={"date": "2024-06-03"}).json()["events"]
        assert events[0]["category"]["name"] == "② 공부"


class TestRoutinesRoutes:
    """Tests for routines and routine checks."""

    def test_create_with_encoded_weekdays(self, client: TestClient):
        response = client.post(
            "/routines",
            json={"text": "수영", "emoji": "🏊", "scheduled_time": "06:00", "weekdays": "[1, 3, 5]"},
        )
        assert response.status_code == 200
        assert response.json()["weekdays"] == [1, 3, 5]

    def test_invalid_weekdays_rejected(self, client: TestClient):
        response = client.post("/routines", json={"text": "수영", "weekdays": [8]})
        assert response.status_code == 422

    def test_routines_for_day(self, client: TestClient, morning_routine: Routine):
        tuesday = client.get("/routines/day", params={"date": "2024-06-04"}).json()
        assert [r["id"] for r in tuesday["routines"]] == [str(morning_routine.id)]

        saturday = client.get("/routines/day", params={"date": "2024-06-08"}).json()
        assert saturday["routines"] == []

    def test_checks_are_returned_even_when_routine_does_not_apply(
        self, client: TestClient, morning_routine: Routine
    ):
        client.post(
            "/routine-checks",
            json={"date": "2024-06-08", "routine_id": str(morning_routine.id), "checked": True},
        )
        saturday = client.get("/routines/day", params={"date": "2024-06-08"}).json()
        assert saturday["routines"] == []
        assert saturday["checks"] == {str(morning_routine.id): True}

    def test_check_upsert(self, client: TestClient, morning_routine: Routine, session: Session):
        body = {"date": "2024-06-04", "routine_id": str(morning_routine.id), "checked": True}
        client.post("/routine-checks", json=body)
        client.post("/routine-checks", json={**body, "checked": False})

        checks = session.exec(select(RoutineCheck)).all()
        assert len(checks) == 1
        assert checks[0].checked is False

    def test_soft_delete(self, client: TestClient, morning_routine: Routine, session: Session):
        assert client.delete(f"/routines/{morning_routine.id}").status_code == 200
        assert client.get("/routines").json() == []
        session.refresh(morning_routine)
        assert morning_routine.active is False

    def test_update_weekdays_to_every_day(self, client: TestClient, morning_routine: Routine):
        response = client.patch(f"/routines/{morning_routine.id}", json={"weekdays": None})
        assert response.json()["weekdays"] is None
        saturday = client.get("/routines/day", params={"date": "2024-06-08"}).json()
        assert len(saturday["routines"]) == 1

    def test_reorder(self, client: TestClient, morning_routine: Routine):
        other = client.post("/routines", json={"text": "명상", "sort_order": 0}).json()
        assert [r["text"] for r in client.get("/routines").json()] == ["명상", "스트레칭"]

        client.put(
            "/routines/reorder",
            json=[{"id": other["id"], "sort_order": 5}, {"id": str(morning_routine.id), "sort_order": 1}],
        )
        assert [r["text"] for r in client.get("/routines").json()] == ["스트레칭", "명상"]


class TestTodosRoutes:
    """Tests for todos."""

    def test_create_appends(self, client: TestClient):
        first = client.post("/todos", json={"date": "2024-06-03", "text": "메일"}).json()
        second = client.post("/todos", json={"date": "2024-06-03", "text": "보고서"}).json()
        assert (first["sort_order"], second["sort_order"]) == (0, 1)

    def test_pomodoro(self, client: TestClient):
        todo = client.post("/todos", json={"date": "2024-06-03", "text": "공부"}).json()
        client.post(f"/todos/{todo['id']}/pomodoro")
        assert client.post(f"/todos/{todo['id']}/pomodoro").json()["pomodoro_count"] == 2

    def test_complete_promotes_to_actual_event(self, client: TestClient, work_category: Category):
        todo = client.post(
            "/todos",
            json={
                "date": "2024-06-03",
                "text": "보고서",
                "category_id": str(work_category.id),
                "scheduled_time": "14:00",
                "duration": 90,
            },
        ).json()

        data = client.post(f"/todos/{todo['id']}/complete", json={}).json()
        assert data["todo"]["completed"] is True
        assert data["event"]["title"] == "보고서"
        assert data["event"]["end_time"] == "15:30:00"
        assert data["event"]["is_plan"] is False

        day = client.get("/events", params={"date": "2024-06-03"}).json()
        assert [e["title"] for e in day["events"]] == ["보고서"]

        again = client.post(f"/todos/{todo['id']}/complete", json={}).json()
        assert again["event"]["id"] == data["event"]["id"]

    def test_complete_needs_a_start(self, client: TestClient):
        todo = client.post("/todos", json={"date": "2024-06-03", "text": "아무때나"}).json()
        assert client.post(f"/todos/{todo['id']}/complete", json={}).status_code == 400

    def test_deleting_promoted_event_keeps_todo(self, client: TestClient, session: Session):
        todo = client.post("/todos", json={"date": "2024-06-03", "text": "운동"}).json()
        event = client.post(f"/todos/{todo['id']}/complete", json={"start_time": "07:00"}).json()["event"]

        assert client.delete(f"/events/{event['id']}").status_code == 200
        stored = session.exec(select(Todo)).one()
        session.refresh(stored)
        assert stored.completed is True
        assert stored.event_id is None


class TestTodoCategoriesRoutes:
    """Tests for todo categories and how completed todos are filed."""

    def test_create_with_event_category(self, client: TestClient, work_category: Category):
        response = client.post(
            "/todo-categories",
            json={"name": "업무", "color": "#f59e0b", "event_category_id": str(work_category.id)},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["event_category"] == {"id": str(work_category.id), "name": "① 일", "color": "#2563eb"}
        assert [c["name"] for c in client.get("/todo-categories").json()] == ["업무"]

    def test_create_requires_name(self, client: TestClient):
        assert client.post("/todo-categories", json={"color": "#000"}).status_code == 400

    def test_unknown_event_category(self, client: TestClient):
        response = client.post("/todo-categories", json={"name": "업무", "event_category_id": str(uuid4())})
        assert response.status_code == 400

    def test_remove_mapping(self, client: TestClient, work_category: Category):
        created = client.post(
            "/todo-categories", json={"name": "업무", "event_category_id": str(work_category.id)}
        ).json()
        updated = client.patch(f"/todo-categories/{created['id']}", json={"event_category_id": None}).json()
        assert updated["event_category"] is None
        assert updated["name"] == "업무"

    def test_completed_todo_filed_through_mapping(self, client: TestClient, work_category: Category):
        todo_category = client.post(
            "/todo-categories", json={"name": "업무", "event_category_id": str(work_category.id)}
        ).json()
        todo = client.post(
            "/todos",
            json={"date": "2024-06-03", "text": "보고서", "todo_category_id": todo_category["id"]},
        ).json()

        event = client.post(f"/todos/{todo['id']}/complete", json={"start_time": "10:00"}).json()["event"]
        assert event["category_id"] == str(work_category.id)
        assert event["category"]["name"] == "① 일"

    def test_completed_todo_without_mapping_keeps_own_category(
        self, client: TestClient, work_category: Category
    ):
        todo_category = client.post("/todo-categories", json={"name": "개인"}).json()
        todo = client.post(
            "/todos",
            json={
                "date": "2024-06-03",
                "text": "장보기",
                "todo_category_id": todo_category["id"],
                "category_id": str(work_category.id),
            },
        ).json()

        event = client.post(f"/todos/{todo['id']}/complete", json={"start_time": "18:00"}).json()["event"]
        assert event["category_id"] == str(work_category.id)

    def test_todo_with_unknown_todo_category(self, client: TestClient):
        response = client.post(
            "/todos", json={"date": "2024-06-03", "text": "x", "todo_category_id": str(uuid4())}
        )
        assert response.status_code == 400

    def test_delete_unlinks_todos(self, client: TestClient, session: Session):
        todo_category = client.post("/todo-categories", json={"name": "개인"}).json()
        client.post(
            "/todos", json={"date": "2024-06-03", "text": "운동", "todo_category_id": todo_category["id"]}
        )

        assert client.delete(f"/todo-categories/{todo_category['id']}").status_code == 200
        stored = session.exec(select(Todo)).one()
        session.refresh(stored)
        assert stored.todo_category_id is None
        assert client.get("/todo-categories").json() == []

    def test_deleting_event_category_clears_mapping(self, client: TestClient, work_category: Category):
        created = client.post(
            "/todo-categories", json={"name": "업무", "event_category_id": str(work_category.id)}
        ).json()
        assert client.delete(f"/categories/{work_category.id}").status_code == 200

        listed = client.get("/todo-categories").json()
        assert listed[0]["id"] == created["id"]
        assert listed[0]["event_category_id"] is None


class TestDailyRoutes:
    """Tests for the daily batch load and save."""

    def test_save_and_load(self, client: TestClient, morning_routine: Routine):
        response = client.post(
            "/daily/2024-06-04",
            json={
                "todos": [{"text": "a"}, {"text": "b", "completed": True}],
                "reflection": "괜찮은 하루",
                "mood": "🙂",
            },
        )
        assert response.status_code == 200

        data = client.get("/daily/2024-06-04").json()
        assert [t["text"] for t in data["todos"]] == ["a", "b"]
        assert data["todos"][1]["completed"] is True
        assert data["reflection"] == "괜찮은 하루"
        assert data["mood"] == "🙂"
        assert [r["text"] for r in data["routines"]] == ["스트레칭"]
        assert data["routine_checks"] == {}

    def test_save_replaces_todos_and_keeps_reflection(self, client: TestClient):
        client.post("/daily/2024-06-04", json={"todos": [{"text": "a"}], "reflection": "초안"})
        client.post("/daily/2024-06-04", json={"todos": [{"text": "c"}]})

        data = client.get("/daily/2024-06-04").json()
        assert [t["text"] for t in data["todos"]] == ["c"]
        assert data["reflection"] == "초안"

    def test_empty_day(self, client: TestClient):
        data = client.get("/daily/2024-06-04").json()
        assert data["todos"] == []
        assert data["reflection"] == ""
        assert data["mood"] is None

    def test_feedback(self, client: TestClient):
        assert client.post("/feedback", json={"date": "2024-06-04", "feedback_text": " "}).status_code == 400
        response = client.post("/feedback", json={"date": "2024-06-04", "feedback_text": "좋아요"})
        assert response.json()["feedback_text"] == "좋아요"


class TestCalendarsRoutes:
    """Tests for ICS subscriptions."""

    def test_create_requires_fields(self, client: TestClient):
        response = client.post("/calendars", json={"name": "iCloud", "color": "#000"})
        assert response.status_code == 400

    def test_create_normalises_webcal(self, client: TestClient):
        response = client.post(
            "/calendars",
            json={"name": "iCloud", "url": "webcal://p01.icloud.com/x.ics", "color": "#000"},
        )
        data = response.json()
        assert data["url"] == "https://p01.icloud.com/x.ics"
        assert data["type"] == "icloud"
        assert data["enabled"] is True

    def test_events_and_status(self, client: TestClient, session: Session, monkeypatch):
        feed = "\n".join([
            "BEGIN:VCALENDAR",
            "BEGIN:VEVENT",
            "UID:1",
            "DTSTART:20240603T120000",
            "DTEND:20240603T130000",
            "SUMMARY:점심",
            "END:VEVENT",
            "END:VCALENDAR",
        ])
        monkeypatch.setattr(sync, "fetch_ics", lambda url, timeout=None, session=None: feed)
        subscription = CalendarSubscription(name="Family", url="https://example.com/f.ics", color="#abc")
        session.add(subscription)
        session.commit()

        data = client.get("/calendars/events", params={"date": "2024-06-03"}).json()
        assert [e["title"] for e in data["events"]] == ["점심"]
        assert data["events"][0]["calendar_name"] == "Family"

        stats = client.post("/calendars/refresh").json()
        assert stats == {"refreshed": 1, "failed": 0, "entries": 1}

        status = client.get("/calendars/status").json()
        assert status["last_refresh"] is not None
        assert status["subscriptions"][str(subscription.id)]["entries"] == 1

    def test_disable_and_delete(self, client: TestClient):
        created = client.post(
            "/calendars", json={"name": "Work", "url": "https://example.com/w.ics", "color": "#000"}
        ).json()
        updated = client.patch(f"/calendars/{created['id']}", json={"enabled": False}).json()
        assert updated["enabled"] is False
        assert client.delete(f"/calendars/{created['id']}").status_code == 200
        assert client.get("/calendars").json() == []


class TestMonthlyRoutes:
    """Tests for monthly statistics."""

    def test_time_stats(self, client: TestClient, overnight_sleep: Event):
        data = client.get("/monthly/time-stats", params={"year": 2024, "month": 5}).json()
        days = {d["date"]: d["categories"] for d in data["days"]}
        assert days["2024-05-01"] == {"⑤ 잠": 1.0}
        assert days["2024-05-02"] == {"⑤ 잠": 7.0}

    def test_time_stats_refresh_after_write(self, client: TestClient):
        client.get("/monthly/time-stats", params={"year": 2024, "month": 6})
        create_event(client, start_time="09:00", end_time="11:00")
        data = client.get("/monthly/time-stats", params={"year": 2024, "month": 6}).json()
        assert data["totals"] == {"Unknown": 2.0}

    def test_routine_stats(self, client: TestClient, morning_routine: Routine):
        client.post(
            "/routine-checks",
            json={"date": "2024-06-04", "routine_id": str(morning_routine.id), "checked": True},
        )
        data = client.get("/monthly/routine-stats", params={"year": 2024, "month": 6}).json()
        assert data["total"] == 1
        assert data["days"][3] == {"date": "2024-06-04", "checked": 1}

    def test_invalid_month(self, client: TestClient):
        assert client.get("/monthly/time-stats", params={"year": 2024, "month": 13}).status_code == 422
