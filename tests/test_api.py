from datetime import date, datetime, timezone

import pytest
from fastapi.testclient import TestClient

from database import Base, make_engine, make_sessionmaker
from main import app, current_time, get_db
from models import Transaction


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    return make_sessionmaker(engine)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[current_time] = lambda: datetime(
        2025, 3, 15, 10, 0, tzinfo=timezone.utc
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


GOAL = {
    "title": "New car",
    "category": "Car",
    "saved_amount_cents": 400,
    "target_amount_cents": 1000,
    "target_date": "2026-09-01",
}


def test_goal_lifecycle_over_http(client) -> None:
    created = client.post("/api/savings", json=GOAL, headers={"X-User-Id": "7"})
    assert created.status_code == 201
    goal = created.json()
    assert goal["status"] == "Active"
    assert goal["alerts"] == {
        "reminder_frequency": "Monthly",
        "milestone_alerts": True,
        "target_date_reminder": True,
    }

    done = client.patch(
        f"/api/savings/{goal['id']}/amount",
        json={"amount_cents": 1000},
        headers={"X-User-Id": "7"},
    )
    assert done.status_code == 200
    assert done.json()["status"] == "Completed"

    summary = client.get("/api/savings/summary", headers={"X-User-Id": "7"}).json()
    assert summary["total_saved"] == 1000
    assert summary["completed_count"] == 1
    assert summary["progress_percent"] == 100
    assert summary["per_category"] == [
        {"category": "Car", "saved": 1000, "target": 1000, "progress_percent": 100}
    ]

    deleted = client.delete(f"/api/savings/{goal['id']}", headers={"X-User-Id": "7"})
    assert deleted.status_code == 200
    assert client.get(
        f"/api/savings/{goal['id']}", headers={"X-User-Id": "7"}
    ).status_code == 404


def test_error_mapping(client) -> None:
    goal = client.post("/api/savings", json=GOAL, headers={"X-User-Id": "1"}).json()

    negative = client.patch(
        f"/api/savings/{goal['id']}/amount",
        json={"amount_cents": -5},
        headers={"X-User-Id": "1"},
    )
    assert negative.status_code == 400

    foreign = client.patch(
        f"/api/savings/{goal['id']}/amount",
        json={"amount_cents": 5},
        headers={"X-User-Id": "2"},
    )
    assert foreign.status_code == 404
    assert foreign.json() == {"error": "Savings goal not found"}

    stale = client.patch(
        f"/api/savings/{goal['id']}/amount",
        json={"amount_cents": 5, "version": goal["version"] + 1},
        headers={"X-User-Id": "1"},
    )
    assert stale.status_code == 409

    bad_enum = client.post(
        "/api/savings", json={**GOAL, "category": "Yacht"}, headers={"X-User-Id": "1"}
    )
    assert bad_enum.status_code == 400
    assert bad_enum.json()["error"] == "Invalid request data"


def test_partial_edit_over_http(client) -> None:
    goal = client.post("/api/savings", json=GOAL).json()

    edited = client.put(
        f"/api/savings/{goal['id']}",
        json={"status": "Paused", "alerts": {"reminder_frequency": "Weekly"}},
    )
    assert edited.status_code == 200
    body = edited.json()
    assert body["status"] == "Paused"
    assert body["title"] == "New car"
    assert body["alerts"]["reminder_frequency"] == "Weekly"
    assert body["alerts"]["milestone_alerts"] is True

    listed = client.get("/api/savings", params={"status": "Paused"}).json()
    assert [g["id"] for g in listed] == [goal["id"]]


def test_expense_endpoints(client, session_factory) -> None:
    with session_factory() as session:
        session.add_all(
            [
                Transaction(
                    user_id=1, date=date(2025, 3, 15), amount_cents=50, category="Food"
                ),
                Transaction(
                    user_id=1, date=date(2025, 3, 12), amount_cents=30, category="Food"
                ),
                Transaction(
                    user_id=1,
                    date=date(2025, 1, 3),
                    amount_cents=20,
                    category="Transport",
                ),
            ]
        )
        session.commit()

    summary = client.get("/api/expenses/summary").json()
    assert summary["today_total"] == 50
    assert summary["week_total"] == 80
    assert summary["month_total"] == 80
    assert summary["all_time_total"] == 100
    assert summary["top_categories"][0] == {
        "category": "Food",
        "total": 80,
        "count": 2,
    }

    breakdown = client.get("/api/expenses/categories").json()
    assert breakdown == [
        {"category": "Food", "total": 80, "count": 2},
        {"category": "Transport", "total": 20, "count": 1},
    ]

    recent = client.get("/api/expenses/recent").json()
    assert [row["amount_cents"] for row in recent] == [50, 30, 20]


def test_owner_zero_header_is_not_the_default_user(client) -> None:
    goal = client.post("/api/savings", json=GOAL).json()

    assert client.get("/api/savings", headers={"X-User-Id": "0"}).json() == []
    assert client.get(
        f"/api/savings/{goal['id']}", headers={"X-User-Id": "0"}
    ).status_code == 404
    assert client.patch(
        f"/api/savings/{goal['id']}/amount",
        json={"amount_cents": 1000},
        headers={"X-User-Id": "0"},
    ).status_code == 404
    assert client.get(f"/api/savings/{goal['id']}").json()["saved_amount_cents"] == 400


def test_goal_writes_use_the_request_clock(client) -> None:
    created = client.post("/api/savings", json=GOAL).json()
    assert created["created_at"] == "2025-03-15T10:00:00"
    assert created["updated_at"] == "2025-03-15T10:00:00"

    patched = client.patch(
        f"/api/savings/{created['id']}/amount", json={"amount_cents": 500}
    ).json()
    assert patched["updated_at"] == "2025-03-15T10:00:00.000001"

    edited = client.put(f"/api/savings/{created['id']}", json={"notes": "Leasing"})
    assert edited.json()["updated_at"] == "2025-03-15T10:00:00.000002"
