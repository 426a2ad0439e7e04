from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from database import Base
from errors import StorageUnavailable
from models import Transaction
from services import MetricsService
from store import CategoryTotal


def make_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    return SessionLocal()


def add_expense(session, day: date, amount_cents: int, category="Food", user_id=1):
    session.add(
        Transaction(
            user_id=user_id,
            date=day,
            amount_cents=amount_cents,
            category=category,
            description=f"{category} {amount_cents}",
        )
    )
    session.commit()


def test_window_totals_are_nested_and_include_future_dates() -> None:
    session = make_session()
    add_expense(session, date(2025, 3, 15), 100)
    add_expense(session, date(2025, 3, 10), 200)
    add_expense(session, date(2025, 3, 5), 400)
    add_expense(session, date(2025, 2, 20), 800)
    add_expense(session, date(2025, 3, 20), 50)
    add_expense(session, date(2025, 3, 15), 9_999, user_id=2)

    summary = MetricsService(session, 1, timezone="UTC").expense_summary(
        datetime(2025, 3, 15, 10, 0)
    )

    assert summary.today_total == 150
    assert summary.week_total == 350
    assert summary.month_total == 750
    assert summary.all_time_total == 1_550
    assert (
        summary.today_total
        <= summary.week_total
        <= summary.month_total
        <= summary.all_time_total
    )


def test_trailing_week_reaches_into_previous_month() -> None:
    session = make_session()
    add_expense(session, date(2025, 2, 25), 300)
    add_expense(session, date(2025, 3, 1), 100)

    summary = MetricsService(session, 1, timezone="UTC").expense_summary(
        datetime(2025, 3, 2, 8, 0)
    )

    assert summary.today_total == 0
    assert summary.week_total == 400
    assert summary.month_total == 100
    assert summary.all_time_total == 400


def test_empty_ledger_yields_zero_totals() -> None:
    session = make_session()
    add_expense(session, date(2025, 3, 15), 500, user_id=2)

    summary = MetricsService(session, 1, timezone="UTC").expense_summary(
        datetime(2025, 3, 15, 10, 0)
    )

    assert summary.today_total == 0
    assert summary.week_total == 0
    assert summary.month_total == 0
    assert summary.all_time_total == 0
    assert summary.top_categories == []


def test_top_categories_capped_at_five_and_sorted() -> None:
    session = make_session()
    spend = {
        "Rent": 90_000,
        "Food": 12_000,
        "Transport": 5_000,
        "Health": 5_000,
        "Fun": 3_000,
        "Gifts": 2_000,
        "Books": 1_000,
    }
    for category, amount in spend.items():
        add_expense(session, date(2025, 1, 10), amount, category=category)

    summary = MetricsService(session, 1, timezone="UTC").expense_summary(
        datetime(2025, 3, 15, 10, 0)
    )
    top = summary.top_categories

    assert len(top) == 5
    totals = [row.total for row in top]
    assert totals == sorted(totals, reverse=True)
    assert [row.category for row in top] == [
        "Rent",
        "Food",
        "Health",
        "Transport",
        "Fun",
    ]


def test_all_time_total_matches_sum_of_amounts() -> None:
    session = make_session()
    amounts = [1, 250, 999, 12_345, 7]
    for offset, amount in enumerate(amounts):
        add_expense(session, date(2024, 12, 1 + offset), amount)

    summary = MetricsService(session, 1, timezone="UTC").expense_summary(
        datetime(2025, 3, 15, 10, 0)
    )
    assert summary.all_time_total == sum(amounts)


def test_category_breakdown_groups_totals_and_counts() -> None:
    session = make_session()
    add_expense(session, date(2025, 3, 1), 50, category="Food")
    add_expense(session, date(2025, 3, 2), 30, category="Food")
    add_expense(session, date(2025, 3, 3), 20, category="Transport")
    add_expense(session, date(2025, 3, 3), 70, category="Food", user_id=2)

    breakdown = MetricsService(session, 1).category_breakdown()

    assert breakdown == [
        CategoryTotal(category="Food", total=80, count=2),
        CategoryTotal(category="Transport", total=20, count=1),
    ]


def test_category_breakdown_is_not_truncated() -> None:
    session = make_session()
    for idx in range(8):
        add_expense(session, date(2025, 3, 1), 100 + idx, category=f"Cat {idx}")

    breakdown = MetricsService(session, 1).category_breakdown()

    assert len(breakdown) == 8
    assert breakdown[0].category == "Cat 7"


def test_recent_expenses_newest_first() -> None:
    session = make_session()
    for day in range(1, 8):
        add_expense(session, date(2025, 3, day), 100 * day)
    add_expense(session, date(2025, 4, 1), 5, user_id=2)

    recent = MetricsService(session, 1).recent_expenses()

    assert [txn.date.day for txn in recent] == [7, 6, 5, 4, 3]
    assert all(txn.user_id == 1 for txn in recent)


def test_storage_failure_surfaces_as_unavailable() -> None:
    engine = create_engine("sqlite:///:memory:")

    with Session(engine) as session:
        with pytest.raises(StorageUnavailable):
            MetricsService(session, 1).expense_summary(datetime(2025, 3, 15, 10, 0))
        with pytest.raises(StorageUnavailable):
            MetricsService(session, 1).goal_summary()
