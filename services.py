from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import Optional

from sqlalchemy.orm import Session

from config import get_settings
from errors import InvalidInput, NotFound
from lifecycle import next_updated_at
from models import GoalCategory, GoalStatus, SavingsGoal, Transaction
from periods import percent_of, resolve_windows
from schemas import GoalIn, GoalUpdate
from store import CategoryTotal, LedgerStore

logger = logging.getLogger(__name__)

TOP_CATEGORY_LIMIT = 5
RECENT_EXPENSE_LIMIT = 5


def get_current_user_id() -> int:
    return get_settings().default_user_id


def _utc_naive(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.utcnow()
    if now.tzinfo is not None:
        return now.astimezone(dt_timezone.utc).replace(tzinfo=None)
    return now


@dataclass
class ExpenseSummary:
    today_total: int
    week_total: int
    month_total: int
    all_time_total: int
    top_categories: list[CategoryTotal] = field(default_factory=list)


@dataclass
class CategoryProgress:
    category: GoalCategory
    saved: int
    target: int
    progress_percent: int


@dataclass
class GoalSummary:
    total_saved: int
    total_target: int
    active_count: int
    completed_count: int
    progress_percent: int
    per_category: list[CategoryProgress] = field(default_factory=list)


class MetricsService:
    """Read-only rollups over one owner's expenses and savings goals."""

    def __init__(
        self,
        session: Session,
        user_id: Optional[int] = None,
        *,
        timezone: Optional[str] = None,
    ) -> None:
        self.store = LedgerStore(session)
        self.user_id = user_id if user_id is not None else get_current_user_id()
        self.timezone = timezone or get_settings().timezone

    def expense_summary(self, now: datetime) -> ExpenseSummary:
        windows = resolve_windows(now, self.timezone)
        # Windows have no upper bound, so future-dated expenses count too.
        totals = {
            window.slug: self.store.sum_by_window(self.user_id, window.start)
            for window in windows.as_list()
        }
        top = self.store.group_by_category(self.user_id, limit=TOP_CATEGORY_LIMIT)
        return ExpenseSummary(
            today_total=totals["today"],
            week_total=totals["week"],
            month_total=totals["month"],
            all_time_total=totals["all_time"],
            top_categories=top,
        )

    def category_breakdown(self) -> list[CategoryTotal]:
        return self.store.group_by_category(self.user_id)

    def recent_expenses(self, limit: int = RECENT_EXPENSE_LIMIT) -> list[Transaction]:
        return self.store.recent_transactions(self.user_id, limit)

    def goal_summary(self) -> GoalSummary:
        total_saved, total_target = self.store.goal_totals(self.user_id)
        per_category = [
            CategoryProgress(
                category=row.category,
                saved=row.saved,
                target=row.target,
                progress_percent=percent_of(row.saved, row.target),
            )
            for row in self.store.goal_totals_by_category(self.user_id)
        ]
        return GoalSummary(
            total_saved=total_saved,
            total_target=total_target,
            active_count=self.store.count_goals(self.user_id, GoalStatus.active),
            completed_count=self.store.count_goals(self.user_id, GoalStatus.completed),
            progress_percent=percent_of(total_saved, total_target),
            per_category=per_category,
        )


class SavingsGoalService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.store = LedgerStore(session)
        self.user_id = user_id if user_id is not None else get_current_user_id()

    def list_all(self, status: Optional[GoalStatus] = None) -> list[SavingsGoal]:
        return self.store.list_goals(self.user_id, status)

    def get(self, goal_id: int) -> SavingsGoal:
        return self.store.get_goal(self.user_id, goal_id)

    def create(self, data: GoalIn, *, now: Optional[datetime] = None) -> SavingsGoal:
        title = data.title.strip()
        if not title:
            raise InvalidInput("Title cannot be empty")
        stamp = _utc_naive(now)
        # Status is taken as given; creation never derives it from amounts.
        goal = SavingsGoal(
            user_id=self.user_id,
            title=title,
            category=data.category,
            saved_amount_cents=data.saved_amount_cents,
            target_amount_cents=data.target_amount_cents,
            target_date=data.target_date,
            priority=data.priority,
            status=data.status,
            reminder_frequency=data.alerts.reminder_frequency,
            milestone_alerts=data.alerts.milestone_alerts,
            target_date_reminder=data.alerts.target_date_reminder,
            notes=data.notes,
            created_at=stamp,
            updated_at=stamp,
        )
        goal = self.store.put_goal(goal)
        logger.info(
            f"goal_created: user_id={self.user_id} goal_id={goal.id} "
            f"status={goal.status.value}"
        )
        return goal

    def update(
        self, goal_id: int, data: GoalUpdate, *, now: Optional[datetime] = None
    ) -> SavingsGoal:
        goal = self.store.get_goal(self.user_id, goal_id)
        changes = data.model_dump(exclude_unset=True)
        alerts = changes.pop("alerts", {})
        if alerts is None:
            raise InvalidInput("alerts cannot be null")

        for name, value in changes.items():
            if value is None:
                raise InvalidInput(f"{name} cannot be null")
        for name, value in alerts.items():
            if value is None:
                raise InvalidInput(f"alerts.{name} cannot be null")

        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise InvalidInput("Title cannot be empty")
        for name, value in changes.items():
            setattr(goal, name, value)
        for name, value in alerts.items():
            setattr(goal, name, value)
        goal.updated_at = next_updated_at(goal.updated_at, _utc_naive(now))

        goal = self.store.put_goal(goal)
        logger.info(
            f"goal_updated: user_id={self.user_id} goal_id={goal.id} "
            f"fields={sorted(list(changes) + list(alerts))} status={goal.status.value}"
        )
        return goal

    def update_amount(
        self,
        goal_id: int,
        amount_cents: int,
        *,
        now: Optional[datetime] = None,
        expected_version: Optional[int] = None,
    ) -> SavingsGoal:
        if amount_cents < 0:
            raise InvalidInput("Amount must not be negative")
        goal = self.store.compare_and_set_goal_amount(
            self.user_id,
            goal_id,
            amount_cents,
            _utc_naive(now),
            expected_version=expected_version,
        )
        logger.info(
            f"goal_amount_updated: user_id={self.user_id} goal_id={goal.id} "
            f"saved_cents={goal.saved_amount_cents} status={goal.status.value}"
        )
        return goal

    def delete(self, goal_id: int) -> None:
        if not self.store.delete_goal(self.user_id, goal_id):
            raise NotFound("Savings goal not found")
        logger.info(f"goal_deleted: user_id={self.user_id} goal_id={goal_id}")
