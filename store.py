"""SQLAlchemy-backed ledger store.

Every query is scoped by ``user_id``; a record owned by someone else is
reported exactly like a missing one. Driver failures surface as
``StorageUnavailable`` and lost compare-and-set races as ``Conflict``.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterator, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from errors import Conflict, InvalidInput, NotFound, StorageUnavailable
from lifecycle import next_updated_at, status_after_amount_change
from models import GoalCategory, GoalStatus, SavingsGoal, Transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: int
    count: int


@dataclass(frozen=True)
class GoalCategoryTotal:
    category: GoalCategory
    saved: int
    target: int


class LedgerStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.session.rollback()
            raise InvalidInput(f"Rejected by storage constraints ({operation})") from exc
        except DBAPIError as exc:
            self.session.rollback()
            logger.warning(
                f"storage_error: operation={operation} error={exc.__class__.__name__}"
            )
            raise StorageUnavailable(f"Storage unavailable ({operation})") from exc

    # transactions

    def sum_by_window(
        self, user_id: int, start: Optional[date], end: Optional[date] = None
    ) -> int:
        stmt = select(func.coalesce(func.sum(Transaction.amount_cents), 0)).where(
            Transaction.user_id == user_id
        )
        if start is not None:
            stmt = stmt.where(Transaction.date >= start)
        if end is not None:
            stmt = stmt.where(Transaction.date < end)
        with self._guard("sum_by_window"):
            return int(self.session.execute(stmt).scalar_one() or 0)

    def group_by_category(
        self,
        user_id: int,
        *,
        limit: Optional[int] = None,
        order_by_total_desc: bool = True,
    ) -> list[CategoryTotal]:
        total = func.sum(Transaction.amount_cents).label("total")
        stmt = (
            select(
                Transaction.category.label("category"),
                total,
                func.count(Transaction.id).label("count"),
            )
            .where(Transaction.user_id == user_id)
            .group_by(Transaction.category)
        )
        if order_by_total_desc:
            stmt = stmt.order_by(total.desc(), Transaction.category)
        else:
            stmt = stmt.order_by(Transaction.category)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._guard("group_by_category"):
            rows = self.session.execute(stmt).all()
        return [
            CategoryTotal(
                category=row.category, total=int(row.total or 0), count=int(row.count)
            )
            for row in rows
        ]

    def recent_transactions(self, user_id: int, limit: int) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(
                Transaction.date.desc(),
                Transaction.created_at.desc(),
                Transaction.id.desc(),
            )
            .limit(limit)
        )
        with self._guard("recent_transactions"):
            return list(self.session.scalars(stmt).all())

    # savings goals

    def get_goal(self, user_id: int, goal_id: int) -> SavingsGoal:
        stmt = (
            select(SavingsGoal)
            .where(SavingsGoal.user_id == user_id, SavingsGoal.id == goal_id)
            .execution_options(populate_existing=True)
        )
        with self._guard("get_goal"):
            goal = self.session.scalar(stmt)
        if not goal:
            raise NotFound("Savings goal not found")
        return goal

    def _goal_exists(self, user_id: int, goal_id: int) -> bool:
        stmt = select(SavingsGoal.id).where(
            SavingsGoal.user_id == user_id, SavingsGoal.id == goal_id
        )
        return self.session.scalar(stmt) is not None

    def list_goals(
        self, user_id: int, status: Optional[GoalStatus] = None
    ) -> list[SavingsGoal]:
        stmt = (
            select(SavingsGoal)
            .where(SavingsGoal.user_id == user_id)
            .order_by(SavingsGoal.created_at.desc(), SavingsGoal.id.desc())
        )
        if status is not None:
            stmt = stmt.where(SavingsGoal.status == status)
        with self._guard("list_goals"):
            return list(self.session.scalars(stmt).all())

    def count_goals(self, user_id: int, status: GoalStatus) -> int:
        stmt = select(func.count(SavingsGoal.id)).where(
            SavingsGoal.user_id == user_id, SavingsGoal.status == status
        )
        with self._guard("count_goals"):
            return int(self.session.execute(stmt).scalar_one() or 0)

    def goal_totals(self, user_id: int) -> tuple[int, int]:
        stmt = select(
            func.coalesce(func.sum(SavingsGoal.saved_amount_cents), 0).label("saved"),
            func.coalesce(func.sum(SavingsGoal.target_amount_cents), 0).label(
                "target"
            ),
        ).where(SavingsGoal.user_id == user_id)
        with self._guard("goal_totals"):
            row = self.session.execute(stmt).one()
        return int(row.saved), int(row.target)

    def goal_totals_by_category(self, user_id: int) -> list[GoalCategoryTotal]:
        saved = func.sum(SavingsGoal.saved_amount_cents).label("saved")
        stmt = (
            select(
                SavingsGoal.category.label("category"),
                saved,
                func.sum(SavingsGoal.target_amount_cents).label("target"),
            )
            .where(SavingsGoal.user_id == user_id)
            .group_by(SavingsGoal.category)
            .order_by(saved.desc(), SavingsGoal.category)
        )
        with self._guard("goal_totals_by_category"):
            rows = self.session.execute(stmt).all()
        return [
            GoalCategoryTotal(
                category=GoalCategory(row.category),
                saved=int(row.saved or 0),
                target=int(row.target or 0),
            )
            for row in rows
        ]

    def put_goal(self, goal: SavingsGoal) -> SavingsGoal:
        """Insert a new goal or write back a full replacement.

        Replacements are version-checked by the mapper: if another writer got
        there first the flush matches no row and ``Conflict`` is raised.
        """
        self.session.add(goal)
        try:
            with self._guard("put_goal"):
                self.session.commit()
                self.session.refresh(goal)
        except StaleDataError as exc:
            self.session.rollback()
            logger.warning(f"goal_conflict: operation=put_goal goal_id={goal.id}")
            raise Conflict("Savings goal was modified concurrently") from exc
        return goal

    def compare_and_set_goal_amount(
        self,
        user_id: int,
        goal_id: int,
        new_amount_cents: int,
        now: datetime,
        *,
        expected_version: Optional[int] = None,
    ) -> SavingsGoal:
        goal = self.get_goal(user_id, goal_id)
        seen_version = goal.version
        if expected_version is not None and expected_version != seen_version:
            raise Conflict("Savings goal was modified concurrently")

        status = status_after_amount_change(
            goal.status, new_amount_cents, goal.target_amount_cents
        )
        stmt = (
            update(SavingsGoal)
            .where(
                SavingsGoal.id == goal_id,
                SavingsGoal.user_id == user_id,
                SavingsGoal.version == seen_version,
            )
            .values(
                saved_amount_cents=new_amount_cents,
                status=status,
                updated_at=next_updated_at(goal.updated_at, now),
                version=seen_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        with self._guard("compare_and_set_goal_amount"):
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                self.session.rollback()
                if not self._goal_exists(user_id, goal_id):
                    raise NotFound("Savings goal not found")
                logger.warning(
                    f"goal_conflict: operation=set_amount goal_id={goal_id}"
                )
                raise Conflict("Savings goal was modified concurrently")
            self.session.commit()
            self.session.refresh(goal)
        return goal

    def delete_goal(self, user_id: int, goal_id: int) -> bool:
        stmt = delete(SavingsGoal).where(
            SavingsGoal.user_id == user_id, SavingsGoal.id == goal_id
        )
        with self._guard("delete_goal"):
            result = self.session.execute(stmt)
            self.session.commit()
        return result.rowcount > 0
