from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from database import Base


def _value_enum(enum_cls: type[Enum], name: str) -> SAEnum:
    return SAEnum(
        enum_cls,
        name=name,
        values_callable=lambda cls: [member.value for member in cls],
    )


class GoalCategory(str, Enum):
    emergency_fund = "Emergency Fund"
    vacation = "Vacation"
    house = "House"
    car = "Car"
    education = "Education"
    wedding = "Wedding"
    retirement = "Retirement"
    other = "Other"


class GoalPriority(str, Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


class GoalStatus(str, Enum):
    active = "Active"
    completed = "Completed"
    paused = "Paused"


class ReminderFrequency(str, Enum):
    weekly = "Weekly"
    monthly = "Monthly"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )


class Transaction(Base, TimestampMixin):
    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False)
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_user_category", "user_id", "category"),
        CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
    )


class SavingsGoal(Base, TimestampMixin):
    __tablename__ = "savings_goals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[GoalCategory] = mapped_column(
        _value_enum(GoalCategory, "goalcategory"), nullable=False
    )
    saved_amount_cents: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    target_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    target_date: Mapped[date] = mapped_column(Date, nullable=False)
    priority: Mapped[GoalPriority] = mapped_column(
        _value_enum(GoalPriority, "goalpriority"),
        nullable=False,
        default=GoalPriority.medium,
    )
    status: Mapped[GoalStatus] = mapped_column(
        _value_enum(GoalStatus, "goalstatus"),
        nullable=False,
        default=GoalStatus.active,
    )
    reminder_frequency: Mapped[ReminderFrequency] = mapped_column(
        _value_enum(ReminderFrequency, "reminderfrequency"),
        nullable=False,
        default=ReminderFrequency.monthly,
    )
    milestone_alerts: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    target_date_reminder: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Bumped by every write; compare-and-set token for concurrent updates.
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_savings_goals_user_status", "user_id", "status"),
        Index("ix_savings_goals_user_created", "user_id", "created_at"),
        CheckConstraint(
            "saved_amount_cents >= 0", name="ck_savings_goals_saved_non_negative"
        ),
        CheckConstraint(
            "target_amount_cents > 0", name="ck_savings_goals_target_positive"
        ),
    )
