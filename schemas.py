from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from models import (
    GoalCategory,
    GoalPriority,
    GoalStatus,
    ReminderFrequency,
    SavingsGoal,
)


class AlertConfigIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reminder_frequency: ReminderFrequency = ReminderFrequency.monthly
    milestone_alerts: bool = True
    target_date_reminder: bool = True


class AlertConfigUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reminder_frequency: Optional[ReminderFrequency] = None
    milestone_alerts: Optional[bool] = None
    target_date_reminder: Optional[bool] = None


class GoalIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=200)
    category: GoalCategory
    saved_amount_cents: int = Field(default=0, ge=0)
    target_amount_cents: int = Field(..., gt=0)
    target_date: date
    priority: GoalPriority = GoalPriority.medium
    status: GoalStatus = GoalStatus.active
    alerts: AlertConfigIn = Field(default_factory=AlertConfigIn)
    notes: str = Field(default="", max_length=2000)


class GoalUpdate(BaseModel):
    """Full-field edit. Only the fields the caller sets are applied."""

    model_config = ConfigDict(extra="forbid")

    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    category: Optional[GoalCategory] = None
    saved_amount_cents: Optional[int] = Field(default=None, ge=0)
    target_amount_cents: Optional[int] = Field(default=None, gt=0)
    target_date: Optional[date] = None
    priority: Optional[GoalPriority] = None
    status: Optional[GoalStatus] = None
    alerts: Optional[AlertConfigUpdate] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class GoalAmountIn(BaseModel):
    # Range is checked by the service so every caller gets the same error.
    amount_cents: int
    version: Optional[int] = None


class AlertConfigOut(BaseModel):
    reminder_frequency: ReminderFrequency
    milestone_alerts: bool
    target_date_reminder: bool


class GoalOut(BaseModel):
    id: int
    title: str
    category: GoalCategory
    saved_amount_cents: int
    target_amount_cents: int
    target_date: date
    priority: GoalPriority
    status: GoalStatus
    alerts: AlertConfigOut
    notes: str
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_goal(cls, goal: SavingsGoal) -> "GoalOut":
        return cls(
            id=goal.id,
            title=goal.title,
            category=goal.category,
            saved_amount_cents=goal.saved_amount_cents,
            target_amount_cents=goal.target_amount_cents,
            target_date=goal.target_date,
            priority=goal.priority,
            status=goal.status,
            alerts=AlertConfigOut(
                reminder_frequency=goal.reminder_frequency,
                milestone_alerts=goal.milestone_alerts,
                target_date_reminder=goal.target_date_reminder,
            ),
            notes=goal.notes,
            version=goal.version,
            created_at=goal.created_at,
            updated_at=goal.updated_at,
        )


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    amount_cents: int
    category: str
    description: Optional[str]
    created_at: datetime
