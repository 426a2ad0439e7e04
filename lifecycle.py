"""Savings-goal status transitions.

Only amount updates move a goal between states automatically, and only
between Active and Completed. Paused is a manual state: an amount change
never enters or leaves it.
"""

from datetime import datetime, timedelta

from models import GoalStatus

_TICK = timedelta(microseconds=1)


def status_after_amount_change(
    current: GoalStatus, saved_cents: int, target_cents: int
) -> GoalStatus:
    if current == GoalStatus.paused:
        return current
    if current == GoalStatus.active and saved_cents >= target_cents:
        return GoalStatus.completed
    if current == GoalStatus.completed and saved_cents < target_cents:
        return GoalStatus.active
    return current


def next_updated_at(previous: datetime, now: datetime) -> datetime:
    """Timestamp for a mutation that is strictly later than ``previous``."""
    if now > previous:
        return now
    return previous + _TICK
