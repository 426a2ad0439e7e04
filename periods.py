from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

TRAILING_WEEK_DAYS = 7


@dataclass(frozen=True)
class Window:
    slug: str
    start: Optional[date]


@dataclass(frozen=True)
class ExpenseWindows:
    today: Window
    week: Window
    month: Window
    all_time: Window

    def as_list(self) -> list[Window]:
        return [self.today, self.week, self.month, self.all_time]


def local_date(now: datetime, timezone: str) -> date:
    """Calendar date of ``now`` in the reference timezone.

    Naive datetimes are taken to already be in that timezone.
    """
    if now.tzinfo is not None:
        now = now.astimezone(ZoneInfo(timezone))
    return now.date()


def resolve_windows(now: datetime, timezone: str) -> ExpenseWindows:
    today = local_date(now, timezone)
    # Trailing seven days including today, not aligned to calendar weeks.
    week_start = today - timedelta(days=TRAILING_WEEK_DAYS - 1)
    month_start = today.replace(day=1)
    return ExpenseWindows(
        today=Window("today", today),
        week=Window("week", week_start),
        month=Window("month", month_start),
        all_time=Window("all_time", None),
    )


def percent_of(part: int, whole: int) -> int:
    """``round(part / whole * 100)`` rounding halves up, 0 when ``whole <= 0``.

    Integer arithmetic only; results above 100 are not clamped.
    """
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (whole * 2)
