"""Rolling-window summary shown on the workshop's home dashboard."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any

from taller_finance.models import ZERO, Client, Expense, Job, Payment
from taller_finance.periods import Period


class DashboardWindow(str, Enum):
    """Date ranges offered by the dashboard selector."""

    THIS_MONTH = "this_month"
    LAST_7_DAYS = "last_7_days"
    LAST_15_DAYS = "last_15_days"
    LAST_MONTH = "last_month"


def window_bounds(window: DashboardWindow, now: datetime | None = None) -> tuple[datetime, datetime]:
    """Inclusive (start, end) instants for the window relative to ``now``."""
    today = (now or datetime.now()).date()
    if window is DashboardWindow.THIS_MONTH:
        period = Period.containing(today)
        return period.start, period.end
    if window is DashboardWindow.LAST_MONTH:
        period = Period.containing(today).previous()
        return period.start, period.end

    days = 7 if window is DashboardWindow.LAST_7_DAYS else 15
    start_day: date = today - timedelta(days=days - 1)
    return datetime.combine(start_day, time.min), datetime.combine(today, time.max)


@dataclass(frozen=True)
class DashboardSummary:
    """Headline figures for a dashboard window."""

    window: DashboardWindow
    start: datetime
    end: datetime
    income_total: Decimal
    labor_earned: Decimal
    expense_total: Decimal
    active_jobs: int
    client_count: int

    @property
    def balance(self) -> Decimal:
        return self.labor_earned - self.expense_total

    def to_dict(self) -> dict[str, Any]:
        return {
            "window": self.window.value,
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "income_total": str(self.income_total),
            "labor_earned": str(self.labor_earned),
            "expense_total": str(self.expense_total),
            "balance": str(self.balance),
            "active_jobs": self.active_jobs,
            "client_count": self.client_count,
        }


def summarize_dashboard(
    clients: Sequence[Client],
    jobs: Sequence[Job],
    expenses: Sequence[Expense],
    window: DashboardWindow = DashboardWindow.THIS_MONTH,
    now: datetime | None = None,
) -> DashboardSummary:
    """Summarise income, earned labor and expenses for a rolling window.

    Unlike the monthly statement, earned labor is the quoted labor cost of
    every job that received at least one dated payment in the window.
    Undated payments and expenses are ignored.
    """
    start, end = window_bounds(window, now)

    def in_window(moment: datetime | None) -> bool:
        return moment is not None and start <= moment <= end

    income_total = ZERO
    labor_earned = ZERO
    for job in jobs:
        paid_in_window = [
            item.amount
            for item in job.line_items
            if isinstance(item, Payment) and in_window(item.date)
        ]
        if paid_in_window:
            income_total += sum(paid_in_window, ZERO)
            labor_earned += job.labor_cost or ZERO

    expense_total = sum((e.amount for e in expenses if in_window(e.date)), ZERO)

    return DashboardSummary(
        window=window,
        start=start,
        end=end,
        income_total=income_total,
        labor_earned=labor_earned,
        expense_total=expense_total,
        active_jobs=sum(1 for job in jobs if not job.is_finished),
        client_count=len(clients),
    )
