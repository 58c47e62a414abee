"""Period income statements built from job payments and expenses.

Every figure is derived from an in-memory snapshot; nothing here performs
I/O or keeps state between calls.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

import structlog

from taller_finance.allocation import AllocatedPayment, allocate
from taller_finance.ledger import effective_date
from taller_finance.models import (
    ZERO,
    Expense,
    ExpenseCategory,
    Job,
    Payment,
    VehicleDirectory,
)
from taller_finance.periods import Period, trailing_periods

logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


class TransactionKind(str, Enum):
    """Direction of money in a period's transaction list."""

    INCOME = "plus"
    EXPENSE = "minus"


@dataclass(frozen=True)
class Transaction:
    """One movement in a period: a job payment (positive) or an expense (negative)."""

    date: datetime
    description: str
    amount: Decimal
    kind: TransactionKind
    category: ExpenseCategory | None = None
    source_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": str(self.amount),
            "kind": self.kind.value,
            "category": self.category.value if self.category else None,
            "source_id": self.source_id,
        }


@dataclass
class PeriodStats:
    """Income statement for one calendar month."""

    period: Period
    income_total: Decimal = ZERO
    labor_profit_total: Decimal = ZERO
    parts_recovered_total: Decimal = ZERO
    expense_total: Decimal = ZERO
    jobs_finished_count: int = 0
    expense_count: int = 0
    transactions: list[Transaction] = field(default_factory=list)

    @property
    def net_balance(self) -> Decimal:
        return self.labor_profit_total - self.expense_total

    @property
    def margin(self) -> Decimal:
        """Net balance as a percentage of gross income (0 without income)."""
        if self.income_total > 0:
            return self.net_balance / self.income_total * HUNDRED
        return ZERO

    def incomes(self) -> list[Transaction]:
        return [t for t in self.transactions if t.kind is TransactionKind.INCOME]

    def outgoings(self) -> list[Transaction]:
        return [t for t in self.transactions if t.kind is TransactionKind.EXPENSE]

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.period.year,
            "month": self.period.month,
            "income_total": str(self.income_total),
            "labor_profit_total": str(self.labor_profit_total),
            "parts_recovered_total": str(self.parts_recovered_total),
            "expense_total": str(self.expense_total),
            "net_balance": str(self.net_balance),
            "margin": str(self.margin),
            "jobs_finished_count": self.jobs_finished_count,
            "expense_count": self.expense_count,
            "transactions": [t.to_dict() for t in self.transactions],
        }


def _payment_transaction(allocated: AllocatedPayment) -> Transaction:
    return Transaction(
        date=effective_date(allocated.date),
        description=allocated.description,
        amount=allocated.amount,
        kind=TransactionKind.INCOME,
        source_id=allocated.job_id,
    )


def _expense_transaction(expense: Expense) -> Transaction:
    return Transaction(
        date=effective_date(expense.date),
        description=expense.description,
        amount=-expense.amount,
        kind=TransactionKind.EXPENSE,
        category=expense.category,
        source_id=expense.id,
    )


def compute_stats(
    jobs: Iterable[Job],
    expenses: Iterable[Expense],
    month: int,
    year: int,
    vehicles: VehicleDirectory | None = None,
) -> PeriodStats:
    """Build the income statement for ``month`` (1-12) of ``year``.

    Each job is allocated over its full payment history so that parts cost
    recovered by earlier payments is honoured; only payments dated inside
    the month are added to the totals.
    """
    period = Period(year, month)
    stats = PeriodStats(period=period)
    vehicles = vehicles or VehicleDirectory()

    for job in jobs:
        if job.is_finished and job.completion_date and period.contains(job.completion_date):
            stats.jobs_finished_count += 1

        for allocated in allocate(job, vehicles):
            if not period.contains(allocated.date):
                continue
            stats.income_total += allocated.amount
            stats.labor_profit_total += allocated.labor_portion
            stats.parts_recovered_total += allocated.parts_portion
            stats.transactions.append(_payment_transaction(allocated))

    for expense in expenses:
        if not period.contains(expense.date):
            continue
        stats.expense_total += expense.amount
        stats.expense_count += 1
        stats.transactions.append(_expense_transaction(expense))

    # Stable sort: equal timestamps keep insertion order
    stats.transactions.sort(key=lambda t: t.date, reverse=True)

    logger.debug(
        "period_stats_computed",
        year=year,
        month=month,
        income=str(stats.income_total),
        labor_profit=str(stats.labor_profit_total),
        expenses=str(stats.expense_total),
        transactions=len(stats.transactions),
    )
    return stats


@dataclass(frozen=True)
class MetricChange:
    """A metric compared against the previous period."""

    current: Decimal
    previous: Decimal

    @property
    def difference(self) -> Decimal:
        return self.current - self.previous

    @property
    def percent(self) -> Decimal:
        """Relative change; 100 when there is nothing to compare against."""
        if self.previous != 0:
            return self.difference / abs(self.previous) * HUNDRED
        return HUNDRED

    @property
    def is_increase(self) -> bool:
        return self.difference >= 0


_COMPARABLE_METRICS = {
    "income": lambda s: s.income_total,
    "expense": lambda s: s.expense_total,
    "balance": lambda s: s.net_balance,
    "margin": lambda s: s.margin,
}


@dataclass(frozen=True)
class PeriodComparison:
    """A period's stats alongside those of the month before."""

    current: PeriodStats
    previous: PeriodStats

    def change(self, metric: str) -> MetricChange:
        """Compare one of ``income``, ``expense``, ``balance`` or ``margin``."""
        try:
            getter = _COMPARABLE_METRICS[metric]
        except KeyError:
            raise ValueError(
                f"unknown metric {metric!r}; expected one of {sorted(_COMPARABLE_METRICS)}"
            ) from None
        return MetricChange(current=getter(self.current), previous=getter(self.previous))

    def to_dict(self) -> dict[str, Any]:
        changes = {}
        for metric in _COMPARABLE_METRICS:
            change = self.change(metric)
            changes[metric] = {
                "current": str(change.current),
                "previous": str(change.previous),
                "difference": str(change.difference),
                "percent": str(change.percent),
            }
        return {
            "current": self.current.to_dict(),
            "previous_period": {
                "year": self.previous.period.year,
                "month": self.previous.period.month,
            },
            "changes": changes,
        }


def compare_periods(
    jobs: Sequence[Job],
    expenses: Sequence[Expense],
    month: int,
    year: int,
    vehicles: VehicleDirectory | None = None,
) -> PeriodComparison:
    """Stats for the month and for the preceding month."""
    previous = Period(year, month).previous()
    return PeriodComparison(
        current=compute_stats(jobs, expenses, month, year, vehicles),
        previous=compute_stats(jobs, expenses, previous.month, previous.year, vehicles),
    )


@dataclass(frozen=True)
class CategoryTotal:
    """Expense total for one category in a period."""

    category: ExpenseCategory
    total: Decimal
    count: int


def expense_breakdown(
    expenses: Iterable[Expense], month: int, year: int
) -> list[CategoryTotal]:
    """Per-category expense totals for the month, in order of first appearance."""
    period = Period(year, month)
    totals: dict[ExpenseCategory, tuple[Decimal, int]] = {}
    for expense in expenses:
        if not period.contains(expense.date):
            continue
        total, count = totals.get(expense.category, (ZERO, 0))
        totals[expense.category] = (total + expense.amount, count + 1)
    return [
        CategoryTotal(category=category, total=total, count=count)
        for category, (total, count) in totals.items()
    ]


@dataclass(frozen=True)
class HistoryPoint:
    """Gross income and expenses for one month of a trend chart."""

    period: Period
    income: Decimal
    expense: Decimal

    @property
    def label(self) -> str:
        return self.period.label

    @property
    def full_label(self) -> str:
        return self.period.full_label

    def to_dict(self) -> dict[str, Any]:
        return {
            "year": self.period.year,
            "month": self.period.month,
            "label": self.label,
            "full_label": self.full_label,
            "income": str(self.income),
            "expense": str(self.expense),
        }


def history_series(
    jobs: Sequence[Job],
    expenses: Sequence[Expense],
    trailing_months: int = 6,
    today: date | None = None,
) -> list[HistoryPoint]:
    """Gross payment income and expenses for the trailing months, oldest first.

    Lighter than ``compute_stats``: raw payment amounts, no allocation split.
    """
    payments = [
        item
        for job in jobs
        for item in job.line_items
        if isinstance(item, Payment)
    ]
    points = []
    for period in trailing_periods(trailing_months, today):
        income = sum((p.amount for p in payments if period.contains(p.date)), ZERO)
        expense = sum((e.amount for e in expenses if period.contains(e.date)), ZERO)
        points.append(HistoryPoint(period=period, income=income, expense=expense))
    return points
