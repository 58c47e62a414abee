"""Expense category metadata and recurring-expense expansion."""

import calendar
from datetime import date, datetime
from decimal import Decimal

from taller_finance.models import Expense, ExpenseCategory
from taller_finance.periods import MONTH_NAMES

# Display label and chart colour per category
CATEGORY_STYLES: dict[ExpenseCategory, tuple[str, str]] = {
    ExpenseCategory.SALARIES: ("Sueldos", "#ec4899"),
    ExpenseCategory.RENT: ("Alquiler", "#6366f1"),
    ExpenseCategory.TAXES: ("Impuestos", "#f59e0b"),
    ExpenseCategory.UTILITIES: ("Servicios", "#10b981"),
    ExpenseCategory.PARTS: ("Repuestos", "#ef4444"),
    ExpenseCategory.TOOLS: ("Herramientas", "#8b5cf6"),
    ExpenseCategory.MARKETING: ("Marketing", "#06b6d4"),
    ExpenseCategory.OTHER: ("Otros", "#94a3b8"),
}


def category_label(category: ExpenseCategory) -> str:
    return CATEGORY_STYLES[category][0]


def category_color(category: ExpenseCategory) -> str:
    return CATEGORY_STYLES[category][1]


def single_expense(
    description: str,
    amount: Decimal,
    category: ExpenseCategory = ExpenseCategory.OTHER,
    on: date | None = None,
) -> Expense:
    """A one-off expense draft dated ``on`` (today by default)."""
    day = on or date.today()
    return Expense(
        id=None,
        date=datetime(day.year, day.month, day.day),
        description=description,
        amount=amount,
        category=category,
        is_fixed=False,
    )


def expand_recurring_expense(
    description: str,
    amount: Decimal,
    category: ExpenseCategory = ExpenseCategory.OTHER,
    start: date | None = None,
) -> list[Expense]:
    """Draft one fixed expense per month from ``start`` through December.

    Each draft falls on ``start``'s day of month, clamped to the last day of
    shorter months, and carries the month name in its description.
    """
    start = start or date.today()
    drafts = []
    for month in range(start.month, 13):
        last_day = calendar.monthrange(start.year, month)[1]
        day = min(start.day, last_day)
        drafts.append(
            Expense(
                id=None,
                date=datetime(start.year, month, day),
                description=f"{description} ({MONTH_NAMES[month - 1]})",
                amount=amount,
                category=category,
                is_fixed=True,
            )
        )
    return drafts
