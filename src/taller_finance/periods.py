"""Calendar-month reporting periods, period discovery and selector helpers."""

from __future__ import annotations

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time

from taller_finance.ledger import effective_date
from taller_finance.models import Expense, Job, Payment

MONTH_NAMES = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)
MONTH_ABBREVIATIONS = (
    "ene", "feb", "mar", "abr", "may", "jun",
    "jul", "ago", "sept", "oct", "nov", "dic",
)

PeriodMap = dict[int, set[int]]


@dataclass(frozen=True, order=True)
class Period:
    """A calendar month. ``month`` is 1-based."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be 1-12, got {self.month}")

    @classmethod
    def containing(cls, moment: date | datetime) -> Period:
        return cls(moment.year, moment.month)

    @classmethod
    def current(cls, today: date | None = None) -> Period:
        return cls.containing(today or date.today())

    @property
    def start(self) -> datetime:
        """First instant of the month."""
        return datetime(self.year, self.month, 1)

    @property
    def end(self) -> datetime:
        """Last instant of the month."""
        return datetime.combine(date(self.year, self.month, self.days), time.max)

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def label(self) -> str:
        return MONTH_ABBREVIATIONS[self.month - 1]

    @property
    def full_label(self) -> str:
        return MONTH_NAMES[self.month - 1]

    def contains(self, moment: datetime | None) -> bool:
        """True when the moment falls inside the month; undated counts as epoch."""
        return self.start <= effective_date(moment) <= self.end

    def shift(self, months: int) -> Period:
        index = self.year * 12 + (self.month - 1) + months
        return Period(index // 12, index % 12 + 1)

    def previous(self) -> Period:
        return self.shift(-1)

    def next(self) -> Period:
        return self.shift(1)

    def __str__(self) -> str:
        return f"{self.full_label} {self.year}"


def trailing_periods(count: int, today: date | None = None) -> list[Period]:
    """The ``count`` months ending at the current month, oldest first."""
    if count < 1:
        raise ValueError(f"count must be at least 1, got {count}")
    current = Period.current(today)
    return [current.shift(-offset) for offset in range(count - 1, -1, -1)]


def _job_dates(job: Job) -> Iterable[datetime | None]:
    yield job.date_out
    yield job.date_in
    for item in job.line_items:
        if isinstance(item, Payment):
            yield item.date


def discover_periods(jobs: Iterable[Job], expenses: Iterable[Expense]) -> PeriodMap:
    """Map each year to the months that have any job, payment or expense date.

    Undated records contribute nothing.
    """
    periods: PeriodMap = {}
    dates: list[datetime | None] = []
    for job in jobs:
        dates.extend(_job_dates(job))
    dates.extend(expense.date for expense in expenses)

    for moment in dates:
        if moment is None:
            continue
        periods.setdefault(moment.year, set()).add(moment.month)
    return periods


def available_years(periods: PeriodMap, today: date | None = None) -> list[int]:
    """Years with data, newest first; the current year when there is none."""
    years = sorted(periods, reverse=True)
    return years or [(today or date.today()).year]


def available_months(periods: PeriodMap, year: int) -> list[int]:
    """Months with data in ``year``, ascending; every month when there is none."""
    months = periods.get(year)
    if not months:
        return list(range(1, 13))
    return sorted(months)


def select_period(
    periods: PeriodMap,
    year: int,
    month: int,
    today: date | None = None,
) -> Period:
    """Return the requested period, or the closest one that has data.

    An unavailable year falls back to the newest year with data. An
    unavailable month falls back to the current month when that year has it,
    otherwise to the latest month with data.
    """
    today = today or date.today()
    years = available_years(periods, today)
    if year not in years:
        year = years[0]

    months = available_months(periods, year)
    if month not in months:
        month = today.month if today.month in months else months[-1]
    return Period(year, month)
