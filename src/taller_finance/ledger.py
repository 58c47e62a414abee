"""Payment ledger extraction for a job's line items."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from taller_finance.models import ZERO, Job, LineItem, Payment, RealItem

# Undated payments and expenses are placed at time zero (local calendar)
EPOCH = datetime.fromtimestamp(0)


def effective_date(value: datetime | None) -> datetime:
    """Return the date used for ordering and windowing, epoch when missing."""
    return value if value is not None else EPOCH


@dataclass
class LedgerSplit:
    """A job's line items separated into real items and payments."""

    real_items: list[RealItem] = field(default_factory=list)
    payments: list[Payment] = field(default_factory=list)


def extract_payments(line_items: Iterable[LineItem]) -> LedgerSplit:
    """Separate payment records from real items.

    Payments come back in chronological order (undated first); the sort is
    stable so payments sharing a timestamp keep their recorded order.
    """
    split = LedgerSplit()
    for item in line_items:
        if isinstance(item, Payment):
            split.payments.append(item)
        else:
            split.real_items.append(item)
    split.payments.sort(key=lambda p: effective_date(p.date))
    return split


def total_paid(job: Job) -> Decimal:
    """Sum of every payment recorded against the job."""
    return sum(
        (item.amount for item in job.line_items if isinstance(item, Payment)), ZERO
    )


def balance_due(job: Job) -> Decimal:
    """Outstanding balance; negative when the client has overpaid."""
    return job.estimated_cost - total_paid(job)
