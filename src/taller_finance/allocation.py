"""Allocation of job payments between parts-cost recovery and labor profit.

The shop fronts the cost of parts it buys for a job. Incoming general
payments first pay that cost back; only the surplus counts as labor profit.
Payments tagged as labor skip recovery entirely.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog

from taller_finance.ledger import extract_payments
from taller_finance.models import ZERO, Job, PaymentType, RealItem, VehicleDirectory

logger = structlog.get_logger(__name__)

LABOR_PAYMENT_PREFIX = "Pago M.O."
GENERAL_PAYMENT_PREFIX = "Pago General"


@dataclass(frozen=True)
class AllocatedPayment:
    """A payment split into its parts-recovery and labor-profit portions."""

    job_id: str
    date: datetime | None
    amount: Decimal
    labor_portion: Decimal
    parts_portion: Decimal
    payment_type: PaymentType | None
    description: str
    recovered_to_date: Decimal  # parts cost recovered after this payment

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "date": self.date.isoformat() if self.date else None,
            "amount": str(self.amount),
            "labor_portion": str(self.labor_portion),
            "parts_portion": str(self.parts_portion),
            "payment_type": self.payment_type.value if self.payment_type else None,
            "description": self.description,
            "recovered_to_date": str(self.recovered_to_date),
        }


def parts_cost_owed_by_shop(real_items: Iterable[RealItem]) -> Decimal:
    """Total cost of parts the shop fronted (services, headers and
    client-supplied parts excluded)."""
    return sum((item.cost for item in real_items if item.fronted_by_shop), ZERO)


def allocate(job: Job, vehicles: VehicleDirectory | None = None) -> list[AllocatedPayment]:
    """Split each of the job's payments, walking them chronologically.

    Recovery state runs over the job's whole payment history; callers that
    only care about one period filter the result by date afterwards.
    """
    split = extract_payments(job.line_items)
    owed = parts_cost_owed_by_shop(split.real_items)
    vehicle_label = (vehicles or VehicleDirectory()).label_for(job)

    recovered = ZERO
    allocations: list[AllocatedPayment] = []
    for payment in split.payments:
        amount = payment.amount
        if payment.is_labor:
            parts_portion = ZERO
            prefix = LABOR_PAYMENT_PREFIX
        else:
            remaining = max(ZERO, owed - recovered)
            parts_portion = min(amount, remaining)
            recovered += parts_portion
            prefix = GENERAL_PAYMENT_PREFIX

        allocations.append(
            AllocatedPayment(
                job_id=job.id,
                date=payment.date,
                amount=amount,
                labor_portion=amount - parts_portion,
                parts_portion=parts_portion,
                payment_type=payment.payment_type,
                description=f"{prefix}: {vehicle_label}",
                recovered_to_date=recovered,
            )
        )

    if allocations:
        logger.debug(
            "job_payments_allocated",
            job_id=job.id,
            payments=len(allocations),
            parts_owed=str(owed),
            parts_recovered=str(recovered),
        )
    return allocations
