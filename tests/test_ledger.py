"""Tests for payment ledger extraction and per-job totals."""

from datetime import datetime
from decimal import Decimal

from taller_finance.ledger import EPOCH, balance_due, effective_date, extract_payments, total_paid
from taller_finance.models import Job, Payment, RealItem


def _payment(amount: str, when: datetime | None) -> Payment:
    return Payment(amount=Decimal(amount), date=when)


class TestExtractPayments:
    """Tests for extract_payments()."""

    def test_empty_input_gives_empty_lists(self):
        split = extract_payments([])

        assert split.real_items == []
        assert split.payments == []

    def test_partitions_real_items_from_payments(self):
        filter_item = RealItem(name="Filtro", unit_price=Decimal("10"))
        service = RealItem(name="Alineación", unit_price=Decimal("20"), is_service=True)
        payment = _payment("15", datetime(2026, 1, 5))

        split = extract_payments([filter_item, payment, service])

        assert split.real_items == [filter_item, service]
        assert split.payments == [payment]

    def test_payments_sorted_chronologically(self):
        late = _payment("1", datetime(2026, 2, 1))
        early = _payment("2", datetime(2026, 1, 1))
        middle = _payment("3", datetime(2026, 1, 15))

        split = extract_payments([late, early, middle])

        assert split.payments == [early, middle, late]

    def test_undated_payment_sorts_first(self):
        dated = _payment("10", datetime(2026, 1, 1))
        undated = _payment("5", None)

        split = extract_payments([dated, undated])

        assert split.payments == [undated, dated]

    def test_equal_dates_keep_recorded_order(self):
        when = datetime(2026, 4, 1, 12, 0)
        first = _payment("1", when)
        second = _payment("2", when)

        split = extract_payments([first, second])

        assert split.payments == [first, second]


def test_effective_date_defaults_to_epoch():
    assert effective_date(None) == EPOCH
    assert effective_date(datetime(2026, 1, 1)) == datetime(2026, 1, 1)


class TestJobTotals:
    """Tests for total_paid() and balance_due()."""

    def test_total_paid_sums_only_payments(self, brake_job):
        assert total_paid(brake_job) == Decimal("120")

    def test_balance_due_subtracts_payments_from_estimate(self, brake_job):
        assert balance_due(brake_job) == Decimal("60")

    def test_balance_due_is_negative_when_overpaid(self):
        job = Job(
            id="j",
            client_id="c",
            vehicle_id="v",
            estimated_cost=Decimal("100"),
            line_items=[_payment("150", datetime(2026, 1, 1))],
        )

        assert balance_due(job) == Decimal("-50")

    def test_job_without_items_has_nothing_paid(self):
        job = Job(id="j", client_id="c", vehicle_id="v")

        assert total_paid(job) == Decimal("0")
        assert balance_due(job) == Decimal("0")
