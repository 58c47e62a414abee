"""Tests for the rolling-window dashboard summary."""

from datetime import datetime
from decimal import Decimal

import pytest

from taller_finance.dashboard import DashboardWindow, summarize_dashboard, window_bounds
from taller_finance.models import Expense, Job, JobStatus, Payment

NOW = datetime(2026, 3, 10, 12, 0)


class TestWindowBounds:
    """Tests for window_bounds()."""

    def test_this_month(self):
        start, end = window_bounds(DashboardWindow.THIS_MONTH, NOW)

        assert start == datetime(2026, 3, 1)
        assert end == datetime(2026, 3, 31, 23, 59, 59, 999999)

    def test_last_month_rolls_over_new_year(self):
        start, end = window_bounds(DashboardWindow.LAST_MONTH, datetime(2026, 1, 15))

        assert start == datetime(2025, 12, 1)
        assert end == datetime(2025, 12, 31, 23, 59, 59, 999999)

    @pytest.mark.parametrize(
        "window,first_day",
        [
            (DashboardWindow.LAST_7_DAYS, datetime(2026, 3, 4)),
            (DashboardWindow.LAST_15_DAYS, datetime(2026, 2, 24)),
        ],
    )
    def test_rolling_windows_include_today(self, window, first_day):
        start, end = window_bounds(window, NOW)

        assert start == first_day
        assert end == datetime(2026, 3, 10, 23, 59, 59, 999999)


class TestSummarizeDashboard:
    """Tests for summarize_dashboard()."""

    def test_this_month(self, clients, brake_job, rent_expense):
        summary = summarize_dashboard(clients, [brake_job], [rent_expense], now=NOW)

        assert summary.window is DashboardWindow.THIS_MONTH
        assert summary.income_total == Decimal("120")
        assert summary.labor_earned == Decimal("80")
        assert summary.expense_total == Decimal("500")
        assert summary.balance == Decimal("-420")
        assert summary.client_count == 2

    def test_last_seven_days_counts_labor_once_per_job(self, clients, brake_job, rent_expense):
        brake_job.line_items.append(Payment(amount=Decimal("5"), date=datetime(2026, 3, 6)))

        summary = summarize_dashboard(
            clients, [brake_job], [rent_expense], DashboardWindow.LAST_7_DAYS, now=NOW
        )

        assert summary.income_total == Decimal("65")
        assert summary.labor_earned == Decimal("80")
        assert summary.expense_total == Decimal("500")

    def test_last_month_without_activity(self, clients, brake_job, rent_expense):
        summary = summarize_dashboard(
            clients, [brake_job], [rent_expense], DashboardWindow.LAST_MONTH, now=NOW
        )

        assert summary.income_total == 0
        assert summary.labor_earned == 0
        assert summary.expense_total == 0
        assert summary.balance == 0

    def test_undated_records_are_ignored(self):
        job = Job(
            id="j",
            client_id="c",
            vehicle_id="v",
            labor_cost=Decimal("100"),
            line_items=[Payment(amount=Decimal("40"), date=None)],
        )
        expense = Expense(id="e", date=None, description="?", amount=Decimal("7"))

        summary = summarize_dashboard([], [job], [expense], now=NOW)

        assert summary.income_total == 0
        assert summary.labor_earned == 0
        assert summary.expense_total == 0

    def test_active_jobs_exclude_finished(self, brake_job):
        open_job = Job(id="o", client_id="c", vehicle_id="v", status=JobStatus.IN_PROGRESS)
        quote = Job(id="q", client_id="c", vehicle_id="v")

        summary = summarize_dashboard([], [brake_job, open_job, quote], [], now=NOW)

        assert summary.active_jobs == 2

    def test_to_dict(self, brake_job):
        data = summarize_dashboard([], [brake_job], [], DashboardWindow.LAST_7_DAYS, now=NOW).to_dict()

        assert data["window"] == "last_7_days"
        assert data["start"] == "2026-03-04T00:00:00"
        assert data["income_total"] == "60"
        assert data["balance"] == "80"
