"""Finance session: owns the backend client and the current data snapshot.

A session is opened once (``open()`` or ``async with``), reloads the
snapshot after every write, and is closed explicitly. All figures are
computed from the snapshot by the pure functions in ``stats``,
``periods`` and ``dashboard``.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from taller_finance.backend.api import WorkshopAPIClient
from taller_finance.config import get_logger, get_settings
from taller_finance.dashboard import DashboardSummary, DashboardWindow, summarize_dashboard
from taller_finance.expenses import expand_recurring_expense, single_expense
from taller_finance.models import (
    Client,
    Expense,
    ExpenseCategory,
    Job,
    JobStatus,
    Payment,
    PaymentType,
    VehicleDirectory,
)
from taller_finance.periods import PeriodMap, discover_periods
from taller_finance.stats import (
    CategoryTotal,
    HistoryPoint,
    PeriodComparison,
    PeriodStats,
    compare_periods,
    compute_stats,
    expense_breakdown,
    history_series,
)


class SessionNotOpenError(RuntimeError):
    """The session was used before ``open()`` or after ``close()``."""


@dataclass(frozen=True)
class WorkshopSnapshot:
    """Clients, jobs and expenses as fetched at one point in time."""

    clients: list[Client] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    fetched_at: datetime = field(default_factory=datetime.now)

    @property
    def vehicles(self) -> VehicleDirectory:
        return VehicleDirectory(self.clients)


class FinanceSession:
    """Explicitly opened view over one workshop's financial data."""

    def __init__(
        self,
        client: WorkshopAPIClient | None = None,
        workshop_id: str | None = None,
    ):
        settings = get_settings()
        self._client = client
        self._owns_client = client is None
        self._workshop_id = workshop_id or settings.workshop_id
        self._history_months = settings.history_months
        self._snapshot: WorkshopSnapshot | None = None
        self._opened = False
        self._lock = asyncio.Lock()
        self._logger = get_logger(__name__, workshop_id=self._workshop_id)

    async def __aenter__(self) -> "FinanceSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # === Lifecycle ===

    async def open(self) -> WorkshopSnapshot:
        """Create the backend client if needed and load the first snapshot."""
        if self._client is None:
            self._client = WorkshopAPIClient()
        self._opened = True
        try:
            snapshot = await self.refresh()
        except Exception:
            await self.close()
            raise
        self._logger.info("session_opened")
        return snapshot

    async def close(self) -> None:
        """Drop the snapshot and release the client if this session created it."""
        self._opened = False
        self._snapshot = None
        if self._client is not None and self._owns_client:
            await self._client.close()
            self._client = None
        self._logger.info("session_closed")

    @property
    def is_open(self) -> bool:
        return self._opened and self._snapshot is not None

    @property
    def snapshot(self) -> WorkshopSnapshot:
        if self._snapshot is None:
            raise SessionNotOpenError("finance session is not open")
        return self._snapshot

    def _require_client(self) -> WorkshopAPIClient:
        if not self._opened or self._client is None:
            raise SessionNotOpenError("finance session is not open")
        return self._client

    async def refresh(self) -> WorkshopSnapshot:
        """Reload clients, jobs and expenses from the backend."""
        client = self._require_client()
        async with self._lock:
            clients, jobs, expenses = await asyncio.gather(
                client.list_clients(),
                client.list_jobs(),
                client.list_expenses(),
            )
            self._snapshot = WorkshopSnapshot(clients=clients, jobs=jobs, expenses=expenses)
        self._logger.info(
            "snapshot_loaded",
            clients=len(clients),
            jobs=len(jobs),
            expenses=len(expenses),
        )
        return self._snapshot

    # === Reports ===

    def stats(self, month: int, year: int) -> PeriodStats:
        snap = self.snapshot
        return compute_stats(snap.jobs, snap.expenses, month, year, snap.vehicles)

    def compare(self, month: int, year: int) -> PeriodComparison:
        snap = self.snapshot
        return compare_periods(snap.jobs, snap.expenses, month, year, snap.vehicles)

    def breakdown(self, month: int, year: int) -> list[CategoryTotal]:
        return expense_breakdown(self.snapshot.expenses, month, year)

    def history(
        self, trailing_months: int | None = None, today: date | None = None
    ) -> list[HistoryPoint]:
        if trailing_months is None:
            trailing_months = self._history_months
        snap = self.snapshot
        return history_series(snap.jobs, snap.expenses, trailing_months, today)

    def periods(self) -> PeriodMap:
        snap = self.snapshot
        return discover_periods(snap.jobs, snap.expenses)

    def dashboard(
        self,
        window: DashboardWindow = DashboardWindow.THIS_MONTH,
        now: datetime | None = None,
    ) -> DashboardSummary:
        snap = self.snapshot
        return summarize_dashboard(snap.clients, snap.jobs, snap.expenses, window, now)

    # === Writes ===

    async def add_expense(
        self,
        description: str,
        amount: Decimal,
        category: ExpenseCategory = ExpenseCategory.OTHER,
        recurring: bool = False,
        on: date | None = None,
    ) -> list[Expense]:
        """Record an expense; recurring ones are drafted for every remaining month."""
        if recurring:
            drafts = expand_recurring_expense(description, amount, category, on)
        else:
            drafts = [single_expense(description, amount, category, on)]
        return await self.add_expenses(drafts)

    async def add_expenses(self, drafts: list[Expense]) -> list[Expense]:
        created = await self._require_client().create_expenses(drafts, self._workshop_id)
        await self.refresh()
        return created

    async def update_expense(self, expense: Expense) -> None:
        await self._require_client().update_expense(expense)
        await self.refresh()

    async def delete_expense(self, expense_id: str) -> None:
        await self._require_client().delete_expense(expense_id)
        await self.refresh()

    async def set_job_status(self, job_id: str, status: JobStatus) -> None:
        await self._require_client().update_job_status(job_id, status)
        await self.refresh()

    def _find_job(self, job_id: str) -> Job:
        for job in self.snapshot.jobs:
            if job.id == job_id:
                return job
        raise ValueError(f"unknown job {job_id!r}")

    async def record_payment(
        self,
        job_id: str,
        amount: Decimal,
        on: datetime | None = None,
        payment_type: PaymentType | None = None,
    ) -> Payment:
        """Append a payment to a job's line items and save them."""
        job = self._find_job(job_id)
        payment = Payment(amount=amount, date=on or datetime.now(), payment_type=payment_type)
        await self._require_client().update_job_line_items(job.id, [*job.line_items, payment])
        await self.refresh()
        return payment

    async def remove_payment(self, job_id: str, payment: Payment) -> None:
        """Drop one matching payment from a job's line items and save them."""
        job = self._find_job(job_id)
        items = list(job.line_items)
        try:
            items.remove(payment)
        except ValueError:
            raise ValueError(f"job {job_id!r} has no such payment") from None
        await self._require_client().update_job_line_items(job.id, items)
        await self.refresh()
