"""taller-finance - payment allocation and period income statements for a car workshop."""

__version__ = "0.1.0"

from taller_finance.allocation import AllocatedPayment, allocate, parts_cost_owed_by_shop
from taller_finance.config import configure_logging, get_settings
from taller_finance.dashboard import DashboardSummary, DashboardWindow, summarize_dashboard
from taller_finance.ledger import LedgerSplit, balance_due, extract_payments, total_paid
from taller_finance.models import (
    Client,
    Expense,
    ExpenseCategory,
    Job,
    JobStatus,
    LineItem,
    Payment,
    PaymentType,
    RealItem,
    Vehicle,
    VehicleDirectory,
)
from taller_finance.periods import (
    Period,
    available_months,
    available_years,
    discover_periods,
    select_period,
    trailing_periods,
)
from taller_finance.session import FinanceSession, SessionNotOpenError, WorkshopSnapshot
from taller_finance.stats import (
    PeriodComparison,
    PeriodStats,
    Transaction,
    compare_periods,
    compute_stats,
    expense_breakdown,
    history_series,
)

__all__ = [
    # Version
    "__version__",
    # Models
    "Client",
    "Expense",
    "ExpenseCategory",
    "Job",
    "JobStatus",
    "LineItem",
    "Payment",
    "PaymentType",
    "RealItem",
    "Vehicle",
    "VehicleDirectory",
    # Ledger & allocation
    "LedgerSplit",
    "extract_payments",
    "total_paid",
    "balance_due",
    "AllocatedPayment",
    "allocate",
    "parts_cost_owed_by_shop",
    # Periods
    "Period",
    "discover_periods",
    "available_years",
    "available_months",
    "select_period",
    "trailing_periods",
    # Statements
    "PeriodStats",
    "PeriodComparison",
    "Transaction",
    "compute_stats",
    "compare_periods",
    "expense_breakdown",
    "history_series",
    # Dashboard
    "DashboardWindow",
    "DashboardSummary",
    "summarize_dashboard",
    # Session
    "FinanceSession",
    "SessionNotOpenError",
    "WorkshopSnapshot",
    # Config
    "get_settings",
    "configure_logging",
]
