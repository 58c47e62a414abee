"""Command-line period report.

Usage:
    # Current month
    taller-finance

    # A given month, with a 12-month trend
    taller-finance --month 3 --year 2026 --history 12

    # Machine-readable output
    python -m taller_finance.report --month 3 --year 2026 --json
"""

import asyncio
import json
import sys
from datetime import date
from typing import Any

import structlog

from taller_finance.backend.api import BackendError
from taller_finance.expenses import category_label
from taller_finance.formatting import format_currency, format_percent
from taller_finance.session import FinanceSession
from taller_finance.stats import CategoryTotal, HistoryPoint, PeriodComparison

logger = structlog.get_logger(__name__)


def render_report(
    comparison: PeriodComparison,
    breakdown: list[CategoryTotal],
    history: list[HistoryPoint],
) -> str:
    """Plain-text report for a period."""
    stats = comparison.current
    lines = [
        f"Centro Financiero: {stats.period}",
        "=" * 60,
    ]
    for title, metric, is_percent in (
        ("Ingresos", "income", False),
        ("Egresos", "expense", False),
        ("Balance neto", "balance", False),
        ("Margen", "margin", True),
    ):
        change = comparison.change(metric)
        shown = format_percent(change.current) if is_percent else format_currency(change.current)
        arrow = "+" if change.is_increase else "-"
        lines.append(
            f"{title:<14}{shown:>16}   {arrow}{format_percent(abs(change.percent))} vs mes anterior"
        )

    lines.append(f"Trabajos finalizados: {stats.jobs_finished_count}")
    lines.append(f"Gastos registrados:   {stats.expense_count}")

    if breakdown:
        lines.extend(["", "Gastos por categoría"])
        for entry in breakdown:
            lines.append(f"  {category_label(entry.category):<14}{format_currency(entry.total):>16}")

    lines.extend(["", "Movimientos del período"])
    if stats.transactions:
        for txn in stats.transactions:
            lines.append(
                f"  {txn.date:%d/%m/%Y}  {txn.description:<36}{format_currency(txn.amount):>14}"
            )
    else:
        lines.append("  No hay registros en este período.")

    if history:
        lines.extend(["", "Historial"])
        for point in history:
            lines.append(
                f"  {point.label:<6}{format_currency(point.income):>14}{format_currency(point.expense):>14}"
            )
    return "\n".join(lines)


def report_payload(
    comparison: PeriodComparison,
    breakdown: list[CategoryTotal],
    history: list[HistoryPoint],
) -> dict[str, Any]:
    """JSON-ready report for a period."""
    payload = comparison.to_dict()
    payload["breakdown"] = [
        {"category": entry.category.value, "total": str(entry.total), "count": entry.count}
        for entry in breakdown
    ]
    payload["history"] = [point.to_dict() for point in history]
    return payload


async def main() -> None:
    """Main entry point for the period report."""
    import argparse

    from taller_finance.config import configure_logging

    configure_logging()

    today = date.today()
    parser = argparse.ArgumentParser(
        description="Workshop period income statement",
    )
    parser.add_argument(
        "--month",
        type=int,
        default=today.month,
        help="Month to report, 1-12 (default: current month)",
    )
    parser.add_argument(
        "--year",
        type=int,
        default=today.year,
        help="Year to report (default: current year)",
    )
    parser.add_argument(
        "--history",
        type=int,
        default=None,
        help="Trailing months in the trend series (default: HISTORY_MONTHS)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )
    args = parser.parse_args()
    if not 1 <= args.month <= 12:
        parser.error("--month must be between 1 and 12")
    if args.history is not None and args.history < 1:
        parser.error("--history must be at least 1")

    logger.info("building_report", year=args.year, month=args.month)

    try:
        async with FinanceSession() as session:
            comparison = session.compare(args.month, args.year)
            breakdown = session.breakdown(args.month, args.year)
            history = session.history(args.history)
    except BackendError as e:
        logger.exception("report_failed", error=str(e), status_code=e.status_code)
        sys.exit(1)

    if args.json:
        print(json.dumps(report_payload(comparison, breakdown, history), indent=2, ensure_ascii=False))
    else:
        print(render_report(comparison, breakdown, history))


def run() -> None:
    """Console-script wrapper."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
