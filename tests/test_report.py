"""Tests for the command-line period report."""

import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from taller_finance.backend import BackendError
from taller_finance.models import VehicleDirectory
from taller_finance.report import main, render_report, report_payload
from taller_finance.stats import compare_periods, expense_breakdown, history_series


@pytest.fixture
def march_report(clients, brake_job, rent_expense):
    jobs, expenses = [brake_job], [rent_expense]
    return (
        compare_periods(jobs, expenses, 3, 2026, VehicleDirectory(clients)),
        expense_breakdown(expenses, 3, 2026),
        history_series(jobs, expenses, trailing_months=3, today=date(2026, 3, 15)),
    )


class TestRenderReport:
    """Tests for render_report()."""

    def test_headline_figures(self, march_report):
        text = render_report(*march_report)

        assert text.startswith("Centro Financiero: marzo 2026")
        assert "$ 120" in text
        assert "-$ 480" in text
        assert "-400,0%" in text
        assert "Trabajos finalizados: 1" in text

    def test_lists_categories_and_transactions(self, march_report):
        text = render_report(*march_report)

        assert "Gastos por categoría" in text
        assert "Alquiler" in text
        assert "20/03/2026  Pago General: Ford Focus" in text
        assert "10/03/2026  Alquiler marzo" in text

    def test_history_labels(self, march_report):
        text = render_report(*march_report)

        history = text.split("Historial")[1]
        assert [line.split()[0] for line in history.strip().splitlines()] == ["ene", "feb", "mar"]

    def test_empty_period(self):
        text = render_report(compare_periods([], [], 7, 2026), [], [])

        assert "No hay registros en este período." in text
        assert "Gastos por categoría" not in text
        assert "Historial" not in text


def test_report_payload(march_report):
    payload = report_payload(*march_report)

    assert payload["current"]["income_total"] == "120"
    assert payload["breakdown"] == [{"category": "Alquiler", "total": "500", "count": 1}]
    assert [p["label"] for p in payload["history"]] == ["ene", "feb", "mar"]
    json.dumps(payload)


class FakeSession:
    """Async context manager standing in for FinanceSession."""

    def __init__(self, march_report=None, error=None):
        self._report = march_report
        self._error = error
        self.history = MagicMock(side_effect=lambda months: self._report[2])

    async def __aenter__(self):
        if self._error:
            raise self._error
        return self

    async def __aexit__(self, *exc_info):
        return None

    def compare(self, month, year):
        return self._report[0]

    def breakdown(self, month, year):
        return self._report[1]


class TestMain:
    """Tests for the report entry point."""

    @pytest.mark.asyncio
    async def test_prints_json(self, march_report, capsys):
        fake = FakeSession(march_report)

        with (
            patch("taller_finance.report.FinanceSession", return_value=fake),
            patch("sys.argv", ["taller-finance", "--month", "3", "--year", "2026",
                               "--history", "3", "--json"]),
        ):
            await main()

        output = json.loads(capsys.readouterr().out)
        assert output["current"]["month"] == 3
        fake.history.assert_called_once_with(3)

    @pytest.mark.asyncio
    async def test_prints_text(self, march_report, capsys):
        with (
            patch("taller_finance.report.FinanceSession", return_value=FakeSession(march_report)),
            patch("sys.argv", ["taller-finance", "--month", "3", "--year", "2026"]),
        ):
            await main()

        assert "Centro Financiero: marzo 2026" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_backend_failure_exits_with_error(self):
        fake = FakeSession(error=BackendError("API error: 503", status_code=503))

        with (
            patch("taller_finance.report.FinanceSession", return_value=fake),
            patch("sys.argv", ["taller-finance"]),
            pytest.raises(SystemExit) as exc_info,
        ):
            await main()

        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_rejects_invalid_month(self):
        with (
            patch("sys.argv", ["taller-finance", "--month", "13"]),
            pytest.raises(SystemExit) as exc_info,
        ):
            await main()

        assert exc_info.value.code == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("history", ["0", "-3"])
    async def test_rejects_non_positive_history(self, history):
        with (
            patch("taller_finance.report.FinanceSession") as session_factory,
            patch("sys.argv", ["taller-finance", "--history", history]),
            pytest.raises(SystemExit) as exc_info,
        ):
            await main()

        assert exc_info.value.code == 2
        session_factory.assert_not_called()
