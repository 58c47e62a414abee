"""Pytest configuration and fixtures."""

import logging
import os
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
import structlog

# Set test environment variables before importing settings
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")

from taller_finance.models import (  # noqa: E402
    Client,
    Expense,
    ExpenseCategory,
    Job,
    JobStatus,
    Payment,
    PaymentType,
    RealItem,
    Vehicle,
)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() so handlers never outlive a captured stream."""
    yield
    structlog.reset_defaults()
    for handler in logging.root.handlers[:]:
        logging.root.removeHandler(handler)


@pytest.fixture
def mock_httpx_client():
    """Create a mock httpx AsyncClient."""
    client = AsyncMock()
    client.request = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def clients() -> list[Client]:
    """Two clients, one with two vehicles."""
    return [
        Client(
            id="c1",
            first_name="Juan",
            last_name="Pérez",
            vehicles=[
                Vehicle(id="v1", make="Ford", model="Focus", plate="AB123CD"),
                Vehicle(id="v2", make="Fiat", model="Cronos", plate="AC456EF"),
            ],
        ),
        Client(
            id="c2",
            first_name="Ana",
            last_name="Gómez",
            vehicles=[Vehicle(id="v3", make="Toyota", model="Hilux", plate="AD789GH")],
        ),
    ]


@pytest.fixture
def brake_job() -> Job:
    """Job with 100 of shop-fronted parts paid with two general payments of 60."""
    return Job(
        id="job-brakes",
        client_id="c1",
        vehicle_id="v1",
        description="Cambio de pastillas",
        line_items=[
            RealItem(name="Pastillas", quantity=Decimal("2"), unit_price=Decimal("50")),
            Payment(amount=Decimal("60"), date=datetime(2026, 3, 5, 10, 0)),
            Payment(amount=Decimal("60"), date=datetime(2026, 3, 20, 16, 30)),
        ],
        labor_cost=Decimal("80"),
        estimated_cost=Decimal("180"),
        status=JobStatus.FINISHED,
        date_in=datetime(2026, 3, 2, 9, 0),
        date_out=datetime(2026, 3, 20, 17, 0),
    )


@pytest.fixture
def labor_payment() -> Payment:
    return Payment(
        amount=Decimal("30"),
        date=datetime(2026, 3, 25, 11, 0),
        payment_type=PaymentType.LABOR,
    )


@pytest.fixture
def rent_expense() -> Expense:
    return Expense(
        id="e1",
        date=datetime(2026, 3, 10, 8, 0),
        description="Alquiler marzo",
        amount=Decimal("500"),
        category=ExpenseCategory.RENT,
        is_fixed=True,
    )


@pytest.fixture
def job_row() -> dict:
    """A ``trabajos`` row as returned by the backend."""
    return {
        "id": "job-1",
        "taller_id": "taller-1",
        "cliente_id": "c1",
        "vehiculo_id": "v1",
        "descripcion": "Service 10.000 km",
        "partes": [
            {"nombre": "Filtro aceite", "cantidad": 1, "precioUnitario": 15000},
            {"nombre": "Mano de obra", "cantidad": 1, "precioUnitario": 30000, "isService": True},
            {
                "nombre": "__PAGO_REGISTRADO__",
                "cantidad": 1,
                "precioUnitario": 20000,
                "fecha": "2026-03-05T13:00:00",
            },
            {
                "nombre": "__PAGO_REGISTRADO__",
                "cantidad": 1,
                "precioUnitario": 25000.5,
                "fecha": "2026-03-02T10:00:00",
                "paymentType": "labor",
            },
        ],
        "costo_mano_de_obra": 30000,
        "costo_estimado": 45000,
        "status": "En Proceso",
        "fecha_entrada": "2026-03-01T09:00:00",
        "fecha_salida": None,
        "kilometraje": 10250,
    }


@pytest.fixture
def expense_row() -> dict:
    """A ``gastos`` row as returned by the backend."""
    return {
        "id": "g-1",
        "taller_id": "taller-1",
        "fecha": "2026-03-10T08:00:00",
        "descripcion": "Luz",
        "monto": "12500.75",
        "categoria": "Servicios",
        "es_fijo": False,
    }


@pytest.fixture
def client_row() -> dict:
    """A ``clientes`` row with embedded vehicles."""
    return {
        "id": "c1",
        "nombre": "Juan",
        "apellido": "Pérez",
        "email": "juan@example.com",
        "telefono": "1155551234",
        "vehiculos": [
            {
                "id": "v1",
                "marca": "Ford",
                "modelo": "Focus",
                "año": 2018,
                "matricula": "AB123CD",
            }
        ],
    }
