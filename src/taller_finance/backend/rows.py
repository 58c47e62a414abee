"""Mapping between backend table rows and domain records.

The backend stores jobs in ``trabajos``, expenses in ``gastos`` and clients
in ``clientes`` (with embedded ``vehiculos``). Column names are Spanish
snake_case; the JSON line items inside ``trabajos.partes`` use camelCase and
mark payments with a reserved item name. That sentinel never leaves this
module.
"""

from datetime import date, datetime, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog

from taller_finance.models import (
    ZERO,
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
)

logger = structlog.get_logger(__name__)

PAYMENT_SENTINEL = "__PAGO_REGISTRADO__"

JOBS_TABLE = "trabajos"
EXPENSES_TABLE = "gastos"
CLIENTS_TABLE = "clientes"


class RowMappingError(ValueError):
    """A backend row cannot be mapped to a domain record."""

    def __init__(self, table: str, field: str, message: str):
        super().__init__(f"{table}.{field}: {message}")
        self.table = table
        self.field = field


# === Scalars ===


def parse_timestamp(value: Any, tz: tzinfo | None = None) -> datetime | None:
    """Parse a stored timestamp into a naive local datetime.

    Aware values are converted to ``tz`` (system local time when None).
    Date-only values are taken as local calendar dates. Missing values give
    None; unparsable ones are logged and also give None.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            logger.warning("unparsable_timestamp", value=value)
            return None
    else:
        logger.warning("unparsable_timestamp", value=repr(value))
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz).replace(tzinfo=None)
    return parsed


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _decimal(value: Any, table: str, field: str) -> Decimal:
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise RowMappingError(table, field, f"expected a number, got {value!r}")
    try:
        # floats go through str() so 0.1 stays 0.1
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise RowMappingError(table, field, f"expected a number, got {value!r}") from None
    if not result.is_finite():
        raise RowMappingError(table, field, f"expected a finite number, got {value!r}")
    return result


def _optional_decimal(value: Any, table: str, field: str) -> Decimal | None:
    return None if value is None else _decimal(value, table, field)


def _optional_int(value: Any, table: str, field: str) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise RowMappingError(table, field, f"expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        raise RowMappingError(table, field, f"expected an integer, got {value!r}") from None


def _required_id(row: dict[str, Any], table: str, field: str = "id") -> str:
    value = row.get(field)
    if value is None or value == "":
        raise RowMappingError(table, field, "missing identifier")
    return str(value)


def _number_out(value: Decimal) -> int | float:
    """JSON-friendly number for writes (the backend columns are numeric)."""
    return int(value) if value == value.to_integral_value() else float(value)


# === Line items ===


def line_item_from_row(raw: dict[str, Any], tz: tzinfo | None = None) -> LineItem:
    """Map one entry of ``trabajos.partes`` to a real item or a payment."""
    if raw.get("nombre") == PAYMENT_SENTINEL:
        payment_type = raw.get("paymentType")
        return Payment(
            amount=_decimal(raw.get("precioUnitario"), "partes", "precioUnitario"),
            date=parse_timestamp(raw.get("fecha"), tz),
            payment_type=PaymentType(payment_type) if payment_type in ("items", "labor") else None,
        )
    return RealItem(
        name=str(raw.get("nombre") or ""),
        quantity=_decimal(raw.get("cantidad", 1), "partes", "cantidad"),
        unit_price=_decimal(raw.get("precioUnitario"), "partes", "precioUnitario"),
        is_service=bool(raw.get("isService", False)),
        is_category=bool(raw.get("isCategory", False)),
        client_paid_directly=bool(raw.get("clientPaidDirectly", False)),
        maintenance_type=raw.get("maintenanceType"),
    )


def line_item_to_row(item: LineItem) -> dict[str, Any]:
    """Map a line item back to its stored JSON shape."""
    if isinstance(item, Payment):
        row: dict[str, Any] = {
            "nombre": PAYMENT_SENTINEL,
            "cantidad": 1,
            "precioUnitario": _number_out(item.amount),
            "fecha": format_timestamp(item.date),
        }
        if item.payment_type is not None:
            row["paymentType"] = item.payment_type.value
        return row

    if item.name == PAYMENT_SENTINEL:
        raise RowMappingError("partes", "nombre", f"{PAYMENT_SENTINEL!r} is reserved for payments")
    row = {
        "nombre": item.name,
        "cantidad": _number_out(item.quantity),
        "precioUnitario": _number_out(item.unit_price),
    }
    for key, flag in (
        ("isService", item.is_service),
        ("isCategory", item.is_category),
        ("clientPaidDirectly", item.client_paid_directly),
    ):
        if flag:
            row[key] = True
    if item.maintenance_type:
        row["maintenanceType"] = item.maintenance_type
    return row


# === Jobs ===


def job_from_row(row: dict[str, Any], tz: tzinfo | None = None) -> Job:
    """Map a ``trabajos`` row to a Job."""
    status_raw = row.get("status") or JobStatus.QUOTE.value
    try:
        status = JobStatus(status_raw)
    except ValueError:
        raise RowMappingError(JOBS_TABLE, "status", f"unknown status {status_raw!r}") from None

    items_raw = row.get("partes") or []
    if not isinstance(items_raw, list):
        raise RowMappingError(JOBS_TABLE, "partes", "expected a list of line items")

    return Job(
        id=_required_id(row, JOBS_TABLE),
        client_id=str(row.get("cliente_id") or ""),
        vehicle_id=str(row.get("vehiculo_id") or ""),
        description=row.get("descripcion") or "",
        line_items=[line_item_from_row(raw, tz) for raw in items_raw],
        labor_cost=_optional_decimal(row.get("costo_mano_de_obra"), JOBS_TABLE, "costo_mano_de_obra"),
        estimated_cost=_decimal(row.get("costo_estimado"), JOBS_TABLE, "costo_estimado"),
        status=status,
        date_in=parse_timestamp(row.get("fecha_entrada"), tz),
        date_out=parse_timestamp(row.get("fecha_salida"), tz),
        workshop_id=row.get("taller_id"),
        mileage=_optional_int(row.get("kilometraje"), JOBS_TABLE, "kilometraje"),
        notes=row.get("nota_adicional"),
    )


# === Expenses ===


def expense_from_row(row: dict[str, Any], tz: tzinfo | None = None) -> Expense:
    """Map a ``gastos`` row to an Expense."""
    return Expense(
        id=_required_id(row, EXPENSES_TABLE),
        date=parse_timestamp(row.get("fecha"), tz),
        description=row.get("descripcion") or "",
        amount=_decimal(row.get("monto"), EXPENSES_TABLE, "monto"),
        category=ExpenseCategory.parse(row.get("categoria")),
        is_fixed=bool(row.get("es_fijo", False)),
    )


def expense_to_row(expense: Expense, workshop_id: str | None = None) -> dict[str, Any]:
    """Map an Expense to the columns written to ``gastos`` (id excluded)."""
    row: dict[str, Any] = {
        "descripcion": expense.description,
        "monto": _number_out(expense.amount),
        "fecha": format_timestamp(expense.date),
        "categoria": expense.category.value,
        "es_fijo": expense.is_fixed,
    }
    if workshop_id:
        row["taller_id"] = workshop_id
    return row


# === Clients ===


def vehicle_from_row(row: dict[str, Any]) -> Vehicle:
    return Vehicle(
        id=_required_id(row, "vehiculos"),
        make=row.get("marca") or "",
        model=row.get("modelo") or "",
        plate=row.get("matricula") or "",
        year=_optional_int(row.get("año"), "vehiculos", "año"),
        chassis_number=row.get("numero_chasis"),
        engine_number=row.get("numero_motor"),
    )


def client_from_row(row: dict[str, Any]) -> Client:
    """Map a ``clientes`` row (with embedded ``vehiculos``) to a Client."""
    return Client(
        id=_required_id(row, CLIENTS_TABLE),
        first_name=row.get("nombre") or "",
        last_name=row.get("apellido") or "",
        email=row.get("email") or "",
        phone=row.get("telefono") or "",
        vehicles=[vehicle_from_row(v) for v in row.get("vehiculos") or []],
    )
