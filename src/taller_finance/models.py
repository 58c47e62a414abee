"""Domain records for workshop jobs, payments and expenses.

A job's itemised list holds two kinds of entries: real parts/services and
payment records. They are modelled as distinct variants (``RealItem`` and
``Payment``) so nothing downstream has to tell them apart by name.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

ZERO = Decimal("0")
VEHICLE_FALLBACK_LABEL = "Vehículo"


class JobStatus(str, Enum):
    """Lifecycle status of a job."""

    QUOTE = "Presupuesto"
    SCHEDULED = "Programado"
    IN_PROGRESS = "En Proceso"
    FINISHED = "Finalizado"


class PaymentType(str, Enum):
    """Optional tag on a payment saying what it pays for."""

    ITEMS = "items"
    LABOR = "labor"


class ExpenseCategory(str, Enum):
    """Expense categories as stored by the backend."""

    SALARIES = "Sueldos"
    RENT = "Alquiler"
    TAXES = "Impuestos"
    UTILITIES = "Servicios"
    PARTS = "Repuestos"
    TOOLS = "Herramientas"
    MARKETING = "Marketing"
    OTHER = "Otros"

    @classmethod
    def parse(cls, value: "str | ExpenseCategory | None") -> "ExpenseCategory":
        """Return the matching category, or OTHER for unknown values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class RealItem:
    """A part, service or category header on a job."""

    name: str
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = ZERO
    is_service: bool = False
    is_category: bool = False
    client_paid_directly: bool = False
    maintenance_type: str | None = None

    @property
    def cost(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def fronted_by_shop(self) -> bool:
        """True for parts the shop paid for and must recover from the client."""
        return not (self.is_service or self.is_category or self.client_paid_directly)


@dataclass(frozen=True)
class Payment:
    """Money received against a job."""

    amount: Decimal
    date: datetime | None = None
    payment_type: PaymentType | None = None

    @property
    def is_labor(self) -> bool:
        return self.payment_type is PaymentType.LABOR


LineItem = RealItem | Payment


@dataclass
class Job:
    """A unit of work tracked from intake through completion."""

    id: str
    client_id: str
    vehicle_id: str
    description: str = ""
    line_items: list[LineItem] = field(default_factory=list)
    labor_cost: Decimal | None = None
    estimated_cost: Decimal = ZERO
    status: JobStatus = JobStatus.QUOTE
    date_in: datetime | None = None
    date_out: datetime | None = None
    workshop_id: str | None = None
    mileage: int | None = None
    notes: str | None = None

    @property
    def completion_date(self) -> datetime | None:
        """Date the job left the shop, falling back to its intake date."""
        return self.date_out or self.date_in

    @property
    def is_finished(self) -> bool:
        return self.status is JobStatus.FINISHED


@dataclass
class Expense:
    """A shop expense, independent of jobs. ``id`` is None for drafts."""

    id: str | None
    date: datetime | None
    description: str
    amount: Decimal
    category: ExpenseCategory = ExpenseCategory.OTHER
    is_fixed: bool = False


@dataclass(frozen=True)
class Vehicle:
    """A client's vehicle."""

    id: str
    make: str
    model: str
    plate: str = ""
    year: int | None = None
    chassis_number: str | None = None
    engine_number: str | None = None

    @property
    def label(self) -> str:
        return f"{self.make} {self.model}".strip() or VEHICLE_FALLBACK_LABEL


@dataclass
class Client:
    """A workshop client and the vehicles they own."""

    id: str
    first_name: str
    last_name: str = ""
    email: str = ""
    phone: str = ""
    vehicles: list[Vehicle] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class VehicleDirectory:
    """Looks up vehicles by (client_id, vehicle_id) for display labels."""

    def __init__(self, clients: list[Client] | None = None):
        self._by_client: dict[str, dict[str, Vehicle]] = {}
        for client in clients or []:
            self._by_client[client.id] = {v.id: v for v in client.vehicles}

    def find(self, client_id: str, vehicle_id: str) -> Vehicle | None:
        return self._by_client.get(client_id, {}).get(vehicle_id)

    def label_for(self, job: Job) -> str:
        vehicle = self.find(job.client_id, job.vehicle_id)
        return vehicle.label if vehicle else VEHICLE_FALLBACK_LABEL

    def __len__(self) -> int:
        return sum(len(vehicles) for vehicles in self._by_client.values())
