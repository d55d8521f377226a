"""Entidades Quote, QuoteItem y Customer - propuesta de viaje previa a la reserva."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from app.domain.value_objects.item_details import ItemDetails, parse_item_details


class QuoteStatus(str, Enum):
    """Estados posibles de una cotización."""

    DRAFT = "Draft"
    SENT = "Sent"
    EXPIRED = "Expired"
    CONVERTED = "Converted"
    PUBLISHED = "Published"


class ItemType(str, Enum):
    """Tipos de item reservables."""

    HOTEL = "Hotel"
    FLIGHT = "Flight"
    TOUR = "Tour"
    TRANSFER = "Transfer"
    INSURANCE = "Insurance"


@dataclass
class Customer:
    id: int | None = None
    first_name: str = ""
    last_name: str = ""
    email: str | None = None
    phone: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class QuoteItem:
    """Componente reservable de una cotización."""

    id: int | None = None
    quote_id: int = 0
    item_type: str = ItemType.TOUR.value
    item_name: str = ""
    cost: Decimal = Decimal("0")
    quantity: int = 1
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def line_total(self) -> Decimal:
        """Costo del item: costo unitario por cantidad."""
        return Decimal(str(self.cost)) * self.quantity

    @property
    def typed_details(self) -> ItemDetails:
        return parse_item_details(self.item_type, self.details)


@dataclass
class Quote:
    """
    Cotización de un agente para un cliente.

    Una cotización se convierte en exactamente una reserva; una vez
    `Converted` no admite otra conversión.
    """

    id: int | None = None
    agent_id: str = ""
    customer_id: int | None = None
    status: QuoteStatus = QuoteStatus.DRAFT
    customer: Customer | None = None
    items: list[QuoteItem] = field(default_factory=list)
    trip_start_date: date | None = None
    trip_end_date: date | None = None

    @property
    def total_price(self) -> Decimal:
        """Suma de costo por cantidad de todos los items."""
        return sum((item.line_total for item in self.items), Decimal("0"))

    @property
    def is_converted(self) -> bool:
        return self.status == QuoteStatus.CONVERTED

    def is_owned_by(self, agent_id: str) -> bool:
        return self.agent_id == agent_id
