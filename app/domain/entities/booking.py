"""Entidades Booking y BookingItem - registro comprometido creado desde una cotización."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from app.domain.entities.quote import Quote, QuoteItem
from app.domain.value_objects.booking_reference import BookingReference
from app.domain.value_objects.travel_dates import TravelDates


class BookingStatus(str, Enum):
    """Estados de una reserva."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


class BookingPaymentStatus(str, Enum):
    """Estado de cobro de la reserva, derivado de los pagos exitosos."""

    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"


@dataclass
class BookingItem:
    """
    Copia desnormalizada de un QuoteItem al momento de reservar.

    Se copia en lugar de referenciar porque la cotización puede cambiar
    después sin afectar la reserva confirmada.
    """

    id: int | None = None
    booking_id: int = 0
    quote_item_id: int | None = None
    item_type: str = ""
    item_name: str = ""
    cost: Decimal = Decimal("0")
    quantity: int = 1
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def copy_of(cls, booking_id: int, item: QuoteItem) -> "BookingItem":
        return cls(
            booking_id=booking_id,
            quote_item_id=item.id,
            item_type=item.item_type,
            item_name=item.item_name,
            cost=item.cost,
            quantity=item.quantity,
            details=dict(item.details or {}),
        )


@dataclass
class Booking:
    id: int | None = None
    booking_reference: str = ""
    quote_id: int = 0
    customer_id: int | None = None
    agent_id: str = ""
    status: BookingStatus = BookingStatus.PENDING
    total_price: Decimal = Decimal("0")
    amount_paid: Decimal = Decimal("0")
    payment_status: BookingPaymentStatus = BookingPaymentStatus.UNPAID
    payment_reference: str | None = None
    travel_start_date: date | None = None
    travel_end_date: date | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades ===

    @property
    def travel_dates(self) -> TravelDates | None:
        if not self.travel_start_date or not self.travel_end_date:
            return None
        return TravelDates(start=self.travel_start_date, end=self.travel_end_date)

    @property
    def balance_due(self) -> Decimal:
        return max(self.total_price - self.amount_paid, Decimal("0"))

    # === Métodos de negocio ===

    def apply_payments(self, amount_paid: Decimal) -> None:
        """
        Fija el monto cobrado y deriva el estado de pago.

        Recibe el total de pagos exitosos (no un incremento), de modo que
        aplicar el mismo evento dos veces deja el mismo resultado.
        """
        self.amount_paid = amount_paid
        if amount_paid <= 0:
            self.payment_status = BookingPaymentStatus.UNPAID
        elif amount_paid < self.total_price:
            self.payment_status = BookingPaymentStatus.PARTIAL
        else:
            self.payment_status = BookingPaymentStatus.PAID

    @classmethod
    def create_from_quote(
        cls,
        quote: Quote,
        payment_reference: str,
        now: datetime,
    ) -> "Booking":
        """
        Factory para la reserva de una cotización.

        El estado inicial es `Confirmed` antes de despachar a proveedores;
        el resultado por item se reporta aparte.
        """
        dates = TravelDates.from_optional(quote.trip_start_date, quote.trip_end_date, today=now.date())
        return cls(
            booking_reference=str(BookingReference.generate(now)),
            quote_id=quote.id,
            customer_id=quote.customer_id,
            agent_id=quote.agent_id,
            status=BookingStatus.CONFIRMED,
            total_price=quote.total_price,
            amount_paid=Decimal("0"),
            payment_status=BookingPaymentStatus.UNPAID,
            payment_reference=payment_reference,
            travel_start_date=dates.start,
            travel_end_date=dates.end,
            created_at=now,
            updated_at=now,
        )
