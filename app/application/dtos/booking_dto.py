"""DTOs para la creación y consulta de reservas."""

from dataclasses import dataclass, field
from typing import Any

from app.domain.entities.booking import Booking, BookingItem
from app.domain.entities.confirmation import BookingConfirmation, ConfirmationStatus
from app.domain.entities.payment import CustomerPayment

ITEM_STATUS_FAILED = "failed"


@dataclass
class ItemResult:
    """Resultado de despachar un item: éxito, fallback manual o falla del proveedor."""

    item_id: int | None
    item_type: str
    item_name: str
    status: str
    provider: str | None = None
    confirmation_id: int | None = None
    confirmation_number: str | None = None
    booking_reference: str | None = None
    requires_agent_followup: bool = False
    error: str | None = None
    details: dict[str, Any] | None = None

    @property
    def is_failed(self) -> bool:
        return self.status == ITEM_STATUS_FAILED

    @classmethod
    def from_confirmation(
        cls,
        confirmation: BookingConfirmation,
        item_type: str,
        item_name: str,
    ) -> "ItemResult":
        return cls(
            item_id=confirmation.quote_item_id,
            item_type=item_type,
            item_name=item_name,
            status=confirmation.status.value,
            provider=confirmation.provider.value,
            confirmation_id=confirmation.id,
            confirmation_number=confirmation.confirmation_number,
            booking_reference=confirmation.booking_reference,
            requires_agent_followup=confirmation.requires_agent_followup,
            error=confirmation.error_message,
            details=confirmation.booking_details or None,
        )


@dataclass
class BookingSummaryDTO:
    """Vista agregada de los resultados; no altera el estado de la reserva."""

    total_items: int = 0
    confirmed: int = 0
    pending: int = 0
    failed: int = 0
    requires_followup: int = 0

    @classmethod
    def from_results(cls, results: list[ItemResult]) -> "BookingSummaryDTO":
        return cls(
            total_items=len(results),
            confirmed=sum(1 for r in results if r.status == ConfirmationStatus.CONFIRMED.value),
            pending=sum(1 for r in results if r.status == ConfirmationStatus.PENDING.value),
            failed=sum(1 for r in results if r.is_failed),
            requires_followup=sum(1 for r in results if r.requires_agent_followup),
        )


@dataclass
class BookingResultDTO:
    booking: Booking
    results: list[ItemResult] = field(default_factory=list)
    replayed: bool = False

    @property
    def summary(self) -> BookingSummaryDTO:
        return BookingSummaryDTO.from_results(self.results)


@dataclass
class BookingDetailDTO:
    """Reserva con items, historial completo de confirmaciones y pagos."""

    booking: Booking
    items: list[BookingItem] = field(default_factory=list)
    confirmations: list[BookingConfirmation] = field(default_factory=list)
    payments: list[CustomerPayment] = field(default_factory=list)
