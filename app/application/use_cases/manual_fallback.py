import logging

from app.application.interfaces.clock import Clock
from app.application.interfaces.confirmation_store import ConfirmationStore
from app.domain.entities.booking import Booking
from app.domain.entities.confirmation import (
    BookingConfirmation,
    ConfirmationProvider,
    ConfirmationStatus,
)
from app.domain.entities.quote import Customer, ItemType, QuoteItem
from app.domain.value_objects.booking_reference import ManualConfirmationNumber

_LABELS = {ItemType.HOTEL.value: "hotel", ItemType.FLIGHT.value: "flight"}


class ManualFallbackHandler:
    """
    Genera la confirmación de seguimiento manual cuando no hay reserva automática.

    Desde el punto de vista del flujo siempre tiene éxito (`confirmed`), pero
    queda marcada con `requires_agent_followup` para que un agente complete
    la reserva fuera de línea.
    """

    def __init__(self, confirmation_store: ConfirmationStore, clock: Clock) -> None:
        self._confirmation_store = confirmation_store
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    async def create_manual_confirmation(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        reason: str,
    ) -> BookingConfirmation:
        now = self._clock.now()
        number = str(ManualConfirmationNumber.generate(item.item_type, now))
        typed = item.typed_details
        label = _LABELS.get(item.item_type)

        details = {
            "item_name": item.item_name,
            "item_type": item.item_type,
            "confirmation_number": number,
            "note": f"Manual {label + ' ' if label else ''}confirmation - {reason}",
            "requires_agent_followup": True,
        }
        if item.item_type == ItemType.HOTEL.value:
            details["hotel_name"] = item.item_name
            details["check_in"] = getattr(typed, "check_in", None)
            details["check_out"] = getattr(typed, "check_out", None)
        if customer and customer.full_name:
            key = "passenger_name" if item.item_type == ItemType.FLIGHT.value else "guest_name"
            details[key] = customer.full_name

        confirmation = BookingConfirmation(
            booking_id=booking.id,
            quote_item_id=item.id,
            provider=ConfirmationProvider.MANUAL,
            confirmation_number=number,
            booking_reference=number,
            status=ConfirmationStatus.CONFIRMED,
            booking_details=details,
            amount=item.line_total,
            currency=getattr(typed, "currency", None) or "USD",
            created_at=now,
            updated_at=now,
        )
        saved = await self._confirmation_store.record(confirmation)
        self._logger.info(
            "Manual confirmation created",
            extra={
                "booking_id": booking.id,
                "quote_item_id": item.id,
                "item_type": item.item_type,
                "confirmation_number": number,
                "reason": reason,
            },
        )
        return saved
