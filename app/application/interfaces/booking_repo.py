from decimal import Decimal
from typing import Sequence

from app.domain.entities.booking import Booking, BookingItem, BookingPaymentStatus


class BookingRepo:
    async def create(self, booking: Booking) -> Booking:
        """
        Inserta la reserva y retorna la entidad con id.

        Raises:
            DuplicateBookingError: ya existe reserva para (quote_id, agent_id).
        """
        raise NotImplementedError

    async def add_items(self, items: Sequence[BookingItem]) -> list[BookingItem]:
        raise NotImplementedError

    async def get_by_id(self, booking_id: int) -> Booking | None:
        raise NotImplementedError

    async def get_for_agent(self, booking_id: int, agent_id: str) -> Booking | None:
        raise NotImplementedError

    async def find_by_quote(self, quote_id: int, agent_id: str) -> Booking | None:
        raise NotImplementedError

    async def list_items(self, booking_id: int) -> Sequence[BookingItem]:
        raise NotImplementedError

    async def update_payment_totals(
        self,
        booking_id: int,
        amount_paid: Decimal,
        payment_status: BookingPaymentStatus,
    ) -> None:
        raise NotImplementedError
