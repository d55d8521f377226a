from dataclasses import replace
from decimal import Decimal
from typing import Sequence

from app.application.interfaces.booking_repo import BookingRepo
from app.domain.entities.booking import Booking, BookingItem, BookingPaymentStatus
from app.domain.errors import DuplicateBookingError


class InMemoryBookingRepo(BookingRepo):
    def __init__(self) -> None:
        self._by_id: dict[int, Booking] = {}
        self._by_quote: dict[tuple[int, str], int] = {}
        self._items: dict[int, list[BookingItem]] = {}
        self._next_id = 1
        self._next_item_id = 1

    async def create(self, booking: Booking) -> Booking:
        key = (booking.quote_id, booking.agent_id)
        if key in self._by_quote:
            raise DuplicateBookingError(booking.quote_id, booking.agent_id)
        saved = replace(booking, id=self._next_id)
        self._next_id += 1
        self._by_id[saved.id] = saved
        self._by_quote[key] = saved.id
        return replace(saved)

    async def add_items(self, items: Sequence[BookingItem]) -> list[BookingItem]:
        saved: list[BookingItem] = []
        for item in items:
            copy = replace(item, id=self._next_item_id)
            self._next_item_id += 1
            self._items.setdefault(copy.booking_id, []).append(copy)
            saved.append(copy)
        return saved

    async def get_by_id(self, booking_id: int) -> Booking | None:
        booking = self._by_id.get(booking_id)
        return replace(booking) if booking else None

    async def get_for_agent(self, booking_id: int, agent_id: str) -> Booking | None:
        booking = self._by_id.get(booking_id)
        if booking is None or booking.agent_id != agent_id:
            return None
        return replace(booking)

    async def find_by_quote(self, quote_id: int, agent_id: str) -> Booking | None:
        booking_id = self._by_quote.get((quote_id, agent_id))
        return await self.get_by_id(booking_id) if booking_id else None

    async def list_items(self, booking_id: int) -> Sequence[BookingItem]:
        return list(self._items.get(booking_id, []))

    async def update_payment_totals(
        self,
        booking_id: int,
        amount_paid: Decimal,
        payment_status: BookingPaymentStatus,
    ) -> None:
        booking = self._by_id.get(booking_id)
        if booking is not None:
            booking.amount_paid = amount_paid
            booking.payment_status = payment_status
