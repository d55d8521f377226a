from dataclasses import replace
from typing import Sequence

from app.application.interfaces.payment_repo import PaymentRepo
from app.domain.entities.payment import CustomerPayment, PaymentStatus


class InMemoryPaymentRepo(PaymentRepo):
    def __init__(self) -> None:
        self._by_id: dict[int, CustomerPayment] = {}
        self._by_intent: dict[str, int] = {}
        self._next_id = 1

    async def create_pending(self, payment: CustomerPayment) -> CustomerPayment:
        record = replace(payment, id=self._next_id, status=PaymentStatus.PENDING)
        self._next_id += 1
        self._by_id[record.id] = record
        if record.stripe_payment_intent_id:
            self._by_intent[record.stripe_payment_intent_id] = record.id
        return replace(record)

    async def find_by_payment_intent(
        self,
        stripe_payment_intent_id: str,
    ) -> CustomerPayment | None:
        payment_id = self._by_intent.get(stripe_payment_intent_id)
        return replace(self._by_id[payment_id]) if payment_id else None

    async def update_status(
        self,
        stripe_payment_intent_id: str,
        status: PaymentStatus,
    ) -> CustomerPayment | None:
        payment_id = self._by_intent.get(stripe_payment_intent_id)
        if not payment_id:
            return None
        self._by_id[payment_id].status = status
        return replace(self._by_id[payment_id])

    async def list_by_booking(self, booking_id: int) -> Sequence[CustomerPayment]:
        return [replace(p) for p in self._by_id.values() if p.booking_id == booking_id]
