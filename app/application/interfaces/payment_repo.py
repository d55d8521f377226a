from typing import Sequence

from app.domain.entities.payment import CustomerPayment, PaymentStatus


class PaymentRepo:
    async def create_pending(self, payment: CustomerPayment) -> CustomerPayment:
        raise NotImplementedError

    async def find_by_payment_intent(
        self,
        stripe_payment_intent_id: str,
    ) -> CustomerPayment | None:
        raise NotImplementedError

    async def update_status(
        self,
        stripe_payment_intent_id: str,
        status: PaymentStatus,
    ) -> CustomerPayment | None:
        """Fija el estado por id externo; None si no hay pago local."""
        raise NotImplementedError

    async def list_by_booking(self, booking_id: int) -> Sequence[CustomerPayment]:
        raise NotImplementedError
