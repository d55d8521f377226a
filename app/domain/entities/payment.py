"""Entidad CustomerPayment - cobro al cliente de una reserva."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PaymentStatus(str, Enum):
    """Estados posibles de un pago, con los valores del procesador."""

    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"
    REFUNDED = "refunded"


@dataclass
class CustomerPayment:
    """
    Pago asociado a una reserva.

    Se crea cuando el cliente inicia el cobro y su estado lo actualiza
    el procesador de webhooks buscando por `stripe_payment_intent_id`.
    """

    # Identificadores
    id: int | None = None
    booking_id: int | None = None
    customer_id: int | None = None
    agent_id: str | None = None

    # Stripe específico
    stripe_payment_intent_id: str | None = None

    # Monto
    amount: Decimal = Decimal("0")
    currency: str = "USD"

    # Estado
    status: PaymentStatus = PaymentStatus.PENDING

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_successful(self) -> bool:
        """Verifica si el pago fue exitoso."""
        return self.status == PaymentStatus.SUCCEEDED

    @classmethod
    def create_pending(
        cls,
        booking_id: int,
        amount: Decimal,
        currency: str,
        stripe_payment_intent_id: str,
        customer_id: int | None = None,
        agent_id: str | None = None,
    ) -> "CustomerPayment":
        """Factory para crear un pago pendiente."""
        return cls(
            booking_id=booking_id,
            customer_id=customer_id,
            agent_id=agent_id,
            stripe_payment_intent_id=stripe_payment_intent_id,
            amount=amount,
            currency=currency,
            status=PaymentStatus.PENDING,
        )
