"""Entidad BookingConfirmation - un intento de confirmación por item de reserva."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

LATE_PROVIDER_CONFIRMATION_NOTE = (
    "Provider confirmed after another confirmation was recorded for this item; reconcile with the provider"
)


class ConfirmationProvider(str, Enum):
    """Origen de la confirmación."""

    HOTEL = "hotel-provider"
    FLIGHT = "flight-provider"
    MANUAL = "manual"


class ConfirmationStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    FAILED = "failed"


@dataclass
class BookingConfirmation:
    """
    Registro de un intento de confirmación.

    Las filas son de solo-agregar: los intentos fallidos se conservan para
    auditoría y por cada (booking_id, quote_item_id) existe a lo sumo una
    fila `confirmed`. La única escritura posterior permitida es la metadata
    de reconfirmación del hotel.
    """

    # Identificadores
    id: int | None = None
    booking_id: int = 0
    quote_item_id: int | None = None

    # Proveedor
    provider: ConfirmationProvider = ConfirmationProvider.MANUAL
    provider_booking_id: str | None = None
    confirmation_number: str | None = None
    booking_reference: str | None = None

    # Estado
    status: ConfirmationStatus = ConfirmationStatus.PENDING

    # Auditoría (JSON)
    raw_request: dict[str, Any] | None = None
    raw_response: dict[str, Any] | None = None
    error_details: dict[str, Any] | None = None
    booking_details: dict[str, Any] = field(default_factory=dict)

    # Monto
    amount: Decimal = Decimal("0")
    currency: str = "USD"

    # Reconfirmación del hotel
    hotel_reconfirmation_number: str | None = None
    reconfirmation_received_at: datetime | None = None

    # Timestamps
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # === Propiedades ===

    @property
    def is_confirmed(self) -> bool:
        return self.status == ConfirmationStatus.CONFIRMED

    @property
    def is_failed(self) -> bool:
        return self.status == ConfirmationStatus.FAILED

    @property
    def requires_agent_followup(self) -> bool:
        return bool(self.booking_details.get("requires_agent_followup"))

    @property
    def error_message(self) -> str | None:
        if not self.error_details:
            return None
        return self.error_details.get("error")

    @property
    def awaiting_reconfirmation(self) -> bool:
        """Confirmación de hotel aún sin número asignado por el hotel."""
        return (
            self.provider == ConfirmationProvider.HOTEL
            and self.is_confirmed
            and not self.hotel_reconfirmation_number
        )

    # === Factories ===

    @classmethod
    def failed_attempt(
        cls,
        booking_id: int,
        quote_item_id: int | None,
        provider: ConfirmationProvider,
        error: str,
        amount: Decimal,
        now: datetime,
        currency: str = "USD",
        raw_request: dict[str, Any] | None = None,
        raw_response: dict[str, Any] | None = None,
    ) -> "BookingConfirmation":
        """Factory para un intento fallido, conservado para auditoría."""
        return cls(
            booking_id=booking_id,
            quote_item_id=quote_item_id,
            provider=provider,
            status=ConfirmationStatus.FAILED,
            raw_request=raw_request,
            raw_response=raw_response,
            error_details={"error": error, "timestamp": now.isoformat()},
            amount=amount,
            currency=currency,
            created_at=now,
            updated_at=now,
        )

    def pending_review(self, note: str) -> "BookingConfirmation":
        """
        Copia no confirmada del intento, para revisión del agente.

        Se usa cuando el item ya tiene una fila `confirmed` y el proveedor
        confirma después: la reserva del proveedor queda registrada sin
        romper la unicidad de la confirmación.
        """
        details = dict(self.booking_details)
        details["requires_agent_followup"] = True
        details["note"] = note
        return replace(self, id=None, status=ConfirmationStatus.PENDING, booking_details=details)
