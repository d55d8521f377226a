"""Puerto del almacén de confirmaciones (historial de intentos por item)."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Sequence

from app.domain.entities.confirmation import BookingConfirmation, ConfirmationProvider


class ConfirmationStore(ABC):
    """
    Historial de solo-agregar de intentos de confirmación.

    Las implementaciones deben rechazar con DuplicateConfirmationError una
    segunda fila `confirmed` para el mismo (booking_id, quote_item_id).
    """

    @abstractmethod
    async def record(self, confirmation: BookingConfirmation) -> BookingConfirmation:
        """Agrega un intento y lo retorna con su id."""
        raise NotImplementedError

    @abstractmethod
    async def list_for_booking(self, booking_id: int) -> Sequence[BookingConfirmation]:
        """Todos los intentos de la reserva, en orden de creación."""
        raise NotImplementedError

    @abstractmethod
    async def list_awaiting_reconfirmation(
        self,
        provider: ConfirmationProvider,
        created_after: datetime,
    ) -> Sequence[BookingConfirmation]:
        raise NotImplementedError

    @abstractmethod
    async def record_reconfirmation(
        self,
        confirmation_id: int,
        reconfirmation_number: str,
        booking_details: dict[str, Any],
        received_at: datetime,
    ) -> None:
        """Única escritura sobre una fila existente: metadata de reconfirmación, nunca el status."""
        raise NotImplementedError
