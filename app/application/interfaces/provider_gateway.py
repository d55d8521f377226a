from abc import ABC, abstractmethod
from typing import Any

from app.domain.entities.booking import Booking
from app.domain.entities.confirmation import BookingConfirmation
from app.domain.entities.quote import Customer, QuoteItem
from app.domain.value_objects.item_details import FlightOfferDetails, HotelRateDetails


class HotelProviderGateway(ABC):
    @property
    @abstractmethod
    def is_configured(self) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def book_hotel(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        details: HotelRateDetails,
    ) -> BookingConfirmation:
        """
        Reserva con el proveedor de hoteles y registra la confirmación.

        Ante cualquier falla registra una fila `failed` y lanza ProviderError.
        """
        pass

    @abstractmethod
    async def get_booking(self, provider_booking_id: str) -> dict[str, Any]:
        """Consulta la reserva en el proveedor (usada para la reconfirmación)."""
        pass


class FlightProviderGateway(ABC):
    @abstractmethod
    async def book_flight(
        self,
        booking: Booking,
        item: QuoteItem,
        customer: Customer | None,
        details: FlightOfferDetails,
    ) -> BookingConfirmation:
        """
        Crea una orden instantánea sobre una oferta capturada previamente.

        Ante cualquier falla registra una fila `failed` y lanza ProviderError.
        """
        pass
