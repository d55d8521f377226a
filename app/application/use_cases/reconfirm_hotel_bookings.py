import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Awaitable, Callable

from app.application.interfaces.clock import Clock
from app.application.interfaces.confirmation_store import ConfirmationStore
from app.application.interfaces.notifier import Notifier
from app.application.interfaces.provider_gateway import HotelProviderGateway
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.confirmation import BookingConfirmation, ConfirmationProvider
from app.domain.errors import PersistenceError, ProviderError


@dataclass
class ReconfirmationCycleResult:
    checked: int = 0
    updated: int = 0
    failed: int = 0
    skipped: bool = False


class ReconfirmHotelBookingsUseCase:
    """
    Un ciclo de reconfirmación de hoteles.

    Busca confirmaciones `hotel-provider` confirmadas, sin número del hotel
    y creadas dentro de la ventana de búsqueda. Consulta al proveedor una
    por una, con una pausa fija entre consultas, y guarda el número cuando
    el hotel ya lo asignó. Una consulta fallida se registra y se omite; se
    reintenta en el siguiente ciclo.
    """

    def __init__(
        self,
        confirmation_store: ConfirmationStore,
        hotel_gateway: HotelProviderGateway,
        notifier: Notifier,
        transaction_manager: TransactionManager,
        clock: Clock,
        lookback_days: int = 30,
        request_delay_seconds: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._confirmation_store = confirmation_store
        self._hotel_gateway = hotel_gateway
        self._notifier = notifier
        self._tx = transaction_manager
        self._clock = clock
        self._lookback = timedelta(days=lookback_days)
        self._request_delay = request_delay_seconds
        self._sleep = sleep
        self._logger = logging.getLogger(__name__)

    async def execute(self) -> ReconfirmationCycleResult:
        result = ReconfirmationCycleResult()
        if not self._hotel_gateway.is_configured:
            self._logger.warning("Hotel provider credentials not configured, skipping reconfirmation check")
            result.skipped = True
            return result

        created_after = self._clock.now() - self._lookback
        pending = await self._confirmation_store.list_awaiting_reconfirmation(
            provider=ConfirmationProvider.HOTEL,
            created_after=created_after,
        )
        self._logger.info("Checking hotel bookings for reconfirmation", extra={"pending": len(pending)})

        for index, confirmation in enumerate(pending):
            if index:
                await self._sleep(self._request_delay)
            result.checked += 1
            try:
                if await self._check(confirmation):
                    result.updated += 1
            except (ProviderError, PersistenceError) as exc:
                result.failed += 1
                self._logger.warning(
                    "Reconfirmation check failed",
                    extra={
                        "confirmation_id": confirmation.id,
                        "booking_id": confirmation.booking_id,
                        "provider_booking_id": confirmation.provider_booking_id,
                        "error": exc.message,
                    },
                )
        return result

    async def _check(self, confirmation: BookingConfirmation) -> bool:
        if not confirmation.provider_booking_id:
            self._logger.warning(
                "Hotel confirmation has no provider booking id",
                extra={"confirmation_id": confirmation.id},
            )
            return False

        data = await self._hotel_gateway.get_booking(confirmation.provider_booking_id)
        booking_data = (data.get("booking") or {}) if isinstance(data, dict) else None
        hotel = (booking_data.get("hotel") or {}) if isinstance(booking_data, dict) else None
        if not isinstance(hotel, dict):
            raise ProviderError(
                ConfirmationProvider.HOTEL.value,
                "Hotel provider lookup returned an unexpected booking shape",
            )
        number = hotel.get("confirmationNumber")
        if not number:
            return False

        now = self._clock.now()
        details = dict(confirmation.booking_details or {})
        details["hotel_status"] = booking_data.get("status")
        details["reconfirmation_details"] = {
            "hotel": hotel.get("name"),
            "status": booking_data.get("status"),
            "modification_date": booking_data.get("modificationDate"),
        }
        async with self._tx.start():
            await self._confirmation_store.record_reconfirmation(
                confirmation_id=confirmation.id,
                reconfirmation_number=number,
                booking_details=details,
                received_at=now,
            )
        self._logger.info(
            "Hotel reconfirmation number received",
            extra={
                "confirmation_id": confirmation.id,
                "booking_id": confirmation.booking_id,
                "reconfirmation_number": number,
            },
        )

        updated = replace(
            confirmation,
            hotel_reconfirmation_number=number,
            reconfirmation_received_at=now,
            booking_details=details,
        )
        try:
            async with self._tx.start():
                await self._notifier.notify_reconfirmation(updated)
        except PersistenceError:
            self._logger.exception(
                "Failed to notify reconfirmation",
                extra={"confirmation_id": confirmation.id},
            )
        return True
