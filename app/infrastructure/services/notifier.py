"""Notificaciones dentro de la aplicación; el correo al cliente lo envía un servicio externo."""

import logging

from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.clock import Clock
from app.application.interfaces.notification_repo import NotificationRepo
from app.application.interfaces.notifier import Notifier
from app.application.interfaces.quote_repo import QuoteRepo
from app.domain.entities.confirmation import BookingConfirmation
from app.domain.entities.notification import Notification

logger = logging.getLogger(__name__)


class RecordingNotifier(Notifier):
    """
    Guarda avisos en la tabla de notificaciones.

    `source_event_id` deduplica: un evento re-aplicado no genera un segundo aviso.
    """

    def __init__(
        self,
        notification_repo: NotificationRepo,
        booking_repo: BookingRepo,
        quote_repo: QuoteRepo,
        clock: Clock,
    ) -> None:
        self._notification_repo = notification_repo
        self._booking_repo = booking_repo
        self._quote_repo = quote_repo
        self._clock = clock

    async def notify_user(
        self,
        user_id: str,
        message: str,
        source_event_id: str | None = None,
    ) -> Notification | None:
        saved = await self._notification_repo.add(
            Notification(
                user_id=user_id,
                message=message,
                source_event_id=source_event_id,
                created_at=self._clock.now(),
            )
        )
        if saved is None:
            logger.info(
                "Notification already recorded for source event",
                extra={"user_id": user_id, "source_event_id": source_event_id},
            )
        return saved

    async def notify_reconfirmation(self, confirmation: BookingConfirmation) -> None:
        booking = await self._booking_repo.get_by_id(confirmation.booking_id)
        if booking is None:
            logger.warning(
                "Reconfirmation for unknown booking",
                extra={"booking_id": confirmation.booking_id, "confirmation_id": confirmation.id},
            )
            return

        hotel_name = confirmation.booking_details.get("hotel_name") or "hotel"
        await self.notify_user(
            booking.agent_id,
            f"Hotel reconfirmation received for booking {booking.booking_reference} "
            f"({hotel_name}): {confirmation.hotel_reconfirmation_number}",
            source_event_id=f"reconfirmation:{confirmation.id}",
        )

        customer = await self._quote_repo.get_customer(booking.customer_id) if booking.customer_id else None
        if customer is None or not customer.email:
            logger.warning(
                "No customer email for reconfirmation notice",
                extra={"booking_id": booking.id, "confirmation_id": confirmation.id},
            )
            return
        logger.info(
            "Reconfirmation notice ready for customer",
            extra={
                "booking_id": booking.id,
                "booking_reference": booking.booking_reference,
                "customer_email": customer.email,
                "reconfirmation_number": confirmation.hotel_reconfirmation_number,
            },
        )
