from app.domain.entities.confirmation import BookingConfirmation
from app.domain.entities.notification import Notification


class Notifier:
    """Efectos de notificación; el envío real de correo es externo."""

    async def notify_user(
        self,
        user_id: str,
        message: str,
        source_event_id: str | None = None,
    ) -> Notification | None:
        raise NotImplementedError

    async def notify_reconfirmation(self, confirmation: BookingConfirmation) -> None:
        raise NotImplementedError
