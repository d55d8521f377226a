from datetime import datetime
from typing import Any

from app.domain.entities.webhook_event import PaymentWebhookEvent


class WebhookEventRepo:
    async def record_received(
        self,
        stripe_event_id: str,
        event_type: str,
        payload: dict[str, Any],
        now: datetime,
    ) -> tuple[PaymentWebhookEvent, bool]:
        """
        Registra el evento antes de aplicarlo.

        Returns:
            (evento, creado). Si el id ya existía retorna la fila existente y False.
        """
        raise NotImplementedError

    async def mark_processed(self, stripe_event_id: str, now: datetime) -> None:
        raise NotImplementedError

    async def mark_failed(self, stripe_event_id: str, error_message: str, now: datetime) -> None:
        raise NotImplementedError

    async def get(self, stripe_event_id: str) -> PaymentWebhookEvent | None:
        raise NotImplementedError
