from dataclasses import replace
from datetime import datetime
from typing import Any

from app.application.interfaces.webhook_event_repo import WebhookEventRepo
from app.domain.entities.webhook_event import PaymentWebhookEvent


class InMemoryWebhookEventRepo(WebhookEventRepo):
    def __init__(self) -> None:
        self._events: dict[str, PaymentWebhookEvent] = {}
        self._next_id = 1

    async def record_received(
        self,
        stripe_event_id: str,
        event_type: str,
        payload: dict[str, Any],
        now: datetime,
    ) -> tuple[PaymentWebhookEvent, bool]:
        existing = self._events.get(stripe_event_id)
        if existing is not None:
            return replace(existing), False
        event = PaymentWebhookEvent(
            id=self._next_id,
            stripe_event_id=stripe_event_id,
            event_type=event_type,
            payload=payload,
            created_at=now,
        )
        self._next_id += 1
        self._events[stripe_event_id] = event
        return replace(event), True

    async def mark_processed(self, stripe_event_id: str, now: datetime) -> None:
        event = self._events[stripe_event_id]
        event.processed = True
        event.processed_at = now
        event.error_message = None

    async def mark_failed(self, stripe_event_id: str, error_message: str, now: datetime) -> None:
        event = self._events[stripe_event_id]
        event.processed = False
        event.error_message = error_message

    async def get(self, stripe_event_id: str) -> PaymentWebhookEvent | None:
        event = self._events.get(stripe_event_id)
        return replace(event) if event else None
