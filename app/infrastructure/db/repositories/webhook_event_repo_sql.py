from datetime import datetime
from typing import Any

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.webhook_event_repo import WebhookEventRepo
from app.domain.entities.webhook_event import PaymentWebhookEvent
from app.infrastructure.db.errors import from_db_datetime, persistence_errors, to_db_datetime
from app.infrastructure.db.tables import payment_webhook_events


class WebhookEventRepoSQL(WebhookEventRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record_received(
        self,
        stripe_event_id: str,
        event_type: str,
        payload: dict[str, Any],
        now: datetime,
    ) -> tuple[PaymentWebhookEvent, bool]:
        existing = await self.get(stripe_event_id)
        if existing is not None:
            return existing, False

        # A concurrent insert of the same id surfaces as PersistenceError; the provider redelivers
        with persistence_errors("record webhook event"):
            stmt = insert(payment_webhook_events).values(
                stripe_event_id=stripe_event_id,
                event_type=event_type,
                payload=payload,
                processed=False,
                created_at=to_db_datetime(now),
            )
            result = await self._session.execute(stmt)
        event = PaymentWebhookEvent(
            id=result.inserted_primary_key[0],
            stripe_event_id=stripe_event_id,
            event_type=event_type,
            payload=payload,
            processed=False,
            created_at=now,
        )
        return event, True

    async def mark_processed(self, stripe_event_id: str, now: datetime) -> None:
        with persistence_errors("mark webhook event processed"):
            stmt = (
                update(payment_webhook_events)
                .where(payment_webhook_events.c.stripe_event_id == stripe_event_id)
                .values(processed=True, processed_at=to_db_datetime(now), error_message=None)
            )
            await self._session.execute(stmt)

    async def mark_failed(self, stripe_event_id: str, error_message: str, now: datetime) -> None:
        with persistence_errors("mark webhook event failed"):
            stmt = (
                update(payment_webhook_events)
                .where(payment_webhook_events.c.stripe_event_id == stripe_event_id)
                .values(processed=False, error_message=error_message[:2000])
            )
            await self._session.execute(stmt)

    async def get(self, stripe_event_id: str) -> PaymentWebhookEvent | None:
        with persistence_errors("load webhook event"):
            stmt = select(payment_webhook_events).where(
                payment_webhook_events.c.stripe_event_id == stripe_event_id
            )
            result = await self._session.execute(stmt)
            row = result.mappings().first()
        if not row:
            return None
        return PaymentWebhookEvent(
            id=row["id"],
            stripe_event_id=row["stripe_event_id"],
            event_type=row["event_type"],
            payload=row.get("payload") or {},
            processed=bool(row["processed"]),
            error_message=row.get("error_message"),
            created_at=from_db_datetime(row.get("created_at")),
            processed_at=from_db_datetime(row.get("processed_at")),
        )
