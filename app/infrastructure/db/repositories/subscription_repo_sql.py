from dataclasses import replace

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.subscription_repo import SubscriptionRepo
from app.domain.entities.subscription import Subscription, SubscriptionTier
from app.infrastructure.db.errors import from_db_datetime, persistence_errors, to_db_datetime
from app.infrastructure.db.tables import subscriptions


class SubscriptionRepoSQL(SubscriptionRepo):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_agent(self, agent_id: str) -> Subscription | None:
        with persistence_errors("load subscription"):
            stmt = select(subscriptions).where(subscriptions.c.agent_id == agent_id).limit(1)
            result = await self._session.execute(stmt)
            row = result.mappings().first()
        return self._map_subscription(row) if row else None

    async def upsert(self, subscription: Subscription) -> Subscription:
        values = {
            "stripe_subscription_id": subscription.stripe_subscription_id,
            "stripe_customer_id": subscription.stripe_customer_id,
            "tier": subscription.tier.value,
            "status": subscription.status,
            "current_period_start": to_db_datetime(subscription.current_period_start),
            "current_period_end": to_db_datetime(subscription.current_period_end),
            "trial_start": to_db_datetime(subscription.trial_start),
            "trial_end": to_db_datetime(subscription.trial_end),
            "cancel_at": to_db_datetime(subscription.cancel_at),
            "canceled_at": to_db_datetime(subscription.canceled_at),
            "updated_at": to_db_datetime(subscription.updated_at),
        }
        with persistence_errors("upsert subscription"):
            existing = await self.get_by_agent(subscription.agent_id)
            if existing is not None:
                stmt = (
                    update(subscriptions)
                    .where(subscriptions.c.agent_id == subscription.agent_id)
                    .values(**values)
                )
                await self._session.execute(stmt)
                return replace(subscription, id=existing.id, created_at=existing.created_at)

            stmt = insert(subscriptions).values(
                agent_id=subscription.agent_id,
                created_at=to_db_datetime(subscription.created_at),
                **values,
            )
            result = await self._session.execute(stmt)
        return replace(subscription, id=result.inserted_primary_key[0])

    def _map_subscription(self, row) -> Subscription:
        return Subscription(
            id=row["id"],
            agent_id=row["agent_id"],
            stripe_subscription_id=row.get("stripe_subscription_id"),
            stripe_customer_id=row.get("stripe_customer_id"),
            tier=SubscriptionTier(row["tier"]),
            status=row["status"],
            current_period_start=from_db_datetime(row.get("current_period_start")),
            current_period_end=from_db_datetime(row.get("current_period_end")),
            trial_start=from_db_datetime(row.get("trial_start")),
            trial_end=from_db_datetime(row.get("trial_end")),
            cancel_at=from_db_datetime(row.get("cancel_at")),
            canceled_at=from_db_datetime(row.get("canceled_at")),
            created_at=from_db_datetime(row.get("created_at")),
            updated_at=from_db_datetime(row.get("updated_at")),
        )
