import logging
from typing import Mapping

from app.application.interfaces.clock import Clock
from app.application.interfaces.stripe_gateway import StripeGateway
from app.application.interfaces.subscription_repo import SubscriptionRepo
from app.application.interfaces.transaction_manager import TransactionManager
from app.domain.entities.subscription import Subscription, SubscriptionTier
from app.domain.errors import InvalidInputError, SubscriptionNotFoundError


class ManageSubscriptionUseCase:
    """
    Acciones explícitas del agente sobre su suscripción.

    El estado definitivo llega después por webhook; aquí solo se guarda lo
    que el procesador devuelve al crear o cancelar.
    """

    def __init__(
        self,
        subscription_repo: SubscriptionRepo,
        stripe_gateway: StripeGateway,
        transaction_manager: TransactionManager,
        clock: Clock,
        price_ids: Mapping[SubscriptionTier, str | None],
        default_trial_days: int = 14,
    ) -> None:
        self._subscription_repo = subscription_repo
        self._stripe_gateway = stripe_gateway
        self._tx = transaction_manager
        self._clock = clock
        self._price_ids = dict(price_ids)
        self._default_trial_days = default_trial_days
        self._logger = logging.getLogger(__name__)

    async def get_current(self, agent_id: str) -> Subscription:
        subscription = await self._subscription_repo.get_by_agent(agent_id)
        if subscription is None:
            raise SubscriptionNotFoundError(agent_id)
        return subscription

    async def create(
        self,
        agent_id: str,
        email: str,
        tier: str,
        trial_days: int | None = None,
    ) -> Subscription:
        try:
            tier_value = SubscriptionTier(tier)
        except ValueError as exc:
            raise InvalidInputError("tier", "must be one of basic, professional, enterprise") from exc
        price_id = self._price_ids.get(tier_value)
        if not price_id:
            raise InvalidInputError("tier", f"no price configured for '{tier_value.value}'")
        if not email or "@" not in email:
            raise InvalidInputError("email", "must be a valid email address")
        if trial_days is None:
            trial_days = self._default_trial_days
        if trial_days < 0:
            raise InvalidInputError("trial_days", "must be zero or positive")

        existing = await self._subscription_repo.get_by_agent(agent_id)
        customer_id = existing.stripe_customer_id if existing else None
        if not customer_id:
            customer_id = await self._stripe_gateway.create_customer(email=email, agent_id=agent_id)
            self._logger.info("Stripe customer created", extra={"agent_id": agent_id})

        stripe_subscription = await self._stripe_gateway.create_subscription(
            customer_id=customer_id,
            price_id=price_id,
            trial_days=trial_days,
            metadata={"user_id": agent_id, "tier": tier_value.value},
        )

        subscription = existing or Subscription(agent_id=agent_id, created_at=self._clock.now())
        subscription.tier = tier_value
        subscription.stripe_customer_id = customer_id
        subscription.apply_stripe_state(stripe_subscription)
        subscription.updated_at = self._clock.now()
        async with self._tx.start():
            saved = await self._subscription_repo.upsert(subscription)

        self._logger.info(
            "Subscription created",
            extra={
                "agent_id": agent_id,
                "tier": tier_value.value,
                "stripe_subscription_id": saved.stripe_subscription_id,
                "status": saved.status,
            },
        )
        return saved

    async def cancel(self, agent_id: str, immediately: bool = False) -> Subscription:
        subscription = await self.get_current(agent_id)
        if not subscription.stripe_subscription_id:
            raise SubscriptionNotFoundError(agent_id)

        stripe_subscription = await self._stripe_gateway.cancel_subscription(
            subscription.stripe_subscription_id, immediately=immediately
        )
        subscription.apply_stripe_state(stripe_subscription)
        subscription.updated_at = self._clock.now()
        async with self._tx.start():
            saved = await self._subscription_repo.upsert(subscription)

        self._logger.info(
            "Subscription cancel requested",
            extra={"agent_id": agent_id, "immediately": immediately, "status": saved.status},
        )
        return saved
