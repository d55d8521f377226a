"""Entidad Subscription - suscripción de un agente a la plataforma."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class SubscriptionTier(str, Enum):
    BASIC = "basic"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(str, Enum):
    """Estados reportados por el procesador de pagos."""

    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    UNPAID = "unpaid"
    PAUSED = "paused"


def from_epoch(value: Any) -> datetime | None:
    """Convierte segundos epoch (formato del procesador) a datetime UTC."""
    if value is None or value == "":
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


@dataclass
class Subscription:
    """Una fila por agente; se modifica por webhooks o por acción explícita del agente."""

    id: int | None = None
    agent_id: str = ""
    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    tier: SubscriptionTier = SubscriptionTier.BASIC
    status: str = SubscriptionStatus.INCOMPLETE.value
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    trial_start: datetime | None = None
    trial_end: datetime | None = None
    cancel_at: datetime | None = None
    canceled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status in (SubscriptionStatus.ACTIVE.value, SubscriptionStatus.TRIALING.value)

    def apply_stripe_state(self, stripe_subscription: dict[str, Any]) -> None:
        """Copia el estado externo (status, periodos, trial y cancelación)."""
        self.stripe_subscription_id = stripe_subscription.get("id") or self.stripe_subscription_id
        customer = stripe_subscription.get("customer")
        if isinstance(customer, dict):
            customer = customer.get("id")
        self.stripe_customer_id = customer or self.stripe_customer_id
        self.status = stripe_subscription.get("status") or self.status

        # Desde 2025 los periodos viven en cada item de la suscripción
        period_source = stripe_subscription
        if stripe_subscription.get("current_period_start") is None:
            items = (stripe_subscription.get("items") or {}).get("data") or []
            if items:
                period_source = items[0]
        self.current_period_start = from_epoch(period_source.get("current_period_start"))
        self.current_period_end = from_epoch(period_source.get("current_period_end"))

        self.trial_start = from_epoch(stripe_subscription.get("trial_start"))
        self.trial_end = from_epoch(stripe_subscription.get("trial_end"))
        self.cancel_at = from_epoch(stripe_subscription.get("cancel_at"))
        self.canceled_at = from_epoch(stripe_subscription.get("canceled_at"))

    @classmethod
    def from_stripe(
        cls,
        agent_id: str,
        stripe_subscription: dict[str, Any],
        tier: SubscriptionTier,
    ) -> "Subscription":
        subscription = cls(agent_id=agent_id, tier=tier)
        subscription.apply_stripe_state(stripe_subscription)
        return subscription
