from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities.subscription import Subscription


class CreateSubscriptionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    tier: str
    trial_days: int | None = Field(default=None, ge=0)


class CancelSubscriptionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    immediately: bool = False


class SubscriptionResponse(BaseModel):
    agent_id: str
    tier: str
    status: str
    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    trial_start: datetime | None = None
    trial_end: datetime | None = None
    cancel_at: datetime | None = None
    canceled_at: datetime | None = None

    @classmethod
    def from_entity(cls, subscription: Subscription) -> "SubscriptionResponse":
        return cls(
            agent_id=subscription.agent_id,
            tier=subscription.tier.value,
            status=subscription.status,
            stripe_subscription_id=subscription.stripe_subscription_id,
            stripe_customer_id=subscription.stripe_customer_id,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            trial_start=subscription.trial_start,
            trial_end=subscription.trial_end,
            cancel_at=subscription.cancel_at,
            canceled_at=subscription.canceled_at,
        )
