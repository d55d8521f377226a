from typing import Any
from uuid import uuid4

from app.application.interfaces.stripe_gateway import StripeGateway
from app.infrastructure.gateways.stripe_signature import verify_and_decode


class StubStripeGateway(StripeGateway):
    """
    Stripe sin red: verifica firmas igual que el real y simula suscripciones.

    `subscriptions` puede sembrarse en tests para `retrieve_subscription`.
    """

    def __init__(self, now_epoch: int = 1_700_000_000) -> None:
        self.subscriptions: dict[str, dict[str, Any]] = {}
        self.customers: dict[str, dict[str, Any]] = {}
        self._now_epoch = now_epoch

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        return verify_and_decode(payload, signature_header, webhook_secret)

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        return dict(self.subscriptions.get(subscription_id) or {"id": subscription_id, "metadata": {}})

    async def create_customer(self, email: str, agent_id: str) -> str:
        customer_id = f"cus_{uuid4().hex[:14]}"
        self.customers[customer_id] = {"id": customer_id, "email": email, "metadata": {"user_id": agent_id}}
        return customer_id

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        trial_days: int,
        metadata: dict[str, str],
    ) -> dict[str, Any]:
        subscription_id = f"sub_{uuid4().hex[:14]}"
        trial_end = self._now_epoch + trial_days * 86400 if trial_days > 0 else None
        subscription = {
            "id": subscription_id,
            "customer": customer_id,
            "status": "trialing" if trial_end else "incomplete",
            "metadata": dict(metadata),
            "items": {"data": [{"price": {"id": price_id}}]},
            "current_period_start": self._now_epoch,
            "current_period_end": trial_end or self._now_epoch + 30 * 86400,
            "trial_start": self._now_epoch if trial_end else None,
            "trial_end": trial_end,
            "cancel_at": None,
            "canceled_at": None,
        }
        self.subscriptions[subscription_id] = subscription
        return dict(subscription)

    async def cancel_subscription(self, subscription_id: str, immediately: bool) -> dict[str, Any]:
        subscription = self.subscriptions.setdefault(subscription_id, {"id": subscription_id, "metadata": {}})
        if immediately:
            subscription["status"] = "canceled"
            subscription["canceled_at"] = self._now_epoch
        else:
            subscription["cancel_at_period_end"] = True
            subscription["cancel_at"] = subscription.get("current_period_end")
        return dict(subscription)
