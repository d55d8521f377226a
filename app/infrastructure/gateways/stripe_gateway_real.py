import asyncio
import json
import logging
from typing import Any

import stripe

from app.application.interfaces.stripe_gateway import StripeGateway
from app.config import get_settings
from app.domain.errors import ProviderError
from app.infrastructure.circuit_breaker import async_provider_breaker, stripe_breaker
from app.infrastructure.gateways.stripe_signature import DEFAULT_TOLERANCE_SECONDS, verify_and_decode

logger = logging.getLogger(__name__)

PROVIDER = "stripe"


def _as_dict(obj: Any) -> dict[str, Any]:
    """StripeObject -> plain dict (its str() is the JSON representation)."""
    if isinstance(obj, stripe.StripeObject):
        return json.loads(str(obj))
    return dict(obj)


class StripeGatewayReal(StripeGateway):
    def __init__(self, api_key: str | None = None, webhook_tolerance_seconds: int | None = None) -> None:
        settings = get_settings()
        stripe.api_key = api_key or settings.stripe_api_key
        stripe.max_network_retries = 2  # Retry failed requests up to 2 times
        self._tolerance = webhook_tolerance_seconds or DEFAULT_TOLERANCE_SECONDS

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        return verify_and_decode(payload, signature_header, webhook_secret, self._tolerance)

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        subscription = await self._call(stripe.Subscription.retrieve, subscription_id)
        return _as_dict(subscription)

    async def create_customer(self, email: str, agent_id: str) -> str:
        customer = await self._call(
            stripe.Customer.create,
            email=email,
            metadata={"user_id": agent_id},
        )
        return customer.id

    async def create_subscription(
        self,
        customer_id: str,
        price_id: str,
        trial_days: int,
        metadata: dict[str, str],
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "customer": customer_id,
            "items": [{"price": price_id}],
            "metadata": metadata,
            "payment_behavior": "default_incomplete",
            "expand": ["latest_invoice"],
        }
        if trial_days > 0:
            params["trial_period_days"] = trial_days
        subscription = await self._call(stripe.Subscription.create, **params)
        return _as_dict(subscription)

    async def cancel_subscription(self, subscription_id: str, immediately: bool) -> dict[str, Any]:
        if immediately:
            subscription = await self._call(stripe.Subscription.cancel, subscription_id)
        else:
            subscription = await self._call(
                stripe.Subscription.modify, subscription_id, cancel_at_period_end=True
            )
        return _as_dict(subscription)

    @async_provider_breaker(stripe_breaker, PROVIDER)
    async def _call(self, func, *args, **kwargs):
        """
        Run a Stripe SDK call, protected by Circuit Breaker.

        The SDK is synchronous; the call runs in a worker thread so the event
        loop is not blocked.
        """
        try:
            return await asyncio.to_thread(func, *args, **kwargs)
        except stripe.StripeError as e:
            logger.error(
                "Stripe API error",
                extra={"error_type": e.__class__.__name__, "http_status": e.http_status},
            )
            raise ProviderError(PROVIDER, e.user_message or str(e), http_status=e.http_status) from e
