import json
import unittest
from unittest.mock import MagicMock, patch

import stripe

from app.domain.errors import InvalidSignatureError, ProviderError
from app.infrastructure.circuit_breaker import reset_breakers, stripe_breaker
from app.infrastructure.gateways.stripe_gateway_real import StripeGatewayReal
from tests.helpers import WEBHOOK_SECRET, sign_payload

SUBSCRIPTION = {"id": "sub_1", "status": "active", "metadata": {"user_id": "agent-1", "tier": "basic"}}


class TestStripeGatewayReal(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_breakers()
        self.gateway = StripeGatewayReal(api_key="sk_test_123", webhook_tolerance_seconds=300)

    def tearDown(self):
        reset_breakers()

    async def test_parse_webhook_event_verifies_before_decoding(self):
        body = json.dumps({"id": "evt_1", "type": "invoice.paid"})

        event = await self.gateway.parse_webhook_event(body.encode(), sign_payload(body), WEBHOOK_SECRET)

        self.assertEqual(event["id"], "evt_1")

    async def test_parse_webhook_event_rejects_bad_signature(self):
        body = b'{"id": "evt_1"}'

        with self.assertRaises(InvalidSignatureError):
            await self.gateway.parse_webhook_event(body, "t=1,v1=deadbeef", WEBHOOK_SECRET)

    @patch("stripe.Subscription.retrieve")
    async def test_retrieve_subscription(self, mock_retrieve):
        mock_retrieve.return_value = dict(SUBSCRIPTION)

        subscription = await self.gateway.retrieve_subscription("sub_1")

        mock_retrieve.assert_called_once_with("sub_1")
        self.assertEqual(subscription["metadata"]["user_id"], "agent-1")

    @patch("stripe.Subscription.create")
    async def test_create_subscription_with_trial(self, mock_create):
        mock_create.return_value = dict(SUBSCRIPTION, status="trialing")

        subscription = await self.gateway.create_subscription(
            customer_id="cus_1",
            price_id="price_basic",
            trial_days=14,
            metadata={"user_id": "agent-1", "tier": "basic"},
        )

        _, kwargs = mock_create.call_args
        self.assertEqual(kwargs["customer"], "cus_1")
        self.assertEqual(kwargs["items"], [{"price": "price_basic"}])
        self.assertEqual(kwargs["trial_period_days"], 14)
        self.assertEqual(kwargs["metadata"], {"user_id": "agent-1", "tier": "basic"})
        self.assertEqual(subscription["status"], "trialing")

    @patch("stripe.Subscription.create")
    async def test_create_subscription_without_trial(self, mock_create):
        mock_create.return_value = dict(SUBSCRIPTION, status="incomplete")

        await self.gateway.create_subscription("cus_1", "price_basic", 0, {"user_id": "agent-1"})

        _, kwargs = mock_create.call_args
        self.assertNotIn("trial_period_days", kwargs)

    @patch("stripe.Subscription.modify")
    @patch("stripe.Subscription.cancel")
    async def test_cancel_at_period_end_vs_immediately(self, mock_cancel, mock_modify):
        mock_modify.return_value = dict(SUBSCRIPTION, cancel_at_period_end=True)
        mock_cancel.return_value = dict(SUBSCRIPTION, status="canceled")

        at_period_end = await self.gateway.cancel_subscription("sub_1", immediately=False)
        immediately = await self.gateway.cancel_subscription("sub_1", immediately=True)

        mock_modify.assert_called_once_with("sub_1", cancel_at_period_end=True)
        mock_cancel.assert_called_once_with("sub_1")
        self.assertTrue(at_period_end["cancel_at_period_end"])
        self.assertEqual(immediately["status"], "canceled")

    @patch("stripe.Customer.create")
    async def test_stripe_error_becomes_provider_error(self, mock_create):
        mock_create.side_effect = stripe.InvalidRequestError("No such price", param="price", http_status=400)

        with self.assertRaises(ProviderError) as ctx:
            await self.gateway.create_customer("agent@example.com", "agent-1")

        self.assertEqual(ctx.exception.provider, "stripe")
        self.assertEqual(ctx.exception.http_status, 400)
        self.assertIn("No such price", ctx.exception.message)

    @patch("stripe.Subscription.retrieve")
    async def test_open_circuit_fails_fast(self, mock_retrieve):
        stripe_breaker.open()

        with self.assertRaises(ProviderError) as ctx:
            await self.gateway.retrieve_subscription("sub_1")

        mock_retrieve.assert_not_called()
        self.assertIn("circuit open", ctx.exception.message)

    async def test_stripe_object_is_converted_to_dict(self):
        obj = stripe.StripeObject.construct_from(dict(SUBSCRIPTION), "sk_test_123")

        with patch("stripe.Subscription.retrieve", MagicMock(return_value=obj)):
            subscription = await self.gateway.retrieve_subscription("sub_1")

        self.assertIsInstance(subscription, dict)
        self.assertEqual(subscription["metadata"], {"user_id": "agent-1", "tier": "basic"})
