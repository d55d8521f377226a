from unittest.mock import AsyncMock, patch

import pytest

from app.application.use_cases.manage_subscription import ManageSubscriptionUseCase
from app.domain.entities.subscription import SubscriptionTier
from app.domain.errors import InvalidInputError, SubscriptionNotFoundError
from app.infrastructure.in_memory.stripe_gateway import StubStripeGateway
from app.infrastructure.in_memory.subscription_repo import InMemorySubscriptionRepo
from app.infrastructure.in_memory.transaction_manager import NoopTransactionManager
from tests.helpers import AGENT_ID

PRICE_IDS = {
    SubscriptionTier.BASIC: "price_basic",
    SubscriptionTier.PROFESSIONAL: "price_professional",
    SubscriptionTier.ENTERPRISE: None,
}


@pytest.fixture
def stripe_gateway():
    return StubStripeGateway()


@pytest.fixture
def repo():
    return InMemorySubscriptionRepo()


@pytest.fixture
def use_case(repo, stripe_gateway, clock):
    return ManageSubscriptionUseCase(
        subscription_repo=repo,
        stripe_gateway=stripe_gateway,
        transaction_manager=NoopTransactionManager(),
        clock=clock,
        price_ids=PRICE_IDS,
        default_trial_days=14,
    )


class TestCreateSubscription:
    @pytest.mark.asyncio
    async def test_create_with_default_trial(self, use_case, repo, stripe_gateway):
        subscription = await use_case.create(AGENT_ID, "agent@example.com", "professional")

        assert subscription.id is not None
        assert subscription.tier == SubscriptionTier.PROFESSIONAL
        assert subscription.status == "trialing"
        assert subscription.trial_end is not None
        assert subscription.stripe_customer_id in stripe_gateway.customers

        stripe_subscription = stripe_gateway.subscriptions[subscription.stripe_subscription_id]
        assert stripe_subscription["metadata"] == {"user_id": AGENT_ID, "tier": "professional"}
        assert stripe_subscription["items"]["data"][0]["price"]["id"] == "price_professional"
        assert (await repo.get_by_agent(AGENT_ID)).stripe_subscription_id == subscription.stripe_subscription_id

    @pytest.mark.asyncio
    async def test_zero_trial_days_starts_incomplete(self, use_case):
        subscription = await use_case.create(AGENT_ID, "agent@example.com", "basic", trial_days=0)

        assert subscription.status == "incomplete"
        assert subscription.trial_end is None

    @pytest.mark.asyncio
    async def test_existing_customer_is_reused(self, use_case, stripe_gateway):
        first = await use_case.create(AGENT_ID, "agent@example.com", "basic")

        with patch.object(stripe_gateway, "create_customer", new=AsyncMock()) as create_customer:
            second = await use_case.create(AGENT_ID, "agent@example.com", "professional")

        create_customer.assert_not_awaited()
        assert second.id == first.id
        assert second.stripe_customer_id == first.stripe_customer_id
        assert second.tier == SubscriptionTier.PROFESSIONAL

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "email, tier, trial_days, field",
        [
            ("agent@example.com", "gold", None, "tier"),
            ("agent@example.com", "enterprise", None, "tier"),
            ("not-an-email", "basic", None, "email"),
            ("agent@example.com", "basic", -1, "trial_days"),
        ],
    )
    async def test_invalid_input(self, use_case, repo, email, tier, trial_days, field):
        with pytest.raises(InvalidInputError) as exc_info:
            await use_case.create(AGENT_ID, email, tier, trial_days=trial_days)

        assert exc_info.value.field == field
        assert await repo.get_by_agent(AGENT_ID) is None


class TestCancelSubscription:
    @pytest.mark.asyncio
    async def test_cancel_at_period_end(self, use_case):
        created = await use_case.create(AGENT_ID, "agent@example.com", "basic")

        cancelled = await use_case.cancel(AGENT_ID)

        assert cancelled.status == "trialing"
        assert cancelled.cancel_at == created.current_period_end

    @pytest.mark.asyncio
    async def test_cancel_immediately(self, use_case):
        await use_case.create(AGENT_ID, "agent@example.com", "basic")

        cancelled = await use_case.cancel(AGENT_ID, immediately=True)

        assert cancelled.status == "canceled"
        assert cancelled.canceled_at is not None
        assert cancelled.is_active is False

    @pytest.mark.asyncio
    async def test_cancel_without_subscription(self, use_case):
        with pytest.raises(SubscriptionNotFoundError):
            await use_case.cancel(AGENT_ID)

    @pytest.mark.asyncio
    async def test_get_current_without_subscription(self, use_case):
        with pytest.raises(SubscriptionNotFoundError):
            await use_case.get_current(AGENT_ID)
